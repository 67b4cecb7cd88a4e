"""YouTube Analytics credential lifecycle and resilient API access."""

__version__ = "0.1.0"
