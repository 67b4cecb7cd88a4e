"""httpx MockTransport helpers."""

from collections.abc import Callable, Iterable
from typing import Any

import httpx


def google_error(status_code: int, message: str, reason: str) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={
            "error": {
                "code": status_code,
                "message": message,
                "errors": [{"reason": reason, "message": message}],
            }
        },
    )


class RecordingTransport:
    """MockTransport handler returning queued responses per path."""

    def __init__(
        self,
        routes: dict[str, Iterable[httpx.Response] | Callable[[httpx.Request], httpx.Response]],
    ):
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, Any] = {
            path: handler if callable(handler) else list(handler)
            for path, handler in routes.items()
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": {"message": "no route"}})
        if callable(route):
            return route(request)
        if len(route) > 1:
            return route.pop(0)
        return route[0]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]
