"""JSON file storage for the single persisted credential record."""

import asyncio
import contextlib
import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from structlog import get_logger

from .exceptions import CorruptRecordError, PersistenceError
from .models import Credential, CredentialRecord


logger = get_logger(__name__)

FILE_MODE = 0o600


class CredentialStore:
    """Reads and writes the credential record at ``file_path``.

    Every write is atomic and leaves the file readable by its owner only.
    """

    def __init__(self, file_path: Path):
        self.file_path = file_path

    def get_location(self) -> str:
        return str(self.file_path)

    async def exists(self) -> bool:
        return await asyncio.to_thread(self.file_path.is_file)

    async def load(self) -> Credential | None:
        """Load the persisted credential.

        Returns:
            The credential, or None when no record exists

        Raises:
            CorruptRecordError: If the record exists but cannot be parsed
            PersistenceError: If the file cannot be read
        """

        def read_file() -> Any:
            with self.file_path.open(encoding="utf-8") as f:
                return json.load(f)

        try:
            data = await asyncio.to_thread(read_file)
        except FileNotFoundError:
            logger.debug("credentials_file_not_found", path=str(self.file_path))
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(
                "credentials_file_corrupt", path=str(self.file_path), error=str(e)
            )
            raise CorruptRecordError(
                f"Failed to parse credentials file {self.file_path}: {e}"
            ) from e
        except OSError as e:
            logger.error(
                "credentials_read_failed",
                path=str(self.file_path),
                error=str(e),
                exc_info=e,
            )
            raise PersistenceError(
                f"Error reading credentials file {self.file_path}: {e}"
            ) from e

        try:
            record = CredentialRecord.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "credentials_record_invalid",
                path=str(self.file_path),
                error_count=e.error_count(),
            )
            raise CorruptRecordError(
                f"Invalid credentials format in {self.file_path}"
            ) from e

        logger.debug("credentials_load_completed", path=str(self.file_path))
        return Credential.from_record(record)

    async def save(self, credential: Credential) -> None:
        """Persist ``credential``, replacing any prior record.

        Raises:
            PersistenceError: If the record cannot be written
        """
        data = credential.to_record().to_json_dict()
        temp_path = self.file_path.with_suffix(".tmp")

        def write_file() -> None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            # O_CREAT mode is ignored for pre-existing files and masked by umask
            temp_path.chmod(FILE_MODE)
            temp_path.replace(self.file_path)
            self.file_path.chmod(FILE_MODE)

        try:
            await asyncio.to_thread(write_file)
        except OSError as e:
            logger.error(
                "credentials_save_failed",
                path=str(self.file_path),
                error=str(e),
                exc_info=e,
            )
            raise PersistenceError(
                f"Error writing credentials file {self.file_path}: {e}"
            ) from e
        finally:
            with contextlib.suppress(OSError):
                if temp_path.exists():
                    temp_path.unlink()

        logger.debug("credentials_save_completed", path=str(self.file_path))

    async def delete(self) -> bool:
        """Remove the record. Absence is not an error.

        Returns:
            True if a record was removed

        Raises:
            PersistenceError: If the file exists but cannot be removed
        """
        try:
            await asyncio.to_thread(self.file_path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(
                f"Error deleting credentials file {self.file_path}: {e}"
            ) from e
        logger.debug("credentials_deleted", path=str(self.file_path))
        return True
