"""
JSON File Storage Implementation

DESIGN DECISION: Each key is one file in a data directory. This is the
desktop equivalent of the phone's key-value store:
1. No database setup required
2. The user can open and back up their data with any text editor
3. One file per key keeps a bad write from touching other keys

TRADEOFFS:
- Whole-file rewrite on every save (fine for one personal ledger)
- No locking across processes (the app is single-user, single-process)

Writes go to a temp file in the same directory and are moved into place
with os.replace, so a reader sees either the old file or the new one.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kubera.config import get_settings
from kubera.services.storage.interface import (
    CorruptDocumentError,
    KeyValueStorageInterface,
    PersistenceError,
)


FILE_SUFFIX = ".json"


class JsonFileStorage(KeyValueStorageInterface):
    """
    File-per-key implementation of key-value storage.

    Transient OSErrors on write are retried with exponential backoff
    before being reported as PersistenceError.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        retry_attempts: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._data_dir = Path(data_dir or settings.data_dir)
        self._retry_attempts = retry_attempts or settings.retry_attempts

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise PersistenceError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{FILE_SUFFIX}"

    def _write_atomic(self, path: Path, value: str) -> None:
        """Write to a temp file then move it over the target."""
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._data_dir,
            prefix=f".{path.stem}-",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            # The previous file is untouched; only the temp file needs cleanup
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def get_item(self, key: str) -> Optional[str]:
        """Read a key's file, or None if it was never written."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise CorruptDocumentError(f"{key} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Failed to read {key}: {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        """Atomically replace a key's file."""
        path = self._path(key)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write_atomic(path, value)
        except OSError as e:
            raise PersistenceError(f"Failed to write {key}: {e}") from e

    async def remove_item(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Failed to remove {key}: {e}") from e
