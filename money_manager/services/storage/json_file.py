"""
JSON File Storage Implementation

DESIGN DECISION: The default durable backend is one JSON file per key.
1. Works offline with zero setup
2. Human-readable, easy to back up or inspect
3. Atomic writes (temp file + rename) so a crash never leaves half a file

File I/O runs on a worker thread so the event loop is never blocked.
Transient OS errors are retried; decode errors are not.
"""

import asyncio
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from money_manager.services.storage.interface import (
    CorruptDataError,
    KeyValueStorageInterface,
    StorageConnectionError,
    StorageError,
)


_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileKeyValueStorage(KeyValueStorageInterface):
    """
    Stores each key as `<data_dir>/<key>.json`.

    The file holds a JSON array of record objects.
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        retry_attempts: int = 3,
        retry_wait_max: float = 2.0,
    ):
        self._data_dir = Path(data_dir)
        self._retry_attempts = retry_attempts
        self._retry_wait_max = retry_wait_max

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """File path holding the value for a key."""
        safe_name = _UNSAFE_FILENAME_CHARS.sub("_", key)
        return self._data_dir / f"{safe_name}.json"

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.1, max=self._retry_wait_max),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    @staticmethod
    def _read(path: Path) -> Optional[bytes]:
        if not path.exists():
            return None
        return path.read_bytes()

    @staticmethod
    def _write(path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.stem}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def load(self, key: str) -> Optional[list[dict]]:
        """Load records from the key's file."""
        path = self.path_for(key)
        try:
            async for attempt in self._retrying():
                with attempt:
                    raw = await asyncio.to_thread(self._read, path)
        except OSError as e:
            raise StorageConnectionError(f"Failed to read {path}: {e}")

        if raw is None:
            return None

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
            raise CorruptDataError(f"Invalid JSON in {path}: {e}")

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise CorruptDataError(f"Expected a list of records in {path}")

        return data

    async def save(self, key: str, records: list[dict]) -> bool:
        """Atomically overwrite the key's file."""
        path = self.path_for(key)
        try:
            payload = json.dumps(records, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Records are not JSON serializable: {e}")

        try:
            async for attempt in self._retrying():
                with attempt:
                    await asyncio.to_thread(self._write, path, payload)
        except OSError as e:
            raise StorageConnectionError(f"Failed to write {path}: {e}")

        return True
