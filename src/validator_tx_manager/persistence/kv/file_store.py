# -*- coding: utf-8 -*-
"""Directory-backed key-value store: one file per key, written atomically."""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from validator_tx_manager.exceptions import PersistenceError
from validator_tx_manager.persistence.kv.base import IKeyValueStore

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.\-]+$")


def _atomic_write(path: Path, blob: bytes) -> None:
    """Write to a temp file in the same directory, then rename over path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(blob)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class FileKeyValueStore(IKeyValueStore):
    """Stores each key as `<directory>/<key>.json`. File I/O runs in a worker thread."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._dir = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise PersistenceError(f"Invalid storage key: {key!r}", key=key)
        return self._dir / f"{key}.json"

    async def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}", key=key, cause=e) from e

    async def set(self, key: str, blob: bytes) -> None:
        path = self._path(key)
        try:
            await asyncio.to_thread(_atomic_write, path, bytes(blob))
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}", key=key, cause=e) from e
