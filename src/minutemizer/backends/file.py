from __future__ import annotations

import base64
import binascii
import json
import os
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional
from uuid import uuid4

from .base import BackendError, KeyValueBackend


class JsonFileBackend(KeyValueBackend):
    """
    Backend persisting a whole suite in a single JSON file.

    - File layout: { key: base64(value), ... }
    - A missing file reads as an empty suite.
    - Every write rewrites the file through a temp file + rename, so readers
      never observe a half-written document.
    - The file is re-read on each access; other instances (or processes)
      pointing at the same path see each other's writes.
    """

    def __init__(self, path: os.PathLike[str] | str) -> None:
        super().__init__()
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as ex:
            raise BackendError(f"Failed to read storage file {self._path}") from ex
        if not isinstance(raw, dict):
            raise BackendError(f"Storage file {self._path} does not hold a JSON object")
        return {str(k): str(v) for k, v in raw.items()}

    def _save(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(f"{self._path.name}.tmp-{uuid4().hex}")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
        except OSError as ex:
            tmp.unlink(missing_ok=True)
            raise BackendError(f"Failed to write storage file {self._path}") from ex

    def _read(self, key: str) -> Optional[bytes]:
        with self._lock:
            encoded = self._load().get(key)
        if encoded is None:
            return None
        try:
            return base64.b64decode(encoded.encode("ascii"), validate=True)
        except (UnicodeEncodeError, binascii.Error) as ex:
            raise BackendError(f"Corrupt value for {key!r} in {self._path}") from ex

    def _write(self, key: str, value: bytes) -> None:
        with self._lock:
            data = self._load()
            data[key] = base64.b64encode(value).decode("ascii")
            self._save(data)

    def _delete(self, key: str) -> bool:
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            self._save(data)
            return True

    def _keys(self) -> Iterable[str]:
        with self._lock:
            return list(self._load())
