from __future__ import annotations

import threading
from typing import ClassVar, Dict, Iterable, List, Optional

from .base import KeyValueBackend


DEFAULT_SUITE = "default"


class InMemoryBackend(KeyValueBackend):
    """
    Process-local backend keeping values in a dict.

    Each instance is an isolated suite. `InMemoryBackend.shared(name)` returns
    one process-wide instance per suite name, for callers that want the
    "standard" storage rather than an injected one.
    """

    _shared: ClassVar[Dict[str, "InMemoryBackend"]] = {}
    _shared_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, suite: str = DEFAULT_SUITE) -> None:
        super().__init__()
        self.suite = suite
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    @classmethod
    def shared(cls, suite: str = DEFAULT_SUITE) -> "InMemoryBackend":
        with cls._shared_lock:
            backend = cls._shared.get(suite)
            if backend is None:
                backend = cls(suite)
                cls._shared[suite] = backend
            return backend

    def _read(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def _write(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def _delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def _keys(self) -> Iterable[str]:
        with self._lock:
            keys: List[str] = list(self._data)
        return keys
