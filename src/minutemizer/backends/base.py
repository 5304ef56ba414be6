from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

Observer = Callable[[Optional[bytes]], None]


class BackendError(RuntimeError):
    """Raised when a backend cannot read or write its storage."""


class KeyValueBackend(ABC):
    """
    Generic persistent key-value storage with change notification.

    - `get`/`set`/`remove` operate on raw bytes under string keys.
    - `observe(key, callback)` registers a callback invoked after every
      successful write or removal of `key` made through this instance. The
      callback receives the new value, or `None` once the key is gone.
    - Callbacks run synchronously on the writing thread, in registration order.
      A failing callback is logged and does not stop delivery to the others.

    Subclasses provide the storage primitives `_read`, `_write`, `_delete`
    and `_keys`.
    """

    def __init__(self) -> None:
        self._observers: Dict[str, List[Observer]] = {}
        self._observers_lock = threading.Lock()

    # -------- Storage primitives --------
    @abstractmethod
    def _read(self, key: str) -> Optional[bytes]:
        ...

    @abstractmethod
    def _write(self, key: str, value: bytes) -> None:
        ...

    @abstractmethod
    def _delete(self, key: str) -> bool:
        """Delete `key`; return whether it existed."""

    @abstractmethod
    def _keys(self) -> Iterable[str]:
        ...

    # -------- Public API --------
    def get(self, key: str) -> Optional[bytes]:
        return self._read(key)

    def set(self, key: str, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("value must be bytes")
        data = bytes(value)
        self._write(key, data)
        logger.debug("Stored %d bytes under %r", len(data), key)
        self._notify(key, data)

    def remove(self, key: str) -> None:
        if self._delete(key):
            logger.debug("Removed %r", key)
            self._notify(key, None)

    def clear(self) -> None:
        """Remove every key held by this backend."""
        removed = [key for key in list(self._keys()) if self._delete(key)]
        for key in removed:
            self._notify(key, None)

    def observe(self, key: str, callback: Observer) -> Callable[[], None]:
        """Register `callback` for changes of `key`; returns an unsubscribe callable."""
        with self._observers_lock:
            self._observers.setdefault(key, []).append(callback)

        def _unsubscribe() -> None:
            with self._observers_lock:
                callbacks = self._observers.get(key, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._observers.pop(key, None)

        return _unsubscribe

    def _notify(self, key: str, value: Optional[bytes]) -> None:
        with self._observers_lock:
            callbacks = list(self._observers.get(key, ()))
        for callback in callbacks:
            try:
                callback(value)
            except Exception:
                logger.exception("Observer for %r failed", key)
