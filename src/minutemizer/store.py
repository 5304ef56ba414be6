from __future__ import annotations

import logging
import random
from typing import Callable, Iterable, List, Optional, Union

from .backends.base import KeyValueBackend
from .models import (
    Minuteman,
    MinutemenDecodeError,
    decode_minuteman,
    decode_minutemen,
    encode_minuteman,
    encode_minutemen,
)

logger = logging.getLogger(__name__)

MINUTEMEN_LIST_KEY = "minutemen list"
LAST_MINUTEMAN_KEY = "last minuteman"

MinutemenArg = Union[Minuteman, Iterable[Minuteman]]
ListListener = Callable[[List[Minuteman]], None]
PickListener = Callable[[Optional[Minuteman]], None]


class MinutemizerError(Exception):
    """Base error for minutemen list operations."""


class EmptyListError(MinutemizerError):
    """Raised when deleting from a list that is absent or already empty."""


class Subscription:
    """Handle returned by `Minutemizer.subscribe*`; also usable as a context manager."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Optional[Callable[[], None]] = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        if self._cancel is not None:
            cancel, self._cancel = self._cancel, None
            cancel()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


def _as_list(minutemen: MinutemenArg) -> List[Minuteman]:
    if isinstance(minutemen, Minuteman):
        return [minutemen]
    return list(minutemen)


class Minutemizer:
    """
    Persistent minutemen list on top of a key-value backend.

    Storage
    - "minutemen list": JSON array of minuteman records, in insertion order.
      Duplicates are allowed.
    - "last minuteman": JSON record of the last pick, or `null` when the last
      pick found an empty list.

    All read-modify-write operations decode and validate before writing, so a
    failing call never leaves a partial update behind. There is no locking:
    concurrent writers through different stores follow last-write-wins.
    """

    def __init__(self, backend: KeyValueBackend, *, rng: Optional[random.Random] = None) -> None:
        self._backend = backend
        self._rng = rng or random.Random()

    @classmethod
    def from_env(cls) -> "Minutemizer":
        from .config import backend_from_env

        return cls(backend_from_env())

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    # -------- Reading --------
    def current_list(self) -> List[Minuteman]:
        """Return the stored minutemen, or `[]` if nothing was stored yet."""
        return decode_minutemen(self._backend.get(MINUTEMEN_LIST_KEY) or b"")

    def last_picked(self) -> Optional[Minuteman]:
        return decode_minuteman(self._backend.get(LAST_MINUTEMAN_KEY) or b"")

    def pick_one(self) -> Optional[Minuteman]:
        """Pick a minuteman uniformly at random and remember it as the last pick.

        The last pick is overwritten even when the list is empty, in which case
        it is reset to `null` and `None` is returned.
        """
        minutemen = self.current_list()
        picked = self._rng.choice(minutemen) if minutemen else None
        self._backend.set(LAST_MINUTEMAN_KEY, encode_minuteman(picked))
        if picked is None:
            logger.debug("Picked nobody: the minutemen list is empty")
        else:
            logger.debug("Picked minuteman %s out of %d", picked.id, len(minutemen))
        return picked

    # -------- Handling the list --------
    def add(self, minutemen: MinutemenArg) -> None:
        """Append one minuteman or several, in order, without deduplication."""
        added = _as_list(minutemen)
        updated = self.current_list() + added
        self._backend.set(MINUTEMEN_LIST_KEY, encode_minutemen(updated))
        logger.debug("Added %d minutemen; list size is now %d", len(added), len(updated))

    def delete(self, minutemen: MinutemenArg) -> None:
        """Remove every stored minuteman sharing an id with one of `minutemen`.

        Raises:
        - EmptyListError if the stored list is absent or empty.
        """
        stored = self.current_list()
        if not stored:
            raise EmptyListError("Cannot delete from an empty minutemen list")
        doomed = set(_as_list(minutemen))
        remaining = [m for m in stored if m not in doomed]
        self._backend.set(MINUTEMEN_LIST_KEY, encode_minutemen(remaining))
        logger.debug("Deleted %d minutemen; list size is now %d", len(stored) - len(remaining), len(remaining))

    def delete_all(self) -> None:
        """Completely delete the list and the last pick."""
        self._backend.remove(MINUTEMEN_LIST_KEY)
        self._backend.remove(LAST_MINUTEMAN_KEY)

    # -------- Observing --------
    def subscribe(self, listener: ListListener) -> Subscription:
        """Call `listener` with the current list now and after every change of it.

        A removed list is delivered as `[]`. Updates that fail to decode are
        logged and dropped; the subscription stays active.
        """
        return self._observe(MINUTEMEN_LIST_KEY, decode_minutemen, listener)

    def subscribe_last_picked(self, listener: PickListener) -> Subscription:
        """Like `subscribe`, for the last picked minuteman."""
        return self._observe(LAST_MINUTEMAN_KEY, decode_minuteman, listener)

    def _observe(self, key: str, decode: Callable[[bytes], object], listener: Callable) -> Subscription:
        def _deliver(raw: Optional[bytes]) -> None:
            try:
                value = decode(raw or b"")
            except MinutemenDecodeError:
                logger.warning("Dropping malformed update for %r", key, exc_info=True)
                return
            listener(value)

        _deliver(self._backend.get(key))
        return Subscription(self._backend.observe(key, _deliver))
