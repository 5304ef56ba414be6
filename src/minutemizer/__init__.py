"""
Minutemizer: a small persisted list of minutemen to pick from at random.

- models: the `Minuteman` record and its JSON codecs
- store: the `Minutemizer` store, its errors and subscriptions
- backends: key-value storage the store persists into
"""

from .backends import BackendError, InMemoryBackend, JsonFileBackend, KeyValueBackend
from .models import Minuteman, MinutemenDecodeError, MinutemenEncodeError
from .store import (
    LAST_MINUTEMAN_KEY,
    MINUTEMEN_LIST_KEY,
    EmptyListError,
    Minutemizer,
    MinutemizerError,
    Subscription,
)

__all__ = [
    "BackendError",
    "EmptyListError",
    "InMemoryBackend",
    "JsonFileBackend",
    "KeyValueBackend",
    "LAST_MINUTEMAN_KEY",
    "MINUTEMEN_LIST_KEY",
    "Minuteman",
    "MinutemenDecodeError",
    "MinutemenEncodeError",
    "Minutemizer",
    "MinutemizerError",
    "Subscription",
]
