"""
Key-value backends the minutemen store persists into.

- base: the `KeyValueBackend` contract and change notification
- memory: process-local dict storage with named suites
- file: a single JSON file per suite
- s3: Fernet-encrypted objects in an S3 bucket
"""

from .base import BackendError, KeyValueBackend
from .file import JsonFileBackend
from .memory import InMemoryBackend

__all__ = [
    "BackendError",
    "InMemoryBackend",
    "JsonFileBackend",
    "KeyValueBackend",
]
