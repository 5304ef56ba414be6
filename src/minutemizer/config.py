from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from .backends.base import KeyValueBackend
from .backends.file import JsonFileBackend
from .backends.memory import DEFAULT_SUITE, InMemoryBackend


# Environment variable names
ENV_BACKEND = "MINUTEMIZER_BACKEND"  # memory | file | s3; defaults to memory
ENV_SUITE = "MINUTEMIZER_SUITE"  # optional; defaults to "default"
ENV_STATE_FILE = "MINUTEMIZER_STATE_FILE"  # optional; defaults to ~/.minutemizer/<suite>.json

BACKEND_MEMORY = "memory"
BACKEND_FILE = "file"
BACKEND_S3 = "s3"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def default_state_file(suite: str) -> Path:
    return Path.home() / ".minutemizer" / f"{suite}.json"


def backend_from_env() -> KeyValueBackend:
    """Build the backend selected by `MINUTEMIZER_BACKEND`."""
    kind = (_getenv(ENV_BACKEND, BACKEND_MEMORY) or BACKEND_MEMORY).lower()
    suite = _getenv(ENV_SUITE, DEFAULT_SUITE) or DEFAULT_SUITE

    if kind == BACKEND_MEMORY:
        return InMemoryBackend.shared(suite)
    if kind == BACKEND_FILE:
        path = _getenv(ENV_STATE_FILE)
        return JsonFileBackend(path or default_state_file(suite))
    if kind == BACKEND_S3:
        from .backends.s3 import S3Backend

        return S3Backend.from_env()
    raise RuntimeError(
        f"Unsupported {ENV_BACKEND} value {kind!r}; expected one of "
        f"{BACKEND_MEMORY}, {BACKEND_FILE}, {BACKEND_S3}"
    )
