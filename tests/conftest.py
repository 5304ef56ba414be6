import os
import random
import sys

import pytest


def pytest_configure():
    # Ensure `src/` is importable as top-level for `minutemizer.*` imports
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture
def backend():
    from minutemizer.backends.memory import InMemoryBackend

    return InMemoryBackend("UnitTest")


@pytest.fixture
def minutemizer(backend):
    from minutemizer.store import Minutemizer

    return Minutemizer(backend, rng=random.Random(1234))


@pytest.fixture
def harry_potter():
    from minutemizer.models import Minuteman

    def _make():
        return Minuteman(first_name="Harry", second_name="Potter", middle_name="James")

    return _make
