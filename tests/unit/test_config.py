from __future__ import annotations

import pytest

from minutemizer import config
from minutemizer.backends.file import JsonFileBackend
from minutemizer.backends.memory import InMemoryBackend


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        config.ENV_BACKEND,
        config.ENV_SUITE,
        config.ENV_STATE_FILE,
        "MINUTEMIZER_S3_BUCKET",
        "MINUTEMIZER_FERNET_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_to_shared_memory_suite():
    backend = config.backend_from_env()
    assert isinstance(backend, InMemoryBackend)
    assert backend is InMemoryBackend.shared("default")


def test_memory_suite_from_env(monkeypatch):
    monkeypatch.setenv(config.ENV_SUITE, "config-test")
    assert config.backend_from_env() is InMemoryBackend.shared("config-test")


def test_file_backend_uses_configured_path(monkeypatch, tmp_path):
    path = tmp_path / "minutemen.json"
    monkeypatch.setenv(config.ENV_BACKEND, "FILE")
    monkeypatch.setenv(config.ENV_STATE_FILE, str(path))
    backend = config.backend_from_env()
    assert isinstance(backend, JsonFileBackend)
    assert backend.path == path


def test_file_backend_default_path(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv(config.ENV_BACKEND, "file")
    monkeypatch.setenv(config.ENV_SUITE, "work")
    backend = config.backend_from_env()
    assert backend.path == tmp_path / ".minutemizer" / "work.json"


def test_s3_backend_requires_env(monkeypatch):
    monkeypatch.setenv(config.ENV_BACKEND, "s3")
    with pytest.raises(RuntimeError):
        config.backend_from_env()


def test_unknown_backend_raises(monkeypatch):
    monkeypatch.setenv(config.ENV_BACKEND, "redis")
    with pytest.raises(RuntimeError) as exc_info:
        config.backend_from_env()
    assert "redis" in str(exc_info.value)


def test_blank_backend_falls_back_to_memory(monkeypatch):
    monkeypatch.setenv(config.ENV_BACKEND, "")
    assert config.backend_from_env() is InMemoryBackend.shared("default")
