"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- Environment isolation (no real API keys or .env leakage)
- Test recording files of a chosen size
- A Config instance with zero retry delays
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from voicenotes.config import Config, reset_config
from voicenotes.utils.logging_factory import LoggingFactory

_ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "COMPLETION_PROVIDER",
    "SUMMARY_OPTIONS",
    "SUMMARY_VERBOSITY",
    "MAX_TOKENS_PER_CHUNK",
    "DISABLE_MODERATION",
    "LOG_DIR",
    "LOG_LEVEL",
    "VERBOSE",
    "MAX_API_RETRIES",
    "API_RETRY_DELAY",
    "MAX_RETRY_DELAY",
    "TEMP_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Ensure configuration comes only from what each test sets."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
    LoggingFactory.reset()


@pytest.fixture
def make_audio_file(tmp_path: Path) -> Callable[..., Path]:
    """Create a recording of ``size_bytes`` bytes (sparse, so large sizes are cheap).

    Returns:
        Factory taking (name, size_bytes) and returning the file path
    """

    def _make(name: str = "recording.mp3", size_bytes: int = 1024) -> Path:
        path = tmp_path / name
        with path.open("wb") as f:
            f.write(b"\xff\xfb\x90\x00")
            f.truncate(size_bytes)
        return path

    return _make


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config with test keys, a private temp root and no retry delays."""
    return Config(
        OPENAI_API_KEY="sk-test",
        ANTHROPIC_API_KEY="sk-ant-test",
        temp_dir=tmp_path / "scratch",
        log_dir=None,
        retry_delay=0.0,
        max_retry_delay=0.0,
        transcription_min_interval=0.0,
    )
