"""Shared fixtures for chunkwise tests.

Provides a controllable clock, a scripted summarization provider and a
config fixture that never reads the developer's real config files.
"""

import os

import pytest

from chunkwise.config import SummarizerConfig, set_config
from tests.fakes import FakeClock, FakeProvider


@pytest.fixture
def fake_clock():
    """A FakeClock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def fake_provider():
    """A FakeProvider answering every request with 'summary'."""
    return FakeProvider()


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Point HOME/XDG at an empty temp dir and clear chunkwise env vars."""
    for key in list(os.environ):
        if key.startswith("CHUNKWISE_") or key == "ANTHROPIC_API_KEY":
            monkeypatch.delenv(key, raising=False)
    (tmp_path / "home").mkdir()
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    set_config(None)


@pytest.fixture
def test_config():
    """Small limits so chunking paths are reachable with short inputs."""
    return SummarizerConfig(
        api_key="sk-test",
        max_chunk_size=200,
        small_content_threshold=150,
        small_chunk_count_threshold=2,
        max_chunks_total=10,
        max_concurrent_requests=3,
        task_timeout=5.0,
        chunk_task_retries=0,
        max_retries=0,
    )
