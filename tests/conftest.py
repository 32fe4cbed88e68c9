"""Shared test fixtures for quotesync."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from observability import metrics  # noqa: E402
from records.store import LocalStore  # noqa: E402

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "quotes.db")


@pytest.fixture
def spy_store(store):
    """LocalStore wrapped so save/load calls can be counted."""
    return MagicMock(wraps=store)


@pytest.fixture
def remote():
    """Remote store client double: empty remote, push echoes with server ids."""
    mock = MagicMock()
    mock.fetch.return_value = []

    def push(records):
        from dataclasses import replace

        return [replace(r, remote_id=r.remote_id or f"srv-{r.id}") for r in records]

    mock.push.side_effect = push
    return mock


@pytest.fixture
def clock():
    """Deterministic timestamps, one minute apart."""
    ticks = iter(T0 + timedelta(minutes=i) for i in range(10_000))
    return lambda: next(ticks)
