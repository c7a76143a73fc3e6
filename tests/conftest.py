import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


# Ensure repo root is importable so `printqueue.*` works
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from printqueue.api.main import create_app  # noqa: E402
from printqueue.common.clock import Clock  # noqa: E402
from printqueue.db.repository import JobRepository  # noqa: E402
from printqueue.db.session import open_store  # noqa: E402
from printqueue.services.notifier import Notifier  # noqa: E402
from printqueue.services.queue import QueueService  # noqa: E402


class StepClock(Clock):
    """Advances one second per reading so every write gets a distinct stamp."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def now(self):
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def store(tmp_path):
    s = open_store([tmp_path / "queue" / "tasks.db"])
    yield s
    s.dispose()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def repo(store, clock):
    return JobRepository(store, clock)


@pytest.fixture
def events():
    return []


@pytest.fixture
def notifier(events):
    n = Notifier()
    n.subscribe(lambda name, payload: events.append((name, payload)))
    return n


@pytest.fixture
def queue(repo, notifier):
    return QueueService(repo, notifier)


@pytest.fixture
def client(queue):
    with TestClient(create_app(queue)) as c:
        yield c
