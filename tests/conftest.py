import os

# Keep app import side effects away from real services
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_NOTIFICATION_WORKER", "0")
os.environ.setdefault("SEED_DEFAULT_ADMIN", "0")
os.environ.setdefault("SEED_SAMPLE_DATA", "0")
os.environ.setdefault("ENABLE_CREATE_ALL", "0")

import threading
import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coursehub.db.queue import WorkQueue
from coursehub.models import Base

REMINDERS = "facilitator_reminders"
ALERTS = "manager_notifications"
DEAD_LETTER = "notifications_dead_letter"


class ListRedis:
    """In-process double for the Redis list commands used by WorkQueue."""

    def __init__(self):
        self.lists = {}
        self.cond = threading.Condition()

    def lpush(self, name, *values):
        with self.cond:
            lst = self.lists.setdefault(name, [])
            for v in values:
                lst.insert(0, v)
            self.cond.notify_all()
            return len(lst)

    def rpush(self, name, *values):
        with self.cond:
            lst = self.lists.setdefault(name, [])
            lst.extend(values)
            self.cond.notify_all()
            return len(lst)

    def brpop(self, keys, timeout=0):
        deadline = time.monotonic() + timeout if timeout else None
        with self.cond:
            while True:
                for k in keys:
                    if self.lists.get(k):
                        return (k, self.lists[k].pop())
                if deadline is None:
                    self.cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self.cond.wait(remaining)

    def llen(self, name):
        with self.cond:
            return len(self.lists.get(name, []))

    def ping(self):
        return True

    def pending(self, name):
        """Items in pop order (head first)."""
        with self.cond:
            return list(reversed(self.lists.get(name, [])))


@pytest.fixture()
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def redis_client():
    return ListRedis()


@pytest.fixture()
def reminders(redis_client):
    return WorkQueue(redis_client, REMINDERS, DEAD_LETTER)


@pytest.fixture()
def alerts(redis_client):
    return WorkQueue(redis_client, ALERTS, DEAD_LETTER)


@pytest.fixture()
def sent():
    """Collects messages handed to the transport."""
    return []


@pytest.fixture()
def client(session_factory, alerts):
    from fastapi.testclient import TestClient

    from coursehub.core.auth import get_db
    from coursehub.db.queue import get_alert_queue
    from coursehub.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_alert_queue] = lambda: alerts
    yield TestClient(app)
    app.dependency_overrides.clear()
