# coursehub/db/queue.py
"""
Redis list-backed work queues.

Producers LPUSH onto the tail, the single consumer per queue BRPOPs from the
head, which keeps each queue FIFO. Pop-and-remove is atomic on the Redis side.
Payloads that fail validation are moved to a dead-letter list together with
the error and the queue they came from.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from redis import Redis, ConnectionPool

from coursehub.core.config import get_settings
from coursehub.schemas.notification import AlertItem, ReminderItem

log = logging.getLogger("coursehub.queue")

# Global connection pool (initialized on first use)
_connection_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


def get_redis_client() -> Redis:
    """Get or create the shared Redis client."""
    global _connection_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    if _connection_pool is None:
        _connection_pool = ConnectionPool.from_url(
            get_settings().REDIS_URL,
            decode_responses=True,
            max_connections=10,
            socket_connect_timeout=5,
            health_check_interval=30,
        )
        log.info("redis connection pool created url=%s", get_settings().REDIS_URL)

    _redis_client = Redis(connection_pool=_connection_pool)
    return _redis_client


class WorkQueue:
    """One named Redis list used as a FIFO queue."""

    def __init__(self, client: Redis, name: str, dead_letter: Optional[str] = None):
        self.client = client
        self.name = name
        self.dead_letter = dead_letter

    def push(self, item: Union[ReminderItem, AlertItem]) -> None:
        self.client.lpush(self.name, item.to_json())

    def pop(self, timeout: float) -> Optional[str]:
        """
        Block up to `timeout` seconds for the oldest item.
        Returns the raw payload, or None when the wait timed out.
        """
        res = self.client.brpop([self.name], timeout=timeout)
        if not res:
            return None
        _key, raw = res
        return raw

    def requeue(self, raw: str) -> None:
        """Put a popped payload back at the head so it is the next one out."""
        self.client.rpush(self.name, raw)

    def __len__(self) -> int:
        return int(self.client.llen(self.name))

    def send_to_dead_letter(self, raw: str, error: str) -> None:
        if not self.dead_letter:
            log.warning("dropping malformed payload from %s (no dead-letter list): %s", self.name, error)
            return
        record = {
            "queue": self.name,
            "payload": raw,
            "error": error,
            "failed_at": datetime.now(timezone.utc).isoformat(),
        }
        self.client.lpush(self.dead_letter, json.dumps(record, ensure_ascii=False))


def reminder_queue(client: Optional[Redis] = None) -> WorkQueue:
    s = get_settings()
    return WorkQueue(client or get_redis_client(), s.REMINDER_QUEUE, s.DEAD_LETTER_QUEUE)


def alert_queue(client: Optional[Redis] = None) -> WorkQueue:
    s = get_settings()
    return WorkQueue(client or get_redis_client(), s.ALERT_QUEUE, s.DEAD_LETTER_QUEUE)


def get_alert_queue() -> WorkQueue:
    """FastAPI dependency for the alert producer side."""
    return alert_queue()
