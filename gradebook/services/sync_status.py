import time
from typing import Optional

import redis
from django.conf import settings

IDLE = "idle"
SYNCING = "syncing"
SYNCED = "synced"
ERROR = "error"

STATUS_KEY = "sync:status"
QUEUED_KEY = "sync:queued"


def _client():
    """
    Reuse the Celery broker when it is Redis, otherwise fallback to localhost.
    """
    url = getattr(settings, "SYNC_REDIS_URL", None) or getattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
    return redis.Redis.from_url(url)


def set_status(status: str, error: Optional[str] = None):
    cli = _client()
    cli.hset(STATUS_KEY, mapping={"status": status, "error": error or "", "updated_at": time.time()})


def reset_status():
    cli = _client()
    pipe = cli.pipeline()
    pipe.delete(STATUS_KEY, QUEUED_KEY)
    pipe.hset(STATUS_KEY, mapping={"status": IDLE, "error": "", "updated_at": time.time()})
    pipe.execute()


def claim_push_slot(window_seconds: int) -> bool:
    """
    True for the first caller inside the debounce window; later callers are
    folded into the push already queued.
    """
    cli = _client()
    return bool(cli.set(QUEUED_KEY, time.time(), nx=True, ex=max(int(window_seconds), 1)))


def release_push_slot():
    _client().delete(QUEUED_KEY)


def get_status() -> Optional[dict]:
    """
    Returns the last known sync status from Redis. If Redis is unreachable, returns None.
    """
    try:
        raw = _client().hgetall(STATUS_KEY)
    except redis.RedisError:
        return None
    if not raw:
        return {"status": IDLE, "error": None, "updated_at": None}
    updated = raw.get(b"updated_at")
    return {
        "status": raw.get(b"status", IDLE.encode()).decode(),
        "error": raw.get(b"error", b"").decode() or None,
        "updated_at": float(updated) if updated else None,
    }
