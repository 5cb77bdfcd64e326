import logging

import redis
from celery import shared_task
from django.conf import settings

from gradebook.services import sync_status
from gradebook.services.cloud import CloudSyncError, is_configured, upload_all

logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(CloudSyncError,), retry_backoff=5, max_retries=3)
def push_to_cloud(self):
    sync_status.release_push_slot()
    sync_status.set_status(sync_status.SYNCING)
    logger.info("Start push_to_cloud", extra={"attempt": self.request.retries})
    try:
        uploaded = upload_all()
    except CloudSyncError as exc:
        sync_status.set_status(sync_status.ERROR, str(exc))
        logger.warning("Cloud push failed", extra={"error": str(exc), "attempt": self.request.retries})
        raise
    sync_status.set_status(sync_status.SYNCED)
    logger.info("Cloud push done", extra={"uploaded": uploaded})
    return uploaded


def queue_cloud_push() -> bool:
    """
    Schedule a push after the debounce window. Writes arriving inside the
    window share the push already queued. Never raises: local writes must not
    fail because the broker or the cloud is down.
    """
    if not is_configured():
        return False
    debounce = int(getattr(settings, "CLOUD_SYNC_DEBOUNCE_SECONDS", 1))
    try:
        if not sync_status.claim_push_slot(debounce):
            return False
        push_to_cloud.apply_async(countdown=debounce)
    except (redis.RedisError, push_to_cloud.OperationalError) as exc:
        logger.warning("Unable to queue cloud push: %s", exc)
        return False
    return True
