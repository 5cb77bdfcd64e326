import os
from pathlib import Path
from typing import Tuple

import boto3
from django.conf import settings
from django.utils import timezone


def backup_filename(now=None) -> str:
    now = now or timezone.localtime()
    return f"gradebook-backup-{now:%Y-%m-%d_%H%M%S}.json"


def _store_local(filename: str, payload: bytes) -> Tuple[str, str]:
    base_path: Path = Path(settings.BACKUP_STORAGE_PATH)
    base_path.mkdir(parents=True, exist_ok=True)
    dest = base_path / filename
    dest.write_bytes(payload)
    url = os.path.join(settings.BACKUP_BASE_URL, filename)
    return url, str(dest)


def _store_s3(filename: str, payload: bytes) -> Tuple[str, str]:
    session = boto3.session.Session(
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=getattr(settings, "AWS_REGION", None),
    )
    client = session.client("s3", endpoint_url=settings.AWS_S3_ENDPOINT_URL)
    key = f"{settings.BACKUP_S3_PREFIX.strip('/')}/{filename}" if settings.BACKUP_S3_PREFIX else filename
    client.put_object(Bucket=settings.AWS_STORAGE_BUCKET_NAME, Key=key, Body=payload, ContentType="application/json")
    endpoint = (settings.AWS_S3_ENDPOINT_URL or "").rstrip("/")
    url = f"{endpoint}/{settings.AWS_STORAGE_BUCKET_NAME}/{key}" if endpoint else f"s3://{settings.AWS_STORAGE_BUCKET_NAME}/{key}"
    return url, key


def store_backup(filename: str, payload: bytes) -> Tuple[str, str]:
    """Returns (url, path or object key) of the stored backup."""
    if getattr(settings, "BACKUP_STORAGE", "local") == "s3":
        return _store_s3(filename, payload)
    return _store_local(filename, payload)
