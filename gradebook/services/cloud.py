"""
Optional cloud copy of the gradebook on a hosted Supabase (PostgREST) backend.

The local database stays the source of truth; the cloud is a backup reachable
from other devices.
"""
import logging
from typing import Optional

import requests
from django.conf import settings

from gradebook.services.backup import COLLECTIONS, export_data

logger = logging.getLogger(__name__)

# remote table -> backup collection, parents first
SYNC_TABLES = [
    ("classes", "classes"),
    ("students", "students"),
    ("casas_tests", "casas_tests"),
    ("unit_tests", "unit_tests"),
    ("attendance", "attendance"),
    ("report_cards", "report_cards"),
    ("student_notes", "notes"),
    ("isst_records", "isst_records"),
]
# created later than the others on most deployments; a missing table is not an error
OPTIONAL_TABLES = {"student_notes", "isst_records"}
PLACEHOLDER_MARKERS = ("your-project", "your-anon-key", "placeholder")
REMOTE_COLUMN_NAMES = {"klass_id": "class_id"}


class CloudSyncError(Exception):
    pass


def is_configured() -> bool:
    url = getattr(settings, "SUPABASE_URL", "") or ""
    key = getattr(settings, "SUPABASE_ANON_KEY", "") or ""
    if not url or not key:
        return False
    return not any(marker in url or marker in key for marker in PLACEHOLDER_MARKERS)


def _session() -> requests.Session:
    key = settings.SUPABASE_ANON_KEY
    session = requests.Session()
    session.headers.update({"apikey": key, "Authorization": f"Bearer {key}"})
    return session


def _table_url(table: str) -> str:
    return f"{settings.SUPABASE_URL.rstrip('/')}/rest/v1/{table}"


def _timeout() -> float:
    return float(getattr(settings, "SUPABASE_TIMEOUT_SECONDS", 10))


def _parse_count(content_range: Optional[str]) -> Optional[int]:
    # PostgREST answers "0-24/3573" or "*/0"
    if not content_range or "/" not in content_range:
        return None
    total = content_range.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None


def _inspect_table(session: requests.Session, table: str) -> dict:
    try:
        resp = session.head(
            _table_url(table),
            params={"select": "id"},
            headers={"Prefer": "count=exact", "Range": "0-0"},
            timeout=_timeout(),
        )
    except requests.RequestException as exc:
        return {"name": table, "exists": False, "row_count": None, "error": f"Failed to query table: {exc}"}
    if resp.status_code >= 400:
        return {"name": table, "exists": False, "row_count": None, "error": resp.reason or "Table not found"}
    return {"name": table, "exists": True, "row_count": _parse_count(resp.headers.get("Content-Range")) or 0, "error": None}


def check_connection() -> dict:
    """
    Whether a backend is configured, reachable, and which sync tables exist
    with their row counts. Never raises: failures show up as `connected: False`.
    """
    result = {"configured": is_configured(), "connected": False, "tables": [], "error": None}
    if not result["configured"]:
        return result

    session = _session()
    try:
        resp = session.get(_table_url("classes"), params={"select": "id", "limit": 1}, timeout=_timeout())
        result["connected"] = resp.status_code < 400
        if not result["connected"]:
            result["error"] = f"HTTP {resp.status_code}: {resp.reason}"
    except requests.RequestException as exc:
        logger.warning("Cloud backend unreachable: %s", exc)
        result["error"] = str(exc)
    if not result["connected"]:
        return result

    result["tables"] = [_inspect_table(session, table) for table, _collection in SYNC_TABLES]
    return result


def _remote_row(row: dict) -> dict:
    return {REMOTE_COLUMN_NAMES.get(k, k): v for k, v in row.items()}


def _without_orphans(data: dict) -> dict:
    """Drop child rows whose parent is not part of the upload."""
    kept = {}
    ids = {}
    for key, _model, parent_key, parent_collection in COLLECTIONS:
        rows = data.get(key, [])
        if parent_key:
            rows = [r for r in rows if r.get(parent_key) in ids[parent_collection]]
        kept[key] = rows
        ids[key] = {r["id"] for r in rows}
    dropped = sum(len(data.get(key, [])) - len(rows) for key, rows in kept.items())
    if dropped:
        logger.info("Skipping orphaned rows in cloud upload", extra={"dropped": dropped})
    return kept


def upload_all(data: Optional[dict] = None) -> dict:
    """
    Upsert every local record into the cloud tables, parents first. Returns
    uploaded row counts per table; raises CloudSyncError on the first hard failure.
    """
    if not is_configured():
        logger.info("Cloud backend not configured, skipping upload")
        return {}
    data = _without_orphans(data if data is not None else export_data())
    session = _session()
    uploaded = {}
    for table, collection in SYNC_TABLES:
        rows = [_remote_row(r) for r in data.get(collection, [])]
        if not rows:
            continue
        try:
            resp = session.post(
                _table_url(table),
                params={"on_conflict": "id"},
                json=rows,
                headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                timeout=_timeout(),
            )
        except requests.RequestException as exc:
            raise CloudSyncError(f"{table} upload failed: {exc}")
        if resp.status_code >= 400:
            if table in OPTIONAL_TABLES:
                logger.info("%s sync skipped (table may not exist): HTTP %s", table, resp.status_code)
                continue
            raise CloudSyncError(f"{table} upload failed: HTTP {resp.status_code} {resp.text[:200]}")
        uploaded[table] = len(rows)
    return uploaded
