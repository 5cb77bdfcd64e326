"""
Whole-store backup: one JSON document in, one JSON document out.

Import is all-or-nothing: the document is checked first, then the store is
replaced inside a single transaction, so any failure leaves it as it was.
"""
import json
import logging
from datetime import date, datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.management.color import no_style
from django.db import IntegrityError, connection, transaction
from django.utils import timezone

from roster.models import AttendanceEntry, CasasTest, Class, IsstRecord, ReportCard, Student, StudentNote, UnitTest

logger = logging.getLogger(__name__)

BACKUP_FORMAT = "esl-gradebook-backup"
BACKUP_VERSION = 1

# (document key, model, parent key in each row, key of the parent collection)
COLLECTIONS = [
    ("classes", Class, None, None),
    ("students", Student, "klass_id", "classes"),
    ("attendance", AttendanceEntry, "student_id", "students"),
    ("unit_tests", UnitTest, "student_id", "students"),
    ("casas_tests", CasasTest, "student_id", "students"),
    ("notes", StudentNote, "student_id", "students"),
    ("report_cards", ReportCard, "student_id", "students"),
    ("isst_records", IsstRecord, "student_id", "students"),
]
REQUIRED_COLLECTIONS = ("classes", "students")

# auto_now/auto_now_add would overwrite restored timestamps on save()
TIMESTAMP_FIELDS = ("created_at", "updated_at")


class BackupFormatError(Exception):
    pass


def _field_names(model):
    return [f.attname for f in model._meta.concrete_fields]


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def _rows(model):
    names = _field_names(model)
    return [{name: _json_value(getattr(obj, name)) for name in names} for obj in model.objects.order_by("pk")]


def export_data() -> dict:
    data = {
        "format": BACKUP_FORMAT,
        "version": BACKUP_VERSION,
        "exported_at": timezone.now().isoformat(),
    }
    for key, model, _parent, _collection in COLLECTIONS:
        data[key] = _rows(model)
    return data


def export_json(indent=2) -> str:
    return json.dumps(export_data(), indent=indent)


def _parse(raw):
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BackupFormatError(f"Backup is not valid UTF-8: {exc}")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BackupFormatError(f"Backup is not valid JSON: {exc}")
    if not isinstance(raw, dict):
        raise BackupFormatError("Backup must be a JSON object.")
    return raw


def _is_key(value) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


def validate_backup(data: dict):
    """Check the top-level shape and parent references without touching the database."""
    fmt = data.get("format", BACKUP_FORMAT)
    if fmt != BACKUP_FORMAT:
        raise BackupFormatError(f"Unknown backup format: {fmt!r}")
    for key in REQUIRED_COLLECTIONS:
        if key not in data:
            raise BackupFormatError(f"Missing '{key}' collection.")

    seen_ids = {}
    for key, model, parent_key, parent_collection in COLLECTIONS:
        rows = data.get(key, [])
        if not isinstance(rows, list):
            raise BackupFormatError(f"'{key}' must be a list.")
        allowed = set(_field_names(model))
        ids = set()
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise BackupFormatError(f"{key}[{index}] must be an object.")
            if not _is_key(row.get("id")):
                raise BackupFormatError(f"{key}[{index}] has no valid id.")
            unknown = set(row) - allowed
            if unknown:
                raise BackupFormatError(f"{key}[{index}] has unknown fields: {', '.join(sorted(unknown))}")
            if row["id"] in ids:
                raise BackupFormatError(f"{key}[{index}] duplicates id {row['id']}.")
            ids.add(row["id"])
            if parent_key and not _is_key(row.get(parent_key)):
                raise BackupFormatError(f"{key}[{index}] has an invalid {parent_key}.")
            if parent_key and row.get(parent_key) not in seen_ids[parent_collection]:
                raise BackupFormatError(f"{key}[{index}] references a missing parent ({parent_key}={row.get(parent_key)}).")
        seen_ids[key] = ids


def _build(model, row):
    obj = model(**row)
    obj.full_clean(validate_unique=False)
    if model is Class:
        # bulk_create skips save()
        obj.fill_level_defaults()
    return obj


def _restore_timestamps(model, rows):
    names = [f for f in TIMESTAMP_FIELDS if f in _field_names(model)]
    for row in rows:
        values = {name: row[name] for name in names if row.get(name)}
        if values:
            model.objects.filter(pk=row["id"]).update(**values)


def import_data(raw) -> dict:
    """
    Replace the whole store with the backup content. Returns per-collection
    counts; raises BackupFormatError and leaves the store untouched otherwise.
    """
    data = _parse(raw)
    validate_backup(data)

    counts = {}
    try:
        with transaction.atomic():
            # children go first so cascades do not matter
            for key, model, _parent, _collection in reversed(COLLECTIONS):
                model.objects.all().delete()
            for key, model, _parent, _collection in COLLECTIONS:
                rows = data.get(key, [])
                objs = [_build(model, row) for row in rows]
                model.objects.bulk_create(objs)
                _restore_timestamps(model, rows)
                counts[key] = len(objs)
            _reset_sequences()
    except (ValidationError, IntegrityError, TypeError, ValueError) as exc:
        logger.warning("Backup import rejected", extra={"error": str(exc)})
        raise BackupFormatError(f"Backup content is invalid: {exc}")

    logger.info("Backup imported", extra={"counts": counts})
    return counts


def _reset_sequences():
    models = [model for _key, model, _parent, _collection in COLLECTIONS]
    statements = connection.ops.sequence_reset_sql(no_style(), models)
    if statements:
        with connection.cursor() as cursor:
            for sql in statements:
                cursor.execute(sql)
