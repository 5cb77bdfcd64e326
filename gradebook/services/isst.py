import logging
from datetime import date
from typing import Optional

from django.db import transaction

from roster.models import IsstRecord

logger = logging.getLogger(__name__)


def month_of(day: date) -> str:
    return f"{day:%Y-%m}"


@transaction.atomic
def add_isst_date(student, day: date) -> IsstRecord:
    """Record a tutoring session; the same day twice is a no-op."""
    record, _ = IsstRecord.objects.select_for_update().get_or_create(student=student, month=month_of(day))
    value = day.isoformat()
    if value not in record.dates:
        record.dates = sorted(record.dates + [value])
        record.save(update_fields=["dates", "updated_at"])
        logger.info("ISST date added", extra={"student_id": student.id, "date": value})
    return record


@transaction.atomic
def remove_isst_date(student, day: date) -> Optional[IsstRecord]:
    """
    Forget a tutoring session. A month left without dates is deleted, in which
    case None is returned.
    """
    record = IsstRecord.objects.select_for_update().filter(student=student, month=month_of(day)).first()
    value = day.isoformat()
    if record is None or value not in record.dates:
        return record
    record.dates = [d for d in record.dates if d != value]
    if not record.dates:
        record.delete()
        return None
    record.save(update_fields=["dates", "updated_at"])
    return record


def class_isst_records(klass, month: Optional[str] = None):
    qs = IsstRecord.objects.filter(student__klass=klass, student__is_dropped=False).select_related("student")
    if month:
        qs = qs.filter(month=month)
    return qs.order_by("student__name", "month")
