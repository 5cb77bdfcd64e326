import logging
from typing import List

from django.db import transaction
from django.utils import timezone

from gradebook.services.metrics import (
    ColorThresholds,
    RankingWeights,
    StudentWithStats,
    at_risk,
    attendance_rate,
    casas_progress,
    class_attendance_rate,
    classify,
    composite_score,
    mean,
    rank_students,
    top_performers,
)
from gradebook.services.retention import thirty_day_retention, year_to_date_retention
from roster.models import Class, ReportCard, Student

logger = logging.getLogger(__name__)

MEASUREMENT_PREFETCH = ("attendance", "unit_tests", "casas_tests")


def _since_enrollment(records, student):
    return [r for r in records if r.date >= student.enrollment_date]


def student_stats(student: Student, klass: Class) -> StudentWithStats:
    """
    Raw per-category values for one student. Measurements dated before the
    enrollment date are ignored.
    """
    casas = _since_enrollment(student.casas_tests.all(), student)
    reading_avg = mean(t.score for t in casas if t.skill == "reading")
    listening_avg = mean(t.score for t in casas if t.skill == "listening")
    tests = _since_enrollment(student.unit_tests.all(), student)
    attendance = _since_enrollment(student.attendance.all(), student)

    stats = StudentWithStats(
        id=student.id,
        name=student.name,
        class_id=student.klass_id,
        is_dropped=student.is_dropped,
        casas_reading_avg=reading_avg,
        casas_reading_progress=casas_progress(reading_avg, klass.casas_reading_level_start, klass.casas_reading_target),
        casas_listening_avg=listening_avg,
        casas_listening_progress=casas_progress(listening_avg, klass.casas_listening_level_start, klass.casas_listening_target),
        test_average=mean(t.score for t in tests),
        attendance_rate=attendance_rate(a.present for a in attendance),
    )
    stats.composite_score = composite_score(stats.category_values(), RankingWeights.for_class(klass))
    return stats


def _color_bands(stats: StudentWithStats, thresholds: ColorThresholds) -> dict:
    values = stats.category_values()
    return {
        "casas_reading": classify(values["casas_reading"], thresholds),
        "casas_listening": classify(values["casas_listening"], thresholds),
        "tests": classify(values["tests"], thresholds),
        "attendance": classify(values["attendance"], thresholds),
        "composite": classify(stats.composite_score, thresholds),
    }


def class_rankings(klass: Class) -> List[StudentWithStats]:
    """Active students of the class with stats, ranks and color bands."""
    students = klass.students.filter(is_dropped=False).prefetch_related(*MEASUREMENT_PREFETCH)
    thresholds = ColorThresholds.for_class(klass)
    ranked = rank_students(student_stats(s, klass) for s in students)
    for stats in ranked:
        stats.colors = _color_bands(stats, thresholds)
    return ranked


def class_metrics(klass: Class, today=None, top_n: int = 5) -> dict:
    today = today or timezone.localdate()
    population = list(klass.students.prefetch_related("attendance"))
    active = [s for s in population if not s.is_dropped]
    thresholds = ColorThresholds.for_class(klass)

    avg_attendance = class_attendance_rate(
        attendance_rate(a.present for a in _since_enrollment(s.attendance.all(), s)) for s in active
    )
    thirty_day = thirty_day_retention(population, today)
    year_to_date = year_to_date_retention(population, klass.academic_year, today)
    if thirty_day.rate is not None:
        best = {"label": "30-Day", **thirty_day.as_dict()}
    elif year_to_date.rate is not None:
        best = {"label": "Year-to-Date", **year_to_date.as_dict()}
    else:
        best = {"label": "", "rate": None, "retained": 0, "eligible": 0}

    ranked = class_rankings(klass)
    return {
        "class_id": klass.id,
        "student_count": len(active),
        "average_attendance": avg_attendance,
        "attendance_color": classify(avg_attendance, thresholds),
        "retention": {
            "thirty_day": thirty_day.as_dict(),
            "year_to_date": year_to_date.as_dict(),
            "best": best,
        },
        "top_performers": [s.as_dict() for s in top_performers(ranked, top_n)],
        "at_risk": [s.as_dict() for s in at_risk(ranked, thresholds, top_n)],
    }


@transaction.atomic
def create_report_card(student: Student, period_name: str, teacher_comments: str = "") -> ReportCard:
    """Freeze the student's current stats and class rank under a period name."""
    ranked = class_rankings(student.klass)
    stats = next((s for s in ranked if s.id == student.id), None)
    if stats is None:
        # dropped students are not ranked but can still get a report card
        stats = student_stats(student, student.klass)
    card = ReportCard.objects.create(
        student=student,
        period_name=period_name,
        casas_reading_avg=stats.casas_reading_avg,
        casas_reading_progress=stats.casas_reading_progress,
        casas_listening_avg=stats.casas_listening_avg,
        casas_listening_progress=stats.casas_listening_progress,
        test_average=stats.test_average,
        attendance_rate=stats.attendance_rate,
        rank=stats.rank,
        total_students=len(ranked),
        teacher_comments=teacher_comments,
    )
    logger.info("Report card created", extra={"student_id": student.id, "period": period_name, "rank": stats.rank})
    return card
