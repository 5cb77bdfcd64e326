"""
Academic-year calendar and retention rates.

Everything here is a pure function of its arguments: "today" is always passed
in explicitly so results are reproducible.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Tuple

# An academic year "2025-2026" runs from 1 August 2025 to 31 July 2026.
ACADEMIC_YEAR_START_MONTH = 8
ACADEMIC_YEAR_START_DAY = 1
RETENTION_WINDOW_DAYS = 30


@dataclass(frozen=True)
class RetentionResult:
    rate: Optional[float]
    retained: int
    eligible: int

    def as_dict(self) -> dict:
        return {"rate": self.rate, "retained": self.retained, "eligible": self.eligible}


@dataclass(frozen=True)
class Enrollment:
    """Minimal view of a student needed to decide whether they were active on a day."""

    enrollment_date: date
    is_dropped: bool = False
    dropped_date: Optional[date] = None


def academic_year_for(day: date) -> str:
    start_year = day.year if (day.month, day.day) >= (ACADEMIC_YEAR_START_MONTH, ACADEMIC_YEAR_START_DAY) else day.year - 1
    return f"{start_year}-{start_year + 1}"


def academic_year_bounds(label: str) -> Tuple[date, date]:
    try:
        first, second = label.split("-")
        start_year, end_year = int(first), int(second)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid academic year label: {label!r}")
    if end_year != start_year + 1:
        raise ValueError(f"Invalid academic year label: {label!r}")
    start = date(start_year, ACADEMIC_YEAR_START_MONTH, ACADEMIC_YEAR_START_DAY)
    end = date(end_year, ACADEMIC_YEAR_START_MONTH, ACADEMIC_YEAR_START_DAY) - timedelta(days=1)
    return start, end


def academic_year_options(labels: Iterable[str], today: date) -> list:
    """Current year plus every year already in use, newest first."""
    years = {academic_year_for(today)}
    years.update(label for label in labels if label)
    return sorted(years, reverse=True)


def is_active_on(student, day: date, today: date) -> bool:
    """
    Enrolled on or before `day` and not dropped as of `day`. A drop without a
    recorded date counts as happening on `today`.
    """
    if student.enrollment_date > day:
        return False
    if not student.is_dropped:
        return True
    dropped_on = student.dropped_date or today
    return day < dropped_on


def _retention(students, since: date, until: date, today: date) -> RetentionResult:
    eligible = [s for s in students if is_active_on(s, since, today)]
    retained = [s for s in eligible if is_active_on(s, until, today)]
    if not eligible:
        return RetentionResult(rate=None, retained=0, eligible=0)
    return RetentionResult(
        rate=len(retained) / len(eligible) * 100,
        retained=len(retained),
        eligible=len(eligible),
    )


def thirty_day_retention(students, today: date, window_days: int = RETENTION_WINDOW_DAYS) -> RetentionResult:
    students = list(students)
    return _retention(students, today - timedelta(days=window_days), today, today)


def year_to_date_retention(students, academic_year: str, today: date) -> RetentionResult:
    start, end = academic_year_bounds(academic_year)
    if today < start:
        return RetentionResult(rate=None, retained=0, eligible=0)
    return _retention(list(students), start, min(today, end), today)
