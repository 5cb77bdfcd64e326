"""
Pure metric helpers: category averages, composite score, ranking and color bands.

Nothing here touches the database; `gradebook.services.stats` feeds these
functions from the ORM. Missing data is always `None`, never 0.
"""
from dataclasses import asdict, dataclass, field
from typing import Iterable, List, Optional

GOOD = "good"
WARNING = "warning"
NEEDS_IMPROVEMENT = "needs-improvement"
NEUTRAL = "neutral"

CATEGORIES = ("casas_reading", "casas_listening", "tests", "attendance")
DEFAULT_TOP_N = 5
CASAS_PROGRESS_CAP = 100.0


@dataclass(frozen=True)
class RankingWeights:
    casas_reading: int
    casas_listening: int
    tests: int
    attendance: int

    @property
    def total(self) -> int:
        return self.casas_reading + self.casas_listening + self.tests + self.attendance

    @classmethod
    def for_class(cls, klass) -> "RankingWeights":
        return cls(
            casas_reading=klass.weight_casas_reading,
            casas_listening=klass.weight_casas_listening,
            tests=klass.weight_tests,
            attendance=klass.weight_attendance,
        )


@dataclass(frozen=True)
class ColorThresholds:
    good: int
    warning: int

    @classmethod
    def for_class(cls, klass) -> "ColorThresholds":
        return cls(good=klass.threshold_good, warning=klass.threshold_warning)


@dataclass
class StudentWithStats:
    id: int
    name: str
    class_id: int
    is_dropped: bool = False
    casas_reading_avg: Optional[float] = None
    casas_reading_progress: Optional[float] = None
    casas_listening_avg: Optional[float] = None
    casas_listening_progress: Optional[float] = None
    test_average: Optional[float] = None
    attendance_rate: Optional[float] = None
    composite_score: Optional[float] = None
    rank: Optional[int] = None
    colors: dict = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return all(v is not None for v in self.category_values().values())

    def category_values(self) -> dict:
        return {
            "casas_reading": _cap(self.casas_reading_progress),
            "casas_listening": _cap(self.casas_listening_progress),
            "tests": self.test_average,
            "attendance": self.attendance_rate,
        }

    def as_dict(self) -> dict:
        data = asdict(self)
        data["is_complete"] = self.is_complete
        return data


def _cap(progress: Optional[float]) -> Optional[float]:
    if progress is None:
        return None
    return min(progress, CASAS_PROGRESS_CAP)


def mean(values: Iterable) -> Optional[float]:
    vals = [float(v) for v in values if v is not None]
    if not vals:
        return None
    return sum(vals) / len(vals)


def attendance_rate(presences: Iterable[bool]) -> Optional[float]:
    """Share of present entries, in percent. No entries means undefined, not 0%."""
    flags = list(presences)
    if not flags:
        return None
    return sum(1 for p in flags if p) / len(flags) * 100


def class_attendance_rate(student_rates: Iterable[Optional[float]]) -> Optional[float]:
    return mean(student_rates)


def casas_progress(average: Optional[float], level_start: Optional[int], target: Optional[int]) -> Optional[float]:
    """(average - start) / (target - start) in percent; an empty range counts as reached."""
    if average is None or level_start is None or target is None:
        return None
    span = target - level_start
    if span == 0:
        return 100.0
    return (average - level_start) / span * 100


def composite_score(values: dict, weights: RankingWeights) -> Optional[float]:
    """
    Weighted average over the categories that have data. Weights of missing
    categories drop out of the denominator.
    """
    numerator = 0.0
    denominator = 0
    for category in CATEGORIES:
        value = values.get(category)
        if value is None:
            continue
        weight = getattr(weights, category)
        numerator += weight * value
        denominator += weight
    if denominator == 0:
        return None
    return numerator / denominator


def _rank_key(student: StudentWithStats):
    return (-student.composite_score, student.name.casefold(), student.id)


def rank_students(students: Iterable[StudentWithStats]) -> List[StudentWithStats]:
    """
    Dense 1..N ranks by descending composite. Equal scores still get distinct
    ranks, ordered by name then id. Unscored students come last, unranked.
    """
    students = list(students)
    scored = sorted((s for s in students if s.composite_score is not None), key=_rank_key)
    unscored = sorted(
        (s for s in students if s.composite_score is None),
        key=lambda s: (s.name.casefold(), s.id),
    )
    for position, student in enumerate(scored, start=1):
        student.rank = position
    for student in unscored:
        student.rank = None
    return scored + unscored


def top_performers(ranked: Iterable[StudentWithStats], n: int = DEFAULT_TOP_N) -> List[StudentWithStats]:
    if n <= 0:
        return []
    return sorted((s for s in ranked if s.rank is not None), key=lambda s: s.rank)[:n]


def at_risk(ranked: Iterable[StudentWithStats], thresholds: ColorThresholds, n: int = DEFAULT_TOP_N) -> List[StudentWithStats]:
    """Worst-ranked students scoring below the warning threshold, in rank order."""
    if n <= 0:
        return []
    below = sorted(
        (s for s in ranked if s.rank is not None and s.composite_score < thresholds.warning),
        key=lambda s: s.rank,
    )
    return below[-n:]


def classify(value: Optional[float], thresholds: ColorThresholds) -> str:
    if value is None:
        return NEUTRAL
    if value >= thresholds.good:
        return GOOD
    if value >= thresholds.warning:
        return WARNING
    return NEEDS_IMPROVEMENT
