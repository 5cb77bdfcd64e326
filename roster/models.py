from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_date

from gradebook.services.retention import academic_year_for


# CASAS scale score ranges per CACE level: (reading, listening)
CACE_LEVELS = {
    0: {"name": "0 - Literacy", "reading": (0, 183), "listening": (0, 181)},
    1: {"name": "1 - Beginning Low", "reading": (184, 196), "listening": (182, 191)},
    2: {"name": "2 - Beginning High", "reading": (197, 206), "listening": (192, 201)},
    3: {"name": "3 - Intermediate Low", "reading": (207, 216), "listening": (202, 211)},
    4: {"name": "4 - Intermediate High", "reading": (217, 227), "listening": (212, 221)},
    5: {"name": "5 - Advanced", "reading": (228, 238), "listening": (222, 231)},
}

DEFAULT_RANKING_WEIGHTS = {"casas_reading": 25, "casas_listening": 25, "tests": 30, "attendance": 20}
DEFAULT_COLOR_THRESHOLDS = {"good": 80, "warning": 60}


def casas_defaults_for_level(level: int) -> dict:
    """
    Start = bottom of the current level, target = bottom of the next level
    (top of the current range for the last level).
    """
    current = CACE_LEVELS[level]
    nxt = CACE_LEVELS.get(level + 1)
    return {
        "casas_reading_level_start": current["reading"][0],
        "casas_reading_target": nxt["reading"][0] if nxt else current["reading"][1],
        "casas_listening_level_start": current["listening"][0],
        "casas_listening_target": nxt["listening"][0] if nxt else current["listening"][1],
    }


def _current_academic_year():
    return academic_year_for(timezone.localdate())


class Class(models.Model):
    LEVEL_CHOICES = [(level, info["name"]) for level, info in CACE_LEVELS.items()]

    name = models.CharField(max_length=128)
    schedule = models.CharField(max_length=64, default="Morning")
    academic_year = models.CharField(max_length=9, default=_current_academic_year, db_index=True)
    level = models.PositiveSmallIntegerField(choices=LEVEL_CHOICES, default=3)

    casas_reading_level_start = models.PositiveIntegerField(null=True, blank=True)
    casas_reading_target = models.PositiveIntegerField(null=True, blank=True)
    casas_listening_level_start = models.PositiveIntegerField(null=True, blank=True)
    casas_listening_target = models.PositiveIntegerField(null=True, blank=True)

    weight_casas_reading = models.PositiveSmallIntegerField(default=DEFAULT_RANKING_WEIGHTS["casas_reading"])
    weight_casas_listening = models.PositiveSmallIntegerField(default=DEFAULT_RANKING_WEIGHTS["casas_listening"])
    weight_tests = models.PositiveSmallIntegerField(default=DEFAULT_RANKING_WEIGHTS["tests"])
    weight_attendance = models.PositiveSmallIntegerField(default=DEFAULT_RANKING_WEIGHTS["attendance"])

    threshold_good = models.PositiveSmallIntegerField(default=DEFAULT_COLOR_THRESHOLDS["good"])
    threshold_warning = models.PositiveSmallIntegerField(default=DEFAULT_COLOR_THRESHOLDS["warning"])

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.academic_year})"

    def fill_level_defaults(self):
        """Level-derived CASAS targets, only where missing."""
        for field, value in casas_defaults_for_level(self.level).items():
            if getattr(self, field) is None:
                setattr(self, field, value)

    def save(self, *args, **kwargs):
        self.fill_level_defaults()
        super().save(*args, **kwargs)

    @property
    def level_name(self) -> str:
        return CACE_LEVELS[self.level]["name"]

    class Meta:
        ordering = ["name", "id"]
        verbose_name_plural = "classes"


class Student(models.Model):
    name = models.CharField(max_length=128, db_index=True)
    klass = models.ForeignKey(Class, on_delete=models.CASCADE, related_name="students")
    enrollment_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)  # private, never on report cards
    is_dropped = models.BooleanField(default=False)
    dropped_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def drop(self, on_date=None):
        self.is_dropped = True
        self.dropped_date = on_date or timezone.localdate()
        self.save(update_fields=["is_dropped", "dropped_date", "updated_at"])

    def restore(self, klass=None):
        self.is_dropped = False
        self.dropped_date = None
        if klass is not None:
            self.klass = klass
        self.save(update_fields=["is_dropped", "dropped_date", "klass", "updated_at"])

    class Meta:
        ordering = ["name", "id"]


class AttendanceEntry(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="attendance")
    date = models.DateField()
    present = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student} - {self.date} - {'present' if self.present else 'absent'}"

    class Meta:
        ordering = ["date", "id"]
        constraints = [
            models.UniqueConstraint(fields=["student", "date"], name="uq_attendance_student_date"),
        ]


class UnitTest(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="unit_tests")
    test_name = models.CharField(max_length=128)  # "Unit 1", "EL Civics"...
    date = models.DateField()
    score = models.DecimalField(max_digits=5, decimal_places=2)  # 0-100
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student} - {self.test_name}"

    class Meta:
        ordering = ["date", "id"]


class CasasTest(models.Model):
    SKILL_CHOICES = [("reading", "Reading"), ("listening", "Listening")]

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="casas_tests")
    skill = models.CharField(max_length=10, choices=SKILL_CHOICES)
    date = models.DateField()
    form_number = models.CharField(max_length=16, blank=True)  # "627L", "629R"
    score = models.PositiveIntegerField(null=True, blank=True)  # null when marked invalid (*)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student} - {self.get_skill_display()} {self.form_number}"

    class Meta:
        ordering = ["date", "id"]
        indexes = [
            models.Index(fields=["student", "skill"], name="casas_student_skill_idx"),
        ]


class StudentNote(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="student_notes")
    date = models.DateField(default=timezone.localdate)
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Note {self.student} - {self.date}"

    class Meta:
        ordering = ["-date", "-id"]


class ReportCard(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="report_cards")
    period_name = models.CharField(max_length=64)  # "Fall 2025"
    casas_reading_avg = models.FloatField(null=True, blank=True)
    casas_reading_progress = models.FloatField(null=True, blank=True)
    casas_listening_avg = models.FloatField(null=True, blank=True)
    casas_listening_progress = models.FloatField(null=True, blank=True)
    test_average = models.FloatField(null=True, blank=True)
    attendance_rate = models.FloatField(null=True, blank=True)
    rank = models.PositiveIntegerField(null=True, blank=True)  # null = incomplete
    total_students = models.PositiveIntegerField(default=0)
    teacher_comments = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.student} - {self.period_name}"

    class Meta:
        ordering = ["-created_at", "-id"]


month_validator = RegexValidator(r"^\d{4}-(0[1-9]|1[0-2])$", "Month must be formatted as YYYY-MM.")


class IsstRecord(models.Model):
    """Tutoring (ISST) sessions attended by a student during one month."""

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="isst_records")
    month = models.CharField(max_length=7, validators=[month_validator])  # "2025-09"
    dates = models.JSONField(default=list, blank=True)  # sorted "YYYY-MM-DD" strings
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"ISST {self.student} - {self.month}"

    def clean(self):
        if not isinstance(self.dates, list):
            raise ValidationError({"dates": "Expected a list of dates."})
        for value in self.dates:
            try:
                day = parse_date(value) if isinstance(value, str) else None
            except ValueError:
                day = None
            if day is None:
                raise ValidationError({"dates": f"Invalid date: {value!r}."})
            if f"{day:%Y-%m}" != self.month:
                raise ValidationError({"dates": f"{value} is not in {self.month}."})

    class Meta:
        ordering = ["month", "id"]
        constraints = [
            models.UniqueConstraint(fields=["student", "month"], name="uq_isst_student_month"),
        ]
