import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from roster.models import AttendanceEntry, CasasTest, Class, Student, UnitTest


STUDENT_NAMES = [
    "Maria Gonzalez",
    "Nguyen Van An",
    "Fatima Rahimi",
    "Carlos Mendoza",
    "Yuki Tanaka",
    "Olena Kovalenko",
    "Ahmed Hassan",
    "Li Wei",
    "Ana Souza",
    "Dmitri Petrov",
]


class Command(BaseCommand):
    help = "Seed a demo class with students, attendance, unit tests and CASAS results. Safe to run twice."

    def add_arguments(self, parser):
        parser.add_argument("--students", type=int, default=8, help="Number of students (default: 8, max: 10)")
        parser.add_argument("--class-name", type=str, default="ESL Intermediate Low", help="Class to use or create")
        parser.add_argument("--level", type=int, default=3, choices=range(0, 6), help="CACE level (0-5)")
        parser.add_argument("--weeks", type=int, default=6, help="Weeks of attendance to generate")
        parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")

    def handle(self, *args, **options):
        rng = random.Random(options["seed"])
        today = timezone.localdate()
        names = STUDENT_NAMES[: max(0, min(options["students"], len(STUDENT_NAMES)))]
        class_days = [today - timedelta(days=d) for d in range(options["weeks"] * 7) if (today - timedelta(days=d)).weekday() < 4]

        with transaction.atomic():
            klass, created = Class.objects.get_or_create(
                name=options["class_name"],
                defaults={"level": options["level"]},
            )
            enrollment = today - timedelta(weeks=options["weeks"])

            for name in names:
                student, _ = Student.objects.get_or_create(
                    klass=klass,
                    name=name,
                    defaults={"enrollment_date": enrollment},
                )
                presence = rng.uniform(0.55, 0.98)
                for day in class_days:
                    AttendanceEntry.objects.update_or_create(
                        student=student,
                        date=day,
                        defaults={"present": rng.random() < presence},
                    )

                for unit in range(1, 4):
                    score = max(0.0, min(100.0, rng.gauss(78, 12)))
                    UnitTest.objects.update_or_create(
                        student=student,
                        test_name=f"Unit {unit}",
                        defaults={"date": today - timedelta(weeks=options["weeks"] - unit), "score": Decimal(f"{score:.2f}")},
                    )

                for skill, start, target in (
                    ("reading", klass.casas_reading_level_start, klass.casas_reading_target),
                    ("listening", klass.casas_listening_level_start, klass.casas_listening_target),
                ):
                    if student.casas_tests.filter(skill=skill).exists():
                        continue
                    CasasTest.objects.create(
                        student=student,
                        skill=skill,
                        date=enrollment + timedelta(days=7),
                        form_number="627R" if skill == "reading" else "627L",
                        score=rng.randint(start, target + 3),
                    )

        verb = "created" if created else "updated"
        self.stdout.write(self.style.SUCCESS(f"Demo class '{klass.name}' {verb} with {len(names)} students."))
