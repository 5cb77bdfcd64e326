from datetime import date

from django.test import TestCase

from gradebook.services.stats import class_metrics, class_rankings, create_report_card
from roster.models import AttendanceEntry, CasasTest, Class, Student, UnitTest


class ClassStatsTests(TestCase):
    def setUp(self):
        # level 3: reading 207 -> 217, listening 202 -> 212
        self.klass = Class.objects.create(name="Morning", level=3, academic_year="2025-2026")
        self.maria = Student.objects.create(name="Maria", klass=self.klass, enrollment_date=date(2025, 9, 1))
        self.ahmed = Student.objects.create(name="Ahmed", klass=self.klass, enrollment_date=date(2025, 9, 1))
        self.li = Student.objects.create(
            name="Li",
            klass=self.klass,
            enrollment_date=date(2025, 9, 1),
            is_dropped=True,
            dropped_date=date(2025, 10, 20),
        )

        CasasTest.objects.create(student=self.maria, skill="reading", date=date(2025, 9, 10), form_number="627R", score=212)
        CasasTest.objects.create(student=self.maria, skill="listening", date=date(2025, 9, 10), form_number="627L", score=207)
        UnitTest.objects.create(student=self.maria, test_name="Unit 1", date=date(2025, 9, 20), score=80)
        for day, present in ((2, True), (3, True), (4, True), (9, False), (10, False)):
            AttendanceEntry.objects.create(student=self.maria, date=date(2025, 9, day), present=present)
        # before enrollment: ignored
        AttendanceEntry.objects.create(student=self.maria, date=date(2025, 8, 20), present=False)

    def test_rankings(self):
        ranked = class_rankings(self.klass)
        self.assertEqual([s.name for s in ranked], ["Maria", "Ahmed"])
        maria, ahmed = ranked
        self.assertEqual(maria.attendance_rate, 60.0)
        self.assertEqual(maria.casas_reading_progress, 50.0)
        self.assertAlmostEqual(maria.composite_score, 61.0)
        self.assertEqual(maria.rank, 1)
        self.assertEqual(maria.colors["composite"], "warning")
        self.assertIsNone(ahmed.composite_score)
        self.assertIsNone(ahmed.rank)
        self.assertEqual(ahmed.colors["tests"], "neutral")

    def test_metrics(self):
        metrics = class_metrics(self.klass, today=date(2025, 10, 31))
        self.assertEqual(metrics["student_count"], 2)
        self.assertEqual(metrics["average_attendance"], 60.0)
        self.assertEqual(metrics["attendance_color"], "warning")
        self.assertEqual(metrics["retention"]["thirty_day"]["eligible"], 3)
        self.assertEqual(metrics["retention"]["thirty_day"]["retained"], 2)
        self.assertEqual(metrics["retention"]["best"]["label"], "30-Day")
        self.assertEqual([s["name"] for s in metrics["top_performers"]], ["Maria"])
        self.assertEqual(metrics["at_risk"], [])

    def test_best_retention_falls_back_to_year_to_date(self):
        Student.objects.exclude(pk=self.li.pk).update(enrollment_date=date(2025, 10, 15))
        Student.objects.filter(pk=self.li.pk).update(enrollment_date=date(2025, 8, 1), dropped_date=date(2025, 9, 15))
        metrics = class_metrics(self.klass, today=date(2025, 10, 31))
        self.assertIsNone(metrics["retention"]["thirty_day"]["rate"])
        self.assertEqual(metrics["retention"]["best"]["label"], "Year-to-Date")
        self.assertEqual(metrics["retention"]["best"]["rate"], 0.0)

    def test_no_retention_without_history(self):
        Student.objects.all().update(enrollment_date=date(2025, 10, 15))
        metrics = class_metrics(self.klass, today=date(2025, 10, 31))
        self.assertEqual(metrics["retention"]["best"]["label"], "")
        self.assertIsNone(metrics["retention"]["best"]["rate"])

    def test_report_card_snapshot(self):
        card = create_report_card(self.maria, "Fall 2025", "Great progress")
        self.assertEqual(card.rank, 1)
        self.assertEqual(card.total_students, 2)
        self.assertEqual(card.attendance_rate, 60.0)
        self.assertEqual(card.teacher_comments, "Great progress")
