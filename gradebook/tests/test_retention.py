from datetime import date

from django.test import SimpleTestCase

from gradebook.services.retention import (
    Enrollment,
    academic_year_bounds,
    academic_year_for,
    academic_year_options,
    is_active_on,
    thirty_day_retention,
    year_to_date_retention,
)


class AcademicYearTests(SimpleTestCase):
    def test_year_starts_in_august(self):
        self.assertEqual(academic_year_for(date(2025, 8, 1)), "2025-2026")
        self.assertEqual(academic_year_for(date(2025, 7, 31)), "2024-2025")
        self.assertEqual(academic_year_for(date(2026, 3, 10)), "2025-2026")

    def test_bounds(self):
        self.assertEqual(academic_year_bounds("2025-2026"), (date(2025, 8, 1), date(2026, 7, 31)))

    def test_invalid_labels(self):
        for label in ("2025", "2025-2027", "abc-def", None):
            with self.assertRaises(ValueError):
                academic_year_bounds(label)

    def test_options_include_current_year(self):
        options = academic_year_options(["2023-2024", "", "2025-2026"], date(2025, 9, 1))
        self.assertEqual(options, ["2025-2026", "2023-2024"])


class ActivityTests(SimpleTestCase):
    def test_drop_without_date_counts_as_today(self):
        student = Enrollment(enrollment_date=date(2025, 9, 1), is_dropped=True)
        today = date(2025, 10, 31)
        self.assertTrue(is_active_on(student, date(2025, 10, 30), today))
        self.assertFalse(is_active_on(student, today, today))

    def test_not_active_before_enrollment(self):
        student = Enrollment(enrollment_date=date(2025, 9, 1))
        self.assertFalse(is_active_on(student, date(2025, 8, 31), date(2025, 10, 31)))


class ThirtyDayRetentionTests(SimpleTestCase):
    def test_rate(self):
        students = [
            Enrollment(enrollment_date=date(2025, 9, 1)),
            Enrollment(enrollment_date=date(2025, 9, 1), is_dropped=True, dropped_date=date(2025, 10, 15)),
            Enrollment(enrollment_date=date(2025, 10, 20)),
        ]
        result = thirty_day_retention(students, date(2025, 10, 31))
        self.assertEqual((result.retained, result.eligible), (1, 2))
        self.assertEqual(result.rate, 50.0)

    def test_no_eligible_students(self):
        result = thirty_day_retention([Enrollment(enrollment_date=date(2025, 10, 20))], date(2025, 10, 31))
        self.assertIsNone(result.rate)
        self.assertEqual(result.eligible, 0)


class YearToDateRetentionTests(SimpleTestCase):
    def test_rate(self):
        students = [
            Enrollment(enrollment_date=date(2025, 8, 1)),
            Enrollment(enrollment_date=date(2025, 7, 15), is_dropped=True, dropped_date=date(2025, 9, 1)),
            Enrollment(enrollment_date=date(2025, 9, 10)),
        ]
        result = year_to_date_retention(students, "2025-2026", date(2025, 10, 31))
        self.assertEqual((result.retained, result.eligible), (1, 2))
        self.assertEqual(result.rate, 50.0)

    def test_before_year_start(self):
        result = year_to_date_retention([Enrollment(enrollment_date=date(2025, 1, 1))], "2025-2026", date(2025, 7, 1))
        self.assertIsNone(result.rate)

    def test_after_year_end_stops_at_end(self):
        students = [Enrollment(enrollment_date=date(2025, 8, 1), is_dropped=True, dropped_date=date(2026, 8, 15))]
        result = year_to_date_retention(students, "2025-2026", date(2026, 9, 1))
        self.assertEqual(result.rate, 100.0)
