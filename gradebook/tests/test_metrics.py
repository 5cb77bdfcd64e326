from django.test import SimpleTestCase

from gradebook.services.metrics import (
    GOOD,
    NEEDS_IMPROVEMENT,
    NEUTRAL,
    WARNING,
    ColorThresholds,
    RankingWeights,
    StudentWithStats,
    at_risk,
    attendance_rate,
    casas_progress,
    classify,
    composite_score,
    rank_students,
    top_performers,
)

DEFAULT_WEIGHTS = RankingWeights(casas_reading=25, casas_listening=25, tests=30, attendance=20)
DEFAULT_THRESHOLDS = ColorThresholds(good=80, warning=60)


def _student(pk, name, score):
    return StudentWithStats(id=pk, name=name, class_id=1, composite_score=score)


class AttendanceRateTests(SimpleTestCase):
    def test_three_present_two_absent(self):
        self.assertEqual(attendance_rate([True, True, True, False, False]), 60.0)

    def test_no_entries_is_undefined(self):
        self.assertIsNone(attendance_rate([]))


class ClassifyTests(SimpleTestCase):
    def test_bands(self):
        self.assertEqual(classify(85, DEFAULT_THRESHOLDS), GOOD)
        self.assertEqual(classify(80, DEFAULT_THRESHOLDS), GOOD)
        self.assertEqual(classify(70, DEFAULT_THRESHOLDS), WARNING)
        self.assertEqual(classify(60, DEFAULT_THRESHOLDS), WARNING)
        self.assertEqual(classify(40, DEFAULT_THRESHOLDS), NEEDS_IMPROVEMENT)
        self.assertEqual(classify(None, DEFAULT_THRESHOLDS), NEUTRAL)


class CompositeScoreTests(SimpleTestCase):
    def test_all_categories(self):
        values = {"casas_reading": 50, "casas_listening": 50, "tests": 80, "attendance": 100}
        self.assertAlmostEqual(composite_score(values, DEFAULT_WEIGHTS), 69.0)

    def test_missing_categories_are_renormalized(self):
        values = {"casas_reading": None, "casas_listening": None, "tests": 80, "attendance": 100}
        self.assertAlmostEqual(composite_score(values, DEFAULT_WEIGHTS), 88.0)

    def test_no_data_has_no_score(self):
        values = dict.fromkeys(("casas_reading", "casas_listening", "tests", "attendance"))
        self.assertIsNone(composite_score(values, DEFAULT_WEIGHTS))

    def test_zero_weight_on_available_data_has_no_score(self):
        weights = RankingWeights(casas_reading=0, casas_listening=0, tests=0, attendance=100)
        self.assertIsNone(composite_score({"tests": 80, "attendance": None}, weights))

    def test_progress_above_target_is_capped(self):
        stats = StudentWithStats(id=1, name="A", class_id=1, casas_reading_progress=150.0)
        self.assertEqual(stats.category_values()["casas_reading"], 100.0)


class CasasProgressTests(SimpleTestCase):
    def test_halfway(self):
        self.assertEqual(casas_progress(212, 207, 217), 50.0)

    def test_no_average(self):
        self.assertIsNone(casas_progress(None, 207, 217))

    def test_empty_range_counts_as_reached(self):
        self.assertEqual(casas_progress(210, 210, 210), 100.0)

    def test_missing_range_has_no_progress(self):
        self.assertIsNone(casas_progress(212, None, 217))
        self.assertIsNone(casas_progress(212, 207, None))


class RankingTests(SimpleTestCase):
    def test_ranks_are_contiguous_and_ties_break_by_name(self):
        ranked = rank_students(
            [
                _student(1, "bob", 75.0),
                _student(2, "Zoe", None),
                _student(3, "Carla", 90.0),
                _student(4, "Alice", 75.0),
            ]
        )
        self.assertEqual([s.id for s in ranked], [3, 4, 1, 2])
        self.assertEqual([s.rank for s in ranked], [1, 2, 3, None])

    def test_unscored_students_are_never_listed(self):
        ranked = rank_students([_student(1, "A", 90.0), _student(2, "B", None), _student(3, "C", 20.0)])
        self.assertEqual([s.id for s in top_performers(ranked, 5)], [1, 3])
        self.assertEqual([s.id for s in at_risk(ranked, DEFAULT_THRESHOLDS, 5)], [3])

    def test_distinct_scores_rank_as_permutation(self):
        scores = [42.0, 91.5, 13.0, 77.0, 65.25, 88.0, 30.0]
        ranked = rank_students([_student(i, f"S{i}", score) for i, score in enumerate(scores, start=1)])
        self.assertEqual([s.rank for s in ranked], list(range(1, 8)))
        self.assertEqual([s.composite_score for s in ranked], sorted(scores, reverse=True))

    def test_top_performers_limit(self):
        ranked = rank_students([_student(i, f"S{i}", float(i * 10)) for i in range(1, 8)])
        self.assertEqual([s.rank for s in top_performers(ranked, 3)], [1, 2, 3])
        self.assertEqual(top_performers(ranked, 0), [])
        self.assertEqual(top_performers(ranked, -1), [])

    def test_at_risk_keeps_worst_below_warning(self):
        ranked = rank_students(
            [_student(1, "A", 90.0), _student(2, "B", 55.0), _student(3, "C", 40.0), _student(4, "D", 30.0)]
        )
        self.assertEqual([s.id for s in at_risk(ranked, DEFAULT_THRESHOLDS, 2)], [3, 4])
        self.assertEqual(at_risk(ranked, DEFAULT_THRESHOLDS, 0), [])
