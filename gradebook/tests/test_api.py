from datetime import date
from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient

from roster.models import AttendanceEntry, CasasTest, Class, Student, UnitTest


@patch("gradebook.api.queue_cloud_push")
class ClassApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.klass = Class.objects.create(name="Morning", level=3, academic_year="2025-2026")

    def test_create_class_fills_level_targets(self, mock_push):
        resp = self.client.post("/api/classes/", {"name": "Evening", "level": 2, "academic_year": "2025-2026"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["casas_reading_level_start"], 197)
        self.assertEqual(resp.data["casas_reading_target"], 207)
        self.assertEqual(resp.data["ranking_weights"]["tests"], 30)
        mock_push.assert_called_once()

    def test_invalid_academic_year(self, mock_push):
        resp = self.client.post("/api/classes/", {"name": "Evening", "academic_year": "2025-2027"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("academic_year", resp.data)

    def test_filter_by_academic_year(self, mock_push):
        Class.objects.create(name="Old", academic_year="2023-2024")
        resp = self.client.get("/api/classes/", {"academic_year": "2023-2024"})
        self.assertEqual([c["name"] for c in resp.data], ["Old"])

    def test_settings_rejected_unless_total_is_100(self, mock_push):
        payload = {
            "ranking_weights": {"casas_reading": 25, "casas_listening": 25, "tests": 30, "attendance": 10},
            "color_thresholds": {"good": 80, "warning": 60},
        }
        resp = self.client.put(f"/api/classes/{self.klass.id}/settings/", payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["detail"], "validation failed")
        self.assertEqual(len(resp.data["errors"]), 1)
        self.klass.refresh_from_db()
        self.assertEqual(self.klass.weight_attendance, 20)
        mock_push.assert_not_called()

    def test_settings_saved(self, mock_push):
        payload = {
            "ranking_weights": {"casas_reading": 10, "casas_listening": 10, "tests": 40, "attendance": 40},
            "color_thresholds": {"good": 85, "warning": 65},
        }
        resp = self.client.put(f"/api/classes/{self.klass.id}/settings/", payload, format="json")
        self.assertEqual(resp.status_code, 200)
        self.klass.refresh_from_db()
        self.assertEqual((self.klass.weight_tests, self.klass.threshold_good), (40, 85))
        resp = self.client.get(f"/api/classes/{self.klass.id}/settings/")
        self.assertEqual(resp.data["defaults"]["ranking_weights"]["tests"], 30)

    def test_settings_reset_to_defaults(self, mock_push):
        self.klass.weight_tests = 50
        self.klass.weight_attendance = 0
        self.klass.threshold_good = 95
        self.klass.save()
        resp = self.client.delete(f"/api/classes/{self.klass.id}/settings/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["ranking_weights"]["tests"], 30)
        self.assertEqual(resp.data["color_thresholds"]["good"], 80)
        mock_push.assert_called_once()

    def test_academic_years(self, mock_push):
        resp = self.client.get("/api/academic-years/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("2025-2026", resp.data["options"])
        self.assertIn(resp.data["current"], resp.data["options"])


@patch("gradebook.api.queue_cloud_push")
class StudentApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.klass = Class.objects.create(name="Morning", level=3, academic_year="2025-2026")
        self.other = Class.objects.create(name="Evening", level=3, academic_year="2025-2026")
        self.student = Student.objects.create(name="Maria", klass=self.klass, enrollment_date=date(2025, 9, 1))

    def test_create_student_in_class(self, mock_push):
        resp = self.client.post(
            f"/api/classes/{self.klass.id}/students/", {"name": "Ahmed", "enrollment_date": "2025-09-15"}, format="json"
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["class_id"], self.klass.id)
        self.assertFalse(resp.data["is_dropped"])

    def test_drop_and_restore(self, mock_push):
        resp = self.client.post(f"/api/students/{self.student.id}/drop/")
        self.assertTrue(resp.data["is_dropped"])
        self.assertIsNotNone(resp.data["dropped_date"])

        listed = self.client.get(f"/api/classes/{self.klass.id}/students/")
        self.assertEqual(listed.data, [])
        dropped = self.client.get("/api/students/dropped/")
        self.assertEqual([s["id"] for s in dropped.data], [self.student.id])

        resp = self.client.post(f"/api/students/{self.student.id}/restore/", {"class_id": self.other.id}, format="json")
        self.assertFalse(resp.data["is_dropped"])
        self.assertEqual(resp.data["class_id"], self.other.id)

    def test_attendance_is_one_entry_per_day(self, mock_push):
        url = f"/api/students/{self.student.id}/attendance/"
        self.client.post(url, {"date": "2025-09-02", "present": True}, format="json")
        resp = self.client.post(url, {"date": "2025-09-02", "present": False}, format="json")
        self.assertEqual(resp.status_code, 201)
        entry = AttendanceEntry.objects.get(student=self.student)
        self.assertFalse(entry.present)

    def test_duplicate_casas_result_rejected(self, mock_push):
        url = f"/api/students/{self.student.id}/casas-tests/"
        payload = {"skill": "reading", "date": "2025-09-10", "form_number": "627R", "score": 212}
        self.assertEqual(self.client.post(url, payload, format="json").status_code, 201)
        self.assertEqual(self.client.post(url, payload, format="json").status_code, 400)
        self.assertEqual(CasasTest.objects.count(), 1)

    def test_invalid_casas_score_is_allowed_as_null(self, mock_push):
        url = f"/api/students/{self.student.id}/casas-tests/"
        resp = self.client.post(url, {"skill": "listening", "date": "2025-09-10", "form_number": "627L", "score": None}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertIsNone(resp.data["score"])

    def test_unit_test_score_bounds(self, mock_push):
        url = f"/api/students/{self.student.id}/unit-tests/"
        resp = self.client.post(url, {"test_name": "Unit 1", "date": "2025-09-20", "score": 120}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(UnitTest.objects.count(), 0)

    def test_notes(self, mock_push):
        url = f"/api/students/{self.student.id}/notes/"
        resp = self.client.post(url, {"date": "2025-09-03", "content": "Moved to evening shift"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(len(self.client.get(url).data), 1)

    def test_unknown_student(self, mock_push):
        self.assertEqual(self.client.get("/api/students/9999/attendance/").status_code, 404)

    def test_rankings_metrics_and_report_card(self, mock_push):
        UnitTest.objects.create(student=self.student, test_name="Unit 1", date=date(2025, 9, 20), score=90)
        Student.objects.create(name="Ahmed", klass=self.klass, enrollment_date=date(2025, 9, 1))

        rankings = self.client.get(f"/api/classes/{self.klass.id}/rankings/")
        self.assertEqual([(s["name"], s["rank"]) for s in rankings.data], [("Maria", 1), ("Ahmed", None)])

        metrics = self.client.get(f"/api/classes/{self.klass.id}/metrics/", {"today": "2025-10-31"})
        self.assertEqual(metrics.status_code, 200)
        self.assertEqual(metrics.data["student_count"], 2)
        self.assertEqual(metrics.data["top_performers"][0]["name"], "Maria")

        bad = self.client.get(f"/api/classes/{self.klass.id}/metrics/", {"today": "yesterday"})
        self.assertEqual(bad.status_code, 400)

        card = self.client.post(f"/api/students/{self.student.id}/report-cards/", {"period_name": "Fall 2025"}, format="json")
        self.assertEqual(card.status_code, 201)
        self.assertEqual(card.data["rank"], 1)
        self.assertEqual(card.data["test_average"], 90.0)
        negative = self.client.get(f"/api/classes/{self.klass.id}/metrics/", {"today": "2025-10-31", "top": "-1"})
        self.assertEqual(negative.status_code, 400)
        none = self.client.get(f"/api/classes/{self.klass.id}/metrics/", {"today": "2025-10-31", "top": "0"})
        self.assertEqual(none.data["top_performers"], [])

    def test_isst_dates(self, mock_push):
        url = f"/api/students/{self.student.id}/isst/"
        resp = self.client.post(url, {"date": "2025-09-18"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.client.post(url, {"date": "2025-09-04"}, format="json")
        resp = self.client.post(url, {"date": "2025-09-04"}, format="json")
        self.assertEqual(resp.data["month"], "2025-09")
        self.assertEqual(resp.data["dates"], ["2025-09-04", "2025-09-18"])
        self.assertEqual(self.client.post(url, {"date": "someday"}, format="json").status_code, 400)

        resp = self.client.delete(f"{url}2025-09-04/")
        self.assertEqual(resp.data["record"]["dates"], ["2025-09-18"])
        resp = self.client.delete(f"{url}2025-09-18/")
        self.assertIsNone(resp.data["record"])
        self.assertEqual(self.client.delete(f"{url}2025-02-30/").status_code, 400)
        self.assertEqual(self.client.get(url).data, [])

    def test_class_isst_by_month(self, mock_push):
        url = f"/api/students/{self.student.id}/isst/"
        self.client.post(url, {"date": "2025-09-04"}, format="json")
        self.client.post(url, {"date": "2025-10-02"}, format="json")

        resp = self.client.get(f"/api/classes/{self.klass.id}/isst/", {"month": "2025-10"})
        self.assertEqual([(r["student_id"], r["dates"]) for r in resp.data], [(self.student.id, ["2025-10-02"])])
        self.assertEqual(len(self.client.get(f"/api/classes/{self.klass.id}/isst/").data), 2)
        bad = self.client.get(f"/api/classes/{self.klass.id}/isst/", {"month": "2025-13"})
        self.assertEqual(bad.status_code, 400)


class ContextApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.klass = Class.objects.create(name="Morning", academic_year="2025-2026")

    def test_select_class(self):
        self.assertIsNone(self.client.get("/api/context/").data["class_id"])
        resp = self.client.put("/api/context/", {"class_id": self.klass.id}, format="json")
        self.assertTrue(resp.data["changed"])
        resp = self.client.put("/api/context/", {"class_id": self.klass.id}, format="json")
        self.assertFalse(resp.data["changed"])
        self.assertEqual(self.client.get("/api/context/").data["class_id"], self.klass.id)

    def test_unknown_class(self):
        resp = self.client.put("/api/context/", {"class_id": 9999}, format="json")
        self.assertEqual(resp.status_code, 404)


@patch("gradebook.api.queue_cloud_push")
class BackupApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        klass = Class.objects.create(name="Morning", academic_year="2025-2026")
        Student.objects.create(name="Maria", klass=klass, enrollment_date=date(2025, 9, 1))

    def test_export_then_import(self, mock_push):
        resp = self.client.get("/api/backup/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("attachment", resp["Content-Disposition"])
        backup = resp.json()

        Class.objects.create(name="Extra")
        resp = self.client.post("/api/backup/", backup, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["counts"]["classes"], 1)
        self.assertEqual(Class.objects.count(), 1)
        mock_push.assert_called_once()

    def test_malformed_import_changes_nothing(self, mock_push):
        resp = self.client.post("/api/backup/", data="{broken", content_type="application/json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["detail"], "import failed")
        self.assertEqual((Class.objects.count(), Student.objects.count()), (1, 1))
        mock_push.assert_not_called()

    def test_unhashable_id_is_refused(self, mock_push):
        resp = self.client.post("/api/backup/", {"classes": [{"id": {"a": 1}}], "students": []}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["detail"], "import failed")
        self.assertEqual(Class.objects.count(), 1)
        mock_push.assert_not_called()


class SyncStatusApiTests(TestCase):
    @patch("gradebook.api.get_status", return_value={"status": "synced", "error": None, "updated_at": 1.0})
    @patch("gradebook.api.check_connection")
    def test_status(self, mock_check, mock_status):
        mock_check.return_value = {"configured": True, "connected": True, "tables": [], "error": None}
        resp = self.client.get("/api/sync/status/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["connected"])
        self.assertEqual(resp.data["sync"]["status"], "synced")
