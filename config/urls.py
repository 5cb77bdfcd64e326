from django.contrib import admin
from django.urls import path

from gradebook.api import (
    AcademicYearsView,
    AttendanceView,
    BackupView,
    CasasTestsView,
    ClassDetailView,
    ClassIsstView,
    ClassListCreateView,
    ClassMetricsView,
    ClassRankingsView,
    ClassSettingsView,
    ClassStudentsView,
    ContextView,
    DropStudentView,
    DroppedStudentsView,
    ReportCardsView,
    RestoreStudentView,
    StudentDetailView,
    StudentIsstDateView,
    StudentIsstView,
    StudentNotesView,
    SyncStatusView,
    UnitTestsView,
)


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/classes/", ClassListCreateView.as_view(), name="class-list"),
    path("api/classes/<int:pk>/", ClassDetailView.as_view(), name="class-detail"),
    path("api/classes/<int:pk>/settings/", ClassSettingsView.as_view(), name="class-settings"),
    path("api/classes/<int:pk>/students/", ClassStudentsView.as_view(), name="class-students"),
    path("api/classes/<int:pk>/rankings/", ClassRankingsView.as_view(), name="class-rankings"),
    path("api/classes/<int:pk>/metrics/", ClassMetricsView.as_view(), name="class-metrics"),
    path("api/classes/<int:pk>/isst/", ClassIsstView.as_view(), name="class-isst"),
    path("api/students/dropped/", DroppedStudentsView.as_view(), name="dropped-students"),
    path("api/students/<int:pk>/", StudentDetailView.as_view(), name="student-detail"),
    path("api/students/<int:pk>/drop/", DropStudentView.as_view(), name="student-drop"),
    path("api/students/<int:pk>/restore/", RestoreStudentView.as_view(), name="student-restore"),
    path("api/students/<int:pk>/attendance/", AttendanceView.as_view(), name="student-attendance"),
    path("api/students/<int:pk>/unit-tests/", UnitTestsView.as_view(), name="student-unit-tests"),
    path("api/students/<int:pk>/casas-tests/", CasasTestsView.as_view(), name="student-casas-tests"),
    path("api/students/<int:pk>/notes/", StudentNotesView.as_view(), name="student-notes"),
    path("api/students/<int:pk>/report-cards/", ReportCardsView.as_view(), name="student-report-cards"),
    path("api/students/<int:pk>/isst/", StudentIsstView.as_view(), name="student-isst"),
    path("api/students/<int:pk>/isst/<str:day>/", StudentIsstDateView.as_view(), name="student-isst-date"),
    path("api/academic-years/", AcademicYearsView.as_view(), name="academic-years"),
    path("api/context/", ContextView.as_view(), name="context"),
    path("api/backup/", BackupView.as_view(), name="backup"),
    path("api/sync/status/", SyncStatusView.as_view(), name="sync-status"),
]
