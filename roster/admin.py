from django.contrib import admin

from .models import AttendanceEntry, CasasTest, Class, IsstRecord, ReportCard, Student, StudentNote, UnitTest


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    list_display = ("name", "schedule", "academic_year", "level", "threshold_good", "threshold_warning")
    list_filter = ("academic_year", "level", "schedule")
    search_fields = ("name", "academic_year")


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("name", "klass", "enrollment_date", "is_dropped", "dropped_date")
    search_fields = ("name", "klass__name")
    list_filter = ("klass", "is_dropped")


@admin.register(AttendanceEntry)
class AttendanceEntryAdmin(admin.ModelAdmin):
    list_display = ("student", "date", "present")
    list_filter = ("present", "student__klass")
    search_fields = ("student__name",)


@admin.register(UnitTest)
class UnitTestAdmin(admin.ModelAdmin):
    list_display = ("student", "test_name", "date", "score")
    list_filter = ("test_name", "student__klass")
    search_fields = ("student__name", "test_name")


@admin.register(CasasTest)
class CasasTestAdmin(admin.ModelAdmin):
    list_display = ("student", "skill", "date", "form_number", "score")
    list_filter = ("skill", "student__klass")
    search_fields = ("student__name", "form_number")


@admin.register(StudentNote)
class StudentNoteAdmin(admin.ModelAdmin):
    list_display = ("student", "date")
    search_fields = ("student__name", "content")


@admin.register(ReportCard)
class ReportCardAdmin(admin.ModelAdmin):
    list_display = ("student", "period_name", "rank", "total_students", "created_at")
    list_filter = ("period_name",)
    search_fields = ("student__name", "period_name")


@admin.register(IsstRecord)
class IsstRecordAdmin(admin.ModelAdmin):
    list_display = ("student", "month", "updated_at")
    list_filter = ("month", "student__klass")
    search_fields = ("student__name",)
