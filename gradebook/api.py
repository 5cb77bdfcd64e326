import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import generics, serializers, status
from rest_framework.exceptions import ParseError
from rest_framework.response import Response
from rest_framework.views import APIView

from gradebook.context import AppContext
from gradebook.services.backup import BackupFormatError, export_json, import_data
from gradebook.services.class_settings import (
    SettingsValidationError,
    default_thresholds,
    default_weights,
    reset_class_settings,
    save_class_settings,
)
from gradebook.services.cloud import check_connection
from gradebook.services.isst import add_isst_date, class_isst_records, remove_isst_date
from gradebook.services.metrics import ColorThresholds, RankingWeights
from gradebook.services.retention import academic_year_bounds, academic_year_for, academic_year_options
from gradebook.services.stats import class_metrics, class_rankings, create_report_card
from gradebook.services.storage import backup_filename
from gradebook.services.sync_status import get_status
from gradebook.tasks import queue_cloud_push
from roster.models import AttendanceEntry, CasasTest, Class, IsstRecord, ReportCard, Student, StudentNote, UnitTest, month_validator

logger = logging.getLogger(__name__)


# ============================
# Serializers
# ============================


class ClassSerializer(serializers.ModelSerializer):
    level_name = serializers.CharField(read_only=True)
    ranking_weights = serializers.SerializerMethodField()
    color_thresholds = serializers.SerializerMethodField()

    class Meta:
        model = Class
        fields = [
            "id",
            "name",
            "schedule",
            "academic_year",
            "level",
            "level_name",
            "casas_reading_level_start",
            "casas_reading_target",
            "casas_listening_level_start",
            "casas_listening_target",
            "ranking_weights",
            "color_thresholds",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def get_ranking_weights(self, obj):
        return RankingWeights.for_class(obj).__dict__

    def get_color_thresholds(self, obj):
        return ColorThresholds.for_class(obj).__dict__

    def validate_academic_year(self, value):
        try:
            academic_year_bounds(value)
        except ValueError:
            raise serializers.ValidationError("Expected an academic year such as '2025-2026'.")
        return value


class StudentSerializer(serializers.ModelSerializer):
    class_id = serializers.IntegerField(source="klass_id", read_only=True)

    class Meta:
        model = Student
        fields = ["id", "name", "class_id", "enrollment_date", "notes", "is_dropped", "dropped_date", "created_at", "updated_at"]
        read_only_fields = ["is_dropped", "dropped_date", "created_at", "updated_at"]


class RestoreSerializer(serializers.Serializer):
    class_id = serializers.IntegerField(required=False)


class AttendanceEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = AttendanceEntry
        fields = ["id", "date", "present"]

    def create(self, validated_data):
        # one entry per student and day: a second call corrects the first
        entry, _ = AttendanceEntry.objects.update_or_create(
            student=validated_data["student"],
            date=validated_data["date"],
            defaults={"present": validated_data.get("present", True)},
        )
        return entry


class UnitTestSerializer(serializers.ModelSerializer):
    score = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100)

    class Meta:
        model = UnitTest
        fields = ["id", "test_name", "date", "score"]


class CasasTestSerializer(serializers.ModelSerializer):
    score = serializers.IntegerField(min_value=0, allow_null=True, required=False)

    class Meta:
        model = CasasTest
        fields = ["id", "skill", "date", "form_number", "score"]

    def validate(self, attrs):
        duplicate = CasasTest.objects.filter(
            student=self.context["student"],
            date=attrs["date"],
            form_number=attrs.get("form_number", ""),
            score=attrs.get("score"),
        )
        if duplicate.exists():
            raise serializers.ValidationError("This CASAS result is already recorded.")
        return attrs


class StudentNoteSerializer(serializers.ModelSerializer):
    class Meta:
        model = StudentNote
        fields = ["id", "date", "content"]


class IsstRecordSerializer(serializers.ModelSerializer):
    student_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = IsstRecord
        fields = ["id", "student_id", "month", "dates", "created_at", "updated_at"]
        read_only_fields = fields


class IsstDateSerializer(serializers.Serializer):
    date = serializers.DateField()


class ReportCardSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReportCard
        fields = [
            "id",
            "period_name",
            "casas_reading_avg",
            "casas_reading_progress",
            "casas_listening_avg",
            "casas_listening_progress",
            "test_average",
            "attendance_rate",
            "rank",
            "total_students",
            "teacher_comments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [f for f in fields if f not in ("period_name", "teacher_comments")]


class RankingWeightsSerializer(serializers.Serializer):
    casas_reading = serializers.IntegerField()
    casas_listening = serializers.IntegerField()
    tests = serializers.IntegerField()
    attendance = serializers.IntegerField()


class ColorThresholdsSerializer(serializers.Serializer):
    good = serializers.IntegerField()
    warning = serializers.IntegerField()


class ClassSettingsSerializer(serializers.Serializer):
    ranking_weights = RankingWeightsSerializer()
    color_thresholds = ColorThresholdsSerializer()


class ContextSerializer(serializers.Serializer):
    class_id = serializers.IntegerField(allow_null=True)


# ============================
# Classes & students
# ============================


class CloudSyncMixin:
    """Queue a background cloud push after every successful write."""

    def perform_create(self, serializer):
        super().perform_create(serializer)
        queue_cloud_push()

    def perform_update(self, serializer):
        super().perform_update(serializer)
        queue_cloud_push()

    def perform_destroy(self, instance):
        super().perform_destroy(instance)
        queue_cloud_push()


class ClassListCreateView(CloudSyncMixin, generics.ListCreateAPIView):
    serializer_class = ClassSerializer

    def get_queryset(self):
        qs = Class.objects.all()
        year = self.request.query_params.get("academic_year")
        if year:
            qs = qs.filter(academic_year=year)
        return qs


class ClassDetailView(CloudSyncMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = ClassSerializer
    queryset = Class.objects.all()


class ClassSettingsView(APIView):
    def get(self, request, pk):
        klass = get_object_or_404(Class, pk=pk)
        return Response(
            {
                "ranking_weights": RankingWeights.for_class(klass).__dict__,
                "color_thresholds": ColorThresholds.for_class(klass).__dict__,
                "defaults": {
                    "ranking_weights": default_weights().__dict__,
                    "color_thresholds": default_thresholds().__dict__,
                },
            }
        )

    def put(self, request, pk):
        klass = get_object_or_404(Class, pk=pk)
        serializer = ClassSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        weights = RankingWeights(**serializer.validated_data["ranking_weights"])
        thresholds = ColorThresholds(**serializer.validated_data["color_thresholds"])
        try:
            save_class_settings(klass, weights, thresholds)
        except SettingsValidationError as exc:
            return Response({"detail": "validation failed", "errors": exc.errors}, status=status.HTTP_400_BAD_REQUEST)
        queue_cloud_push()
        return Response({"ranking_weights": weights.__dict__, "color_thresholds": thresholds.__dict__})

    def delete(self, request, pk):
        klass = get_object_or_404(Class, pk=pk)
        reset_class_settings(klass)
        queue_cloud_push()
        return Response(
            {
                "ranking_weights": RankingWeights.for_class(klass).__dict__,
                "color_thresholds": ColorThresholds.for_class(klass).__dict__,
            }
        )


class ClassStudentsView(CloudSyncMixin, generics.ListCreateAPIView):
    serializer_class = StudentSerializer

    def get_class(self):
        return get_object_or_404(Class, pk=self.kwargs["pk"])

    def get_queryset(self):
        qs = Student.objects.filter(klass=self.get_class())
        if self.request.query_params.get("include_dropped") not in ("1", "true"):
            qs = qs.filter(is_dropped=False)
        return qs

    def perform_create(self, serializer):
        serializer.save(klass=self.get_class())
        queue_cloud_push()


class StudentDetailView(CloudSyncMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = StudentSerializer
    queryset = Student.objects.all()


class DroppedStudentsView(generics.ListAPIView):
    serializer_class = StudentSerializer
    queryset = Student.objects.filter(is_dropped=True).select_related("klass")


class DropStudentView(APIView):
    def post(self, request, pk):
        student = get_object_or_404(Student, pk=pk)
        if not student.is_dropped:
            student.drop()
            queue_cloud_push()
        return Response(StudentSerializer(student).data)


class RestoreStudentView(APIView):
    def post(self, request, pk):
        student = get_object_or_404(Student, pk=pk)
        serializer = RestoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        class_id = serializer.validated_data.get("class_id")
        klass = get_object_or_404(Class, pk=class_id) if class_id is not None else None
        student.restore(klass)
        queue_cloud_push()
        return Response(StudentSerializer(student).data)


# ============================
# Measurements
# ============================


class StudentRecordsView(CloudSyncMixin, generics.ListCreateAPIView):
    related_name = None

    def get_student(self):
        if not hasattr(self, "_student"):
            self._student = get_object_or_404(Student, pk=self.kwargs["pk"])
        return self._student

    def get_queryset(self):
        return getattr(self.get_student(), self.related_name).all()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["student"] = self.get_student()
        return context

    def perform_create(self, serializer):
        serializer.save(student=self.get_student())
        queue_cloud_push()


class AttendanceView(StudentRecordsView):
    related_name = "attendance"
    serializer_class = AttendanceEntrySerializer


class UnitTestsView(StudentRecordsView):
    related_name = "unit_tests"
    serializer_class = UnitTestSerializer


class CasasTestsView(StudentRecordsView):
    related_name = "casas_tests"
    serializer_class = CasasTestSerializer


class StudentNotesView(StudentRecordsView):
    related_name = "student_notes"
    serializer_class = StudentNoteSerializer


class ReportCardsView(StudentRecordsView):
    related_name = "report_cards"
    serializer_class = ReportCardSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        card = create_report_card(
            self.get_student(),
            serializer.validated_data["period_name"],
            serializer.validated_data.get("teacher_comments", ""),
        )
        queue_cloud_push()
        return Response(ReportCardSerializer(card).data, status=status.HTTP_201_CREATED)


class StudentIsstView(APIView):
    def get(self, request, pk):
        student = get_object_or_404(Student, pk=pk)
        return Response(IsstRecordSerializer(student.isst_records.all(), many=True).data)

    def post(self, request, pk):
        student = get_object_or_404(Student, pk=pk)
        serializer = IsstDateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = add_isst_date(student, serializer.validated_data["date"])
        queue_cloud_push()
        return Response(IsstRecordSerializer(record).data, status=status.HTTP_201_CREATED)


class StudentIsstDateView(APIView):
    def delete(self, request, pk, day):
        student = get_object_or_404(Student, pk=pk)
        try:
            parsed = parse_date(day)
        except ValueError:
            parsed = None
        if parsed is None:
            return Response({"detail": "date must be YYYY-MM-DD."}, status=status.HTTP_400_BAD_REQUEST)
        record = remove_isst_date(student, parsed)
        queue_cloud_push()
        return Response({"record": IsstRecordSerializer(record).data if record else None})


class ClassIsstView(APIView):
    def get(self, request, pk):
        klass = get_object_or_404(Class, pk=pk)
        month = request.query_params.get("month")
        if month:
            try:
                month_validator(month)
            except DjangoValidationError as exc:
                return Response({"detail": exc.messages[0]}, status=status.HTTP_400_BAD_REQUEST)
        return Response(IsstRecordSerializer(class_isst_records(klass, month), many=True).data)


# ============================
# Metrics
# ============================


class ClassRankingsView(APIView):
    def get(self, request, pk):
        klass = get_object_or_404(Class, pk=pk)
        return Response([s.as_dict() for s in class_rankings(klass)])


class ClassMetricsView(APIView):
    def get(self, request, pk):
        klass = get_object_or_404(Class, pk=pk)
        today = timezone.localdate()
        if request.query_params.get("today"):
            today = parse_date(request.query_params["today"])
            if today is None:
                return Response({"detail": "today must be YYYY-MM-DD."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            top_n = int(request.query_params.get("top", 5))
            if top_n < 0:
                raise ValueError(top_n)
        except ValueError:
            return Response({"detail": "top must be a non-negative integer."}, status=status.HTTP_400_BAD_REQUEST)
        return Response(class_metrics(klass, today=today, top_n=top_n))


class AcademicYearsView(APIView):
    def get(self, request):
        today = timezone.localdate()
        labels = Class.objects.values_list("academic_year", flat=True).distinct()
        return Response({"current": academic_year_for(today), "options": academic_year_options(labels, today)})


class ContextView(APIView):
    def get(self, request):
        context = AppContext.for_session(request.session)
        return Response({"class_id": context.current_class_id})

    def put(self, request):
        serializer = ContextSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        class_id = serializer.validated_data["class_id"]
        if class_id is not None:
            get_object_or_404(Class, pk=class_id)
        context = AppContext.for_session(request.session)
        changed = context.select(class_id)
        return Response({"class_id": context.current_class_id, "changed": changed})


# ============================
# Backup & cloud
# ============================


class BackupView(APIView):
    def get(self, request):
        response = HttpResponse(export_json(), content_type="application/json")
        response["Content-Disposition"] = f'attachment; filename="{backup_filename()}"'
        return response

    def post(self, request):
        try:
            upload = request.FILES.get("file")
            payload = upload.read() if upload is not None else request.data
            counts = import_data(payload)
        except (BackupFormatError, ParseError) as exc:
            logger.info("Backup import refused: %s", exc)
            return Response({"detail": "import failed", "error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        AppContext.for_session(request.session).select(None)
        queue_cloud_push()
        return Response({"detail": "import succeeded", "counts": counts})


class SyncStatusView(APIView):
    def get(self, request):
        result = check_connection()
        result["sync"] = get_status()
        return Response(result)
