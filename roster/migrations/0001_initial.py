from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import roster.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Class",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=128)),
                ("schedule", models.CharField(default="Morning", max_length=64)),
                ("academic_year", models.CharField(db_index=True, default=roster.models._current_academic_year, max_length=9)),
                (
                    "level",
                    models.PositiveSmallIntegerField(
                        choices=[
                            (0, "0 - Literacy"),
                            (1, "1 - Beginning Low"),
                            (2, "2 - Beginning High"),
                            (3, "3 - Intermediate Low"),
                            (4, "4 - Intermediate High"),
                            (5, "5 - Advanced"),
                        ],
                        default=3,
                    ),
                ),
                ("casas_reading_level_start", models.PositiveIntegerField(blank=True, null=True)),
                ("casas_reading_target", models.PositiveIntegerField(blank=True, null=True)),
                ("casas_listening_level_start", models.PositiveIntegerField(blank=True, null=True)),
                ("casas_listening_target", models.PositiveIntegerField(blank=True, null=True)),
                ("weight_casas_reading", models.PositiveSmallIntegerField(default=25)),
                ("weight_casas_listening", models.PositiveSmallIntegerField(default=25)),
                ("weight_tests", models.PositiveSmallIntegerField(default=30)),
                ("weight_attendance", models.PositiveSmallIntegerField(default=20)),
                ("threshold_good", models.PositiveSmallIntegerField(default=80)),
                ("threshold_warning", models.PositiveSmallIntegerField(default=60)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name", "id"],
                "verbose_name_plural": "classes",
            },
        ),
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, max_length=128)),
                ("enrollment_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True)),
                ("is_dropped", models.BooleanField(default=False)),
                ("dropped_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("klass", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="students", to="roster.class")),
            ],
            options={
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="AttendanceEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("present", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attendance", to="roster.student")),
            ],
            options={
                "ordering": ["date", "id"],
            },
        ),
        migrations.CreateModel(
            name="UnitTest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("test_name", models.CharField(max_length=128)),
                ("date", models.DateField()),
                ("score", models.DecimalField(decimal_places=2, max_digits=5)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="unit_tests", to="roster.student")),
            ],
            options={
                "ordering": ["date", "id"],
            },
        ),
        migrations.CreateModel(
            name="CasasTest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("skill", models.CharField(choices=[("reading", "Reading"), ("listening", "Listening")], max_length=10)),
                ("date", models.DateField()),
                ("form_number", models.CharField(blank=True, max_length=16)),
                ("score", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="casas_tests", to="roster.student")),
            ],
            options={
                "ordering": ["date", "id"],
            },
        ),
        migrations.CreateModel(
            name="StudentNote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                ("content", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="student_notes", to="roster.student")),
            ],
            options={
                "ordering": ["-date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="ReportCard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period_name", models.CharField(max_length=64)),
                ("casas_reading_avg", models.FloatField(blank=True, null=True)),
                ("casas_reading_progress", models.FloatField(blank=True, null=True)),
                ("casas_listening_avg", models.FloatField(blank=True, null=True)),
                ("casas_listening_progress", models.FloatField(blank=True, null=True)),
                ("test_average", models.FloatField(blank=True, null=True)),
                ("attendance_rate", models.FloatField(blank=True, null=True)),
                ("rank", models.PositiveIntegerField(blank=True, null=True)),
                ("total_students", models.PositiveIntegerField(default=0)),
                ("teacher_comments", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="report_cards", to="roster.student")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.AddConstraint(
            model_name="attendanceentry",
            constraint=models.UniqueConstraint(fields=("student", "date"), name="uq_attendance_student_date"),
        ),
        migrations.AddIndex(
            model_name="casastest",
            index=models.Index(fields=["student", "skill"], name="casas_student_skill_idx"),
        ),
    ]
