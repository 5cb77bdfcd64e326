from django.db import migrations, models
import django.core.validators
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ("roster", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="IsstRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "month",
                    models.CharField(
                        max_length=7,
                        validators=[
                            django.core.validators.RegexValidator(
                                "^\\d{4}-(0[1-9]|1[0-2])$", "Month must be formatted as YYYY-MM."
                            )
                        ],
                    ),
                ),
                ("dates", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="isst_records", to="roster.student")),
            ],
            options={
                "ordering": ["month", "id"],
            },
        ),
        migrations.AddConstraint(
            model_name="isstrecord",
            constraint=models.UniqueConstraint(fields=("student", "month"), name="uq_isst_student_month"),
        ),
    ]
