import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("clinics", "0001_initial"),
        ("appointments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="WorkSchedule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "day_of_week",
                    models.IntegerField(
                        blank=True,
                        choices=[
                            (0, "Monday"),
                            (1, "Tuesday"),
                            (2, "Wednesday"),
                            (3, "Thursday"),
                            (4, "Friday"),
                            (5, "Saturday"),
                            (6, "Sunday"),
                        ],
                        null=True,
                    ),
                ),
                (
                    "is_exception",
                    models.BooleanField(default=False, help_text="Overrides the weekly schedule on exception_date."),
                ),
                ("exception_date", models.DateField(blank=True, null=True)),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("break_start", models.TimeField(blank=True, null=True)),
                ("break_end", models.TimeField(blank=True, null=True)),
                (
                    "is_active",
                    models.BooleanField(
                        default=True, help_text="Temporarily disable this schedule without deleting it."
                    ),
                ),
                (
                    "clinic",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="work_schedules",
                        to="clinics.clinic",
                    ),
                ),
                (
                    "professional",
                    models.ForeignKey(
                        help_text="The professional these hours belong to.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="work_schedules",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Work Schedule",
                "verbose_name_plural": "Work Schedules",
                "ordering": ["is_exception", "day_of_week", "exception_date", "start_time"],
            },
        ),
        migrations.CreateModel(
            name="ScheduleBreak",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(blank=True, max_length=100)),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("is_active", models.BooleanField(default=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                (
                    "schedule",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="breaks",
                        to="professionals.workschedule",
                    ),
                ),
            ],
            options={
                "verbose_name": "Schedule Break",
                "verbose_name_plural": "Schedule Breaks",
                "ordering": ["sort_order", "start_time"],
            },
        ),
        migrations.CreateModel(
            name="AbsenceRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "absence_type",
                    models.CharField(
                        choices=[
                            ("VACATION", "Vacation"),
                            ("SICK_LEAVE", "Sick leave"),
                            ("PERSONAL", "Personal"),
                            ("MATERNITY", "Maternity"),
                            ("TRAINING", "Training"),
                            ("OTHER", "Other"),
                        ],
                        default="VACATION",
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(help_text="Inclusive.")),
                ("reason", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")],
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "clinic",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="absence_requests",
                        to="clinics.clinic",
                    ),
                ),
                (
                    "professional",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="absence_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Absence Request",
                "verbose_name_plural": "Absence Requests",
                "ordering": ["-start_date"],
            },
        ),
        migrations.CreateModel(
            name="ProfessionalService",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "professional",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="service_qualifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="qualified_professionals",
                        to="appointments.service",
                    ),
                ),
            ],
            options={
                "verbose_name": "Professional Service",
                "verbose_name_plural": "Professional Services",
            },
        ),
        migrations.AddConstraint(
            model_name="professionalservice",
            constraint=models.UniqueConstraint(
                fields=("professional", "service"), name="unique_professional_service"
            ),
        ),
    ]
