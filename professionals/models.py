from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from clinics.models import Clinic


class WorkSchedule(models.Model):
    """
    Working hours of a professional.

    Two kinds of rows share this table:
    - regular:   repeats every week on ``day_of_week``
    - exception: overrides the regular hours on one ``exception_date``

    For a given professional and date at most one active schedule applies;
    an exception for that exact date wins over the weekly schedule.

    day_of_week uses Python's weekday() convention:
        0 = Monday, 1 = Tuesday, ..., 6 = Sunday
    """

    DAY_CHOICES = [
        (0, "Monday"),
        (1, "Tuesday"),
        (2, "Wednesday"),
        (3, "Thursday"),
        (4, "Friday"),
        (5, "Saturday"),
        (6, "Sunday"),
    ]

    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="work_schedules",
        help_text="The professional these hours belong to.",
    )
    clinic = models.ForeignKey(
        Clinic,
        on_delete=models.CASCADE,
        related_name="work_schedules",
    )
    day_of_week = models.IntegerField(choices=DAY_CHOICES, null=True, blank=True)
    is_exception = models.BooleanField(
        default=False,
        help_text="Overrides the weekly schedule on exception_date.",
    )
    exception_date = models.DateField(null=True, blank=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    break_start = models.TimeField(null=True, blank=True)
    break_end = models.TimeField(null=True, blank=True)
    is_active = models.BooleanField(
        default=True,
        help_text="Temporarily disable this schedule without deleting it.",
    )

    class Meta:
        verbose_name = "Work Schedule"
        verbose_name_plural = "Work Schedules"
        ordering = ["is_exception", "day_of_week", "exception_date", "start_time"]

    def __str__(self):
        if self.is_exception:
            label = f"{self.exception_date:%Y-%m-%d}" if self.exception_date else "exception"
        else:
            label = self.get_day_of_week_display()
        return f"{self.professional.name} - {label} ({self.start_time:%H:%M}-{self.end_time:%H:%M})"

    @property
    def has_primary_break(self):
        return self.break_start is not None and self.break_end is not None

    def clean(self):
        """
        Validate:
        1. start_time < end_time
        2. regular rows carry a day_of_week, exception rows an exception_date
        3. the primary break is complete and well ordered
        4. only one active schedule applies per professional and day/date
        """
        super().clean()

        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError({"end_time": "End time must be after start time."})

        if self.is_exception:
            if not self.exception_date:
                raise ValidationError({"exception_date": "Exception schedules need a date."})
        else:
            if self.day_of_week is None:
                raise ValidationError({"day_of_week": "Regular schedules need a day of the week."})
            if self.exception_date:
                raise ValidationError({"exception_date": "Only exception schedules can have a date."})

        if (self.break_start is None) != (self.break_end is None):
            raise ValidationError("Both break start and break end must be set, or neither.")
        if self.has_primary_break and self.break_start >= self.break_end:
            raise ValidationError({"break_end": "Break end must be after break start."})

        if not self.is_active or not self.professional_id:
            return

        clashing = WorkSchedule.objects.filter(
            professional_id=self.professional_id,
            is_active=True,
            is_exception=self.is_exception,
        )
        if self.is_exception:
            clashing = clashing.filter(exception_date=self.exception_date)
        else:
            clashing = clashing.filter(day_of_week=self.day_of_week)
        if self.pk:
            clashing = clashing.exclude(pk=self.pk)

        if clashing.exists():
            if self.is_exception:
                raise ValidationError(
                    f"An active exception schedule already exists on {self.exception_date:%Y-%m-%d}."
                )
            raise ValidationError(
                f"An active schedule already exists on {self.get_day_of_week_display()}."
            )

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class ScheduleBreak(models.Model):
    """
    Additional named break attached to a WorkSchedule (lunch, admin time...).

    Not checked against the parent schedule's hours: a break outside the
    working hours simply never blocks anything.
    """

    schedule = models.ForeignKey(
        WorkSchedule,
        on_delete=models.CASCADE,
        related_name="breaks",
    )
    name = models.CharField(max_length=100, blank=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "Schedule Break"
        verbose_name_plural = "Schedule Breaks"
        ordering = ["sort_order", "start_time"]

    def __str__(self):
        return f"{self.name or 'Break'} ({self.start_time:%H:%M}-{self.end_time:%H:%M})"

    def clean(self):
        super().clean()
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError({"end_time": "End time must be after start time."})


class AbsenceRequest(models.Model):
    """Vacation or leave request. Approved requests remove all availability on the covered dates."""

    class AbsenceType(models.TextChoices):
        VACATION = "VACATION", "Vacation"
        SICK_LEAVE = "SICK_LEAVE", "Sick leave"
        PERSONAL = "PERSONAL", "Personal"
        MATERNITY = "MATERNITY", "Maternity"
        TRAINING = "TRAINING", "Training"
        OTHER = "OTHER", "Other"

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="absence_requests",
    )
    clinic = models.ForeignKey(
        Clinic,
        on_delete=models.CASCADE,
        related_name="absence_requests",
    )
    absence_type = models.CharField(
        max_length=20, choices=AbsenceType.choices, default=AbsenceType.VACATION
    )
    start_date = models.DateField()
    end_date = models.DateField(help_text="Inclusive.")
    reason = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Absence Request"
        verbose_name_plural = "Absence Requests"
        ordering = ["-start_date"]

    def __str__(self):
        return (
            f"{self.professional.name} - {self.get_absence_type_display()} "
            f"{self.start_date:%Y-%m-%d}..{self.end_date:%Y-%m-%d} ({self.status})"
        )

    @property
    def total_days(self):
        return (self.end_date - self.start_date).days + 1

    def covers(self, target_date):
        return self.start_date <= target_date <= self.end_date

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({"end_date": "End date cannot be before start date."})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class ProfessionalService(models.Model):
    """Which services a professional is qualified to perform."""

    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="service_qualifications",
    )
    service = models.ForeignKey(
        "appointments.Service",
        on_delete=models.CASCADE,
        related_name="qualified_professionals",
    )

    class Meta:
        verbose_name = "Professional Service"
        verbose_name_plural = "Professional Services"
        constraints = [
            models.UniqueConstraint(
                fields=["professional", "service"],
                name="unique_professional_service",
            ),
        ]

    def __str__(self):
        return f"{self.professional.name} → {self.service.name}"
