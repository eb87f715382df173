"""
Tests for appointment creation and recurrence.

Covers:
- Recurrence planner (expansion, validation, descriptions, preview)
- Appointment writer (single bookings with re-check, recurring batches)
- API endpoints (POST /appointments/api/appointments/, recurrence preview)
"""

from datetime import date, time, timedelta
from decimal import Decimal
from unittest.mock import patch

from dateutil.relativedelta import relativedelta
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from appointments.models import Appointment, GroupActivity, Service
from appointments.services import (
    BatchInsertError,
    BookingError,
    RecurrenceError,
    RecurrenceRule,
    SlotUnavailableError,
    TooManyInstancesError,
    advance,
    create_appointment,
    create_appointments,
    create_recurring_appointments,
    describe_recurrence,
    generate_recurring_dates,
    preview_recurrence,
    validate_recurrence_rule,
)
from clients.models import Client
from clinics.models import Clinic, ClinicStaff
from professionals.models import AbsenceRequest, ScheduleBreak, WorkSchedule

User = get_user_model()


class BookingTestMixin:
    """Shared setup for booking tests."""

    def setUp(self):
        self.owner = User.objects.create_user(
            phone="0610000001",
            password="testpass123",
            name="Clinic Owner",
            role="ADMIN",
        )
        self.professional = User.objects.create_user(
            phone="0610000002",
            password="testpass123",
            name="Lucia Osteo",
        )
        self.receptionist = User.objects.create_user(
            phone="0610000003",
            password="testpass123",
            name="Rita Desk",
            role="RECEPTIONIST",
        )

        self.clinic = Clinic.objects.create(
            name="Centro Norte",
            address="Calle Mayor 1",
            phone="0610111111",
            owner=self.owner,
        )
        self.other_clinic = Clinic.objects.create(name="Centro Sur", owner=self.owner)

        ClinicStaff.objects.create(clinic=self.clinic, user=self.professional, role="PROFESSIONAL")
        ClinicStaff.objects.create(clinic=self.clinic, user=self.receptionist, role="RECEPTIONIST")

        self.service = Service.objects.create(
            clinic=self.clinic,
            name="Osteopathy",
            duration_minutes=30,
            price=Decimal("55.00"),
        )
        self.client_record = Client.objects.create(clinic=self.clinic, name="Carla Client")

        self.first_date = timezone.localdate() + timedelta(days=1)
        self.schedule = WorkSchedule.objects.create(
            professional=self.professional,
            clinic=self.clinic,
            day_of_week=self.first_date.weekday(),
            start_time=time(9, 0),
            end_time=time(17, 0),
        )

    def template(self, **overrides):
        template = {
            "clinic_id": self.clinic.id,
            "professional_id": self.professional.id,
            "client_id": self.client_record.id,
            "service_id": self.service.id,
            "date": self.first_date,
            "start_time": time(10, 0),
            "end_time": time(10, 30),
            "status": Appointment.Status.CONFIRMED,
            "notes": "",
        }
        template.update(overrides)
        return template


# ─── Models ──────────────────────────────────────────────────────────────


class ServiceModelTests(BookingTestMixin, TestCase):

    def test_zero_duration_rejected_on_save(self):
        with self.assertRaises(ValidationError):
            Service.objects.create(clinic=self.clinic, name="Empty", duration_minutes=0)
        self.assertFalse(Service.objects.filter(name="Empty").exists())

    def test_duplicate_name_in_clinic_rejected(self):
        with self.assertRaises(ValidationError):
            Service.objects.create(clinic=self.clinic, name="Osteopathy", duration_minutes=45)
        Service.objects.create(clinic=self.other_clinic, name="Osteopathy", duration_minutes=45)


# ─── Recurrence planner ──────────────────────────────────────────────────


class RecurringDatesTests(SimpleTestCase):

    def test_every_two_weeks(self):
        rule = RecurrenceRule("weekly", 2, date(2024, 2, 1))
        self.assertEqual(
            generate_recurring_dates(date(2024, 1, 1), rule),
            [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29)],
        )

    def test_daily(self):
        rule = RecurrenceRule("daily", 3, date(2024, 1, 10))
        self.assertEqual(
            generate_recurring_dates(date(2024, 1, 1), rule),
            [date(2024, 1, 1), date(2024, 1, 4), date(2024, 1, 7), date(2024, 1, 10)],
        )

    def test_monthly_clamps_to_month_end(self):
        rule = RecurrenceRule("monthly", 1, date(2024, 4, 30))
        self.assertEqual(
            generate_recurring_dates(date(2024, 1, 31), rule),
            [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 29), date(2024, 4, 29)],
        )

    def test_end_date_before_second_occurrence(self):
        rule = RecurrenceRule("weekly", 1, date(2024, 1, 5))
        self.assertEqual(generate_recurring_dates(date(2024, 1, 1), rule), [date(2024, 1, 1)])

    def test_capped(self):
        rule = RecurrenceRule("daily", 1, date(2024, 12, 31))
        self.assertEqual(len(generate_recurring_dates(date(2024, 1, 1), rule, max_instances=5)), 5)

    @override_settings(APPOINTMENT_MAX_RECURRENCE_INSTANCES=10)
    def test_default_cap_from_settings(self):
        rule = RecurrenceRule("daily", 1, date(2024, 12, 31))
        self.assertEqual(len(generate_recurring_dates(date(2024, 1, 1), rule)), 10)

    def test_each_date_is_k_advances_from_seed(self):
        seed = date(2024, 3, 4)
        rule = RecurrenceRule("weekly", 3, date(2025, 3, 1))
        dates = generate_recurring_dates(seed, rule)
        for k, d in enumerate(dates):
            self.assertEqual(d, seed + timedelta(weeks=3 * k))
        self.assertEqual(dates, sorted(set(dates)))
        self.assertLessEqual(dates[-1], rule.end_date)

    def test_advance(self):
        self.assertEqual(advance(date(2024, 1, 1), "daily", 2), date(2024, 1, 3))
        self.assertEqual(advance(date(2024, 1, 1), "weekly", 1), date(2024, 1, 8))
        self.assertEqual(advance(date(2024, 1, 31), "monthly", 1), date(2024, 2, 29))
        with self.assertRaises(RecurrenceError):
            advance(date(2024, 1, 1), "yearly", 1)


class RecurrenceValidationTests(SimpleTestCase):

    today = date(2024, 1, 1)

    def assertInvalid(self, rule):
        with self.assertRaises(RecurrenceError) as ctx:
            validate_recurrence_rule(rule, today=self.today)
        self.assertEqual(ctx.exception.code, "invalid_recurrence")
        return ctx.exception

    def test_valid_rules(self):
        for unit in ("daily", "weekly", "monthly"):
            validate_recurrence_rule(RecurrenceRule(unit, 1, date(2024, 6, 1)), today=self.today)
        validate_recurrence_rule(RecurrenceRule("weekly", 12, date(2026, 1, 1)), today=self.today)

    def test_unknown_unit(self):
        error = self.assertInvalid(RecurrenceRule("yearly", 1, date(2024, 6, 1)))
        self.assertIn("yearly", error.message)

    def test_interval_bounds(self):
        self.assertInvalid(RecurrenceRule("weekly", 0, date(2024, 6, 1)))
        self.assertInvalid(RecurrenceRule("weekly", -1, date(2024, 6, 1)))
        self.assertInvalid(RecurrenceRule("weekly", 13, date(2024, 6, 1)))
        self.assertInvalid(RecurrenceRule("weekly", "2", date(2024, 6, 1)))

    def test_missing_end_date(self):
        self.assertInvalid(RecurrenceRule("weekly", 1, None))

    def test_end_date_not_in_future(self):
        self.assertInvalid(RecurrenceRule("weekly", 1, self.today))
        self.assertInvalid(RecurrenceRule("weekly", 1, date(2023, 12, 1)))

    def test_end_date_too_far(self):
        self.assertInvalid(RecurrenceRule("weekly", 1, date(2026, 1, 2)))

    def test_is_a_booking_error(self):
        with self.assertRaises(BookingError):
            validate_recurrence_rule(RecurrenceRule("weekly", 0, date(2024, 6, 1)), today=self.today)


class DescribeRecurrenceTests(SimpleTestCase):

    def test_descriptions(self):
        self.assertEqual(
            describe_recurrence(RecurrenceRule("weekly", 2, date(2024, 2, 1))),
            "Every 2 weeks until 2024-02-01",
        )
        self.assertEqual(
            describe_recurrence(RecurrenceRule("daily", 1, date(2024, 2, 1))),
            "Every day until 2024-02-01",
        )
        self.assertEqual(
            describe_recurrence(RecurrenceRule("monthly", 1, date(2024, 6, 30))),
            "Every month until 2024-06-30",
        )


class PreviewRecurrenceTests(BookingTestMixin, TestCase):

    def test_preview_lists_conflicts(self):
        rule = RecurrenceRule("weekly", 1, self.first_date + timedelta(weeks=3))
        clash_date = self.first_date + timedelta(weeks=2)
        Appointment.objects.create(
            clinic=self.clinic,
            professional=self.professional,
            client=self.client_record,
            date=clash_date,
            start_time=time(10, 15),
            end_time=time(10, 45),
        )
        Appointment.objects.create(
            clinic=self.clinic,
            professional=self.professional,
            client=self.client_record,
            date=self.first_date + timedelta(weeks=1),
            start_time=time(10, 0),
            end_time=time(10, 30),
            status=Appointment.Status.CANCELLED,
        )

        preview = preview_recurrence(self.first_date, rule, self.professional.id, time(10, 0), time(10, 30))

        self.assertEqual(preview["count"], 4)
        self.assertEqual(preview["dates"][0], self.first_date)
        self.assertEqual(preview["conflicts"], [clash_date])
        self.assertEqual(preview["description"], describe_recurrence(rule))
        self.assertEqual(Appointment.objects.count(), 2)


# ─── Appointment writer ──────────────────────────────────────────────────


class CreateAppointmentTests(BookingTestMixin, TestCase):
    """Tests for single bookings."""

    def test_create_success(self):
        appointment = create_appointment(self.template(), self.first_date)
        self.assertEqual(appointment.date, self.first_date)
        self.assertEqual(appointment.professional, self.professional)
        self.assertEqual(appointment.status, Appointment.Status.CONFIRMED)

    def test_overlapping_appointment_raises(self):
        create_appointment(self.template(), self.first_date)
        with self.assertRaises(SlotUnavailableError) as ctx:
            create_appointment(self.template(start_time=time(10, 15), end_time=time(10, 45)), self.first_date)
        self.assertEqual(ctx.exception.code, "slot_unavailable")
        self.assertEqual(Appointment.objects.count(), 1)

    def test_adjacent_appointment_ok(self):
        create_appointment(self.template(), self.first_date)
        create_appointment(self.template(start_time=time(10, 30), end_time=time(11, 0)), self.first_date)
        self.assertEqual(Appointment.objects.count(), 2)

    def test_cancelled_appointment_does_not_block(self):
        first = create_appointment(self.template(), self.first_date)
        first.status = Appointment.Status.CANCELLED
        first.save()
        create_appointment(self.template(), self.first_date)
        self.assertEqual(Appointment.objects.count(), 2)

    def test_group_activity_blocks(self):
        GroupActivity.objects.create(
            clinic=self.clinic,
            professional=self.professional,
            name="Pilates",
            date=self.first_date,
            start_time=time(9, 30),
            end_time=time(10, 30),
        )
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(), self.first_date)

    def test_outside_working_hours_raises(self):
        with self.assertRaises(SlotUnavailableError) as ctx:
            create_appointment(self.template(start_time=time(22, 0), end_time=time(22, 30)), self.first_date)
        self.assertEqual(ctx.exception.code, "slot_unavailable")
        self.assertEqual(Appointment.objects.count(), 0)

    def test_running_past_closing_time_raises(self):
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(start_time=time(16, 45), end_time=time(17, 15)), self.first_date)

    def test_ending_at_closing_time_ok(self):
        create_appointment(self.template(start_time=time(16, 30), end_time=time(17, 0)), self.first_date)
        self.assertEqual(Appointment.objects.count(), 1)

    def test_break_blocks(self):
        ScheduleBreak.objects.create(schedule=self.schedule, name="Lunch", start_time=time(13, 0), end_time=time(14, 0))
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(start_time=time(13, 0), end_time=time(13, 30)), self.first_date)
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(start_time=time(12, 45), end_time=time(13, 15)), self.first_date)
        create_appointment(self.template(start_time=time(14, 0), end_time=time(14, 30)), self.first_date)
        self.assertEqual(Appointment.objects.count(), 1)

    def test_primary_break_blocks(self):
        self.schedule.break_start = time(13, 0)
        self.schedule.break_end = time(14, 0)
        self.schedule.save()
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(start_time=time(13, 30), end_time=time(14, 0)), self.first_date)

    def test_approved_absence_blocks(self):
        AbsenceRequest.objects.create(
            professional=self.professional,
            clinic=self.clinic,
            start_date=self.first_date,
            end_date=self.first_date,
            status=AbsenceRequest.Status.APPROVED,
        )
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(), self.first_date)
        self.assertEqual(Appointment.objects.count(), 0)

    def test_pending_absence_does_not_block(self):
        AbsenceRequest.objects.create(
            professional=self.professional,
            clinic=self.clinic,
            start_date=self.first_date,
            end_date=self.first_date,
        )
        create_appointment(self.template(), self.first_date)
        self.assertEqual(Appointment.objects.count(), 1)

    def test_day_without_schedule_raises(self):
        other_day = self.first_date + timedelta(days=1)
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(date=other_day), other_day)

    def test_schedule_of_another_clinic_does_not_count(self):
        self.schedule.clinic = self.other_clinic
        self.schedule.save()
        with self.assertRaises(SlotUnavailableError):
            create_appointment(self.template(), self.first_date)

    def test_recurrence_fields_ignored(self):
        template = self.template(is_recurring=False, recurrence_type="weekly", recurrence_interval=1)
        appointments = create_appointments(template)
        self.assertEqual(len(appointments), 1)


@override_settings(APPOINTMENT_BATCH_PAUSE_SECONDS=0)
class CreateRecurringAppointmentsTests(BookingTestMixin, TestCase):
    """Tests for recurring series."""

    def recurring_template(self, recurrence_type="weekly", interval=1, weeks=3):
        return self.template(
            is_recurring=True,
            recurrence_type=recurrence_type,
            recurrence_interval=interval,
            recurrence_end_date=self.first_date + timedelta(weeks=weeks),
        )

    def test_weekly_series(self):
        appointments = create_appointments(self.recurring_template())
        self.assertEqual(len(appointments), 4)
        dates = list(Appointment.objects.order_by("date").values_list("date", flat=True))
        self.assertEqual(dates, [self.first_date + timedelta(weeks=k) for k in range(4)])

    def test_rows_are_independent_copies(self):
        create_appointments(self.recurring_template())
        rows = Appointment.objects.all()
        self.assertTrue(all(a.start_time == time(10, 0) for a in rows))
        self.assertTrue(all(a.client_id == self.client_record.id for a in rows))
        rows.filter(date=self.first_date).update(status=Appointment.Status.CANCELLED)
        self.assertEqual(Appointment.objects.exclude(status=Appointment.Status.CANCELLED).count(), 3)

    def test_explicit_rule(self):
        rule = RecurrenceRule("daily", 1, self.first_date + timedelta(days=4))
        appointments = create_recurring_appointments(self.template(), rule)
        self.assertEqual(len(appointments), 5)

    def test_invalid_rule_creates_nothing(self):
        with self.assertRaises(RecurrenceError):
            create_appointments(self.recurring_template(recurrence_type="yearly"))
        with self.assertRaises(RecurrenceError):
            create_appointments(self.recurring_template(interval=0))
        self.assertEqual(Appointment.objects.count(), 0)

    @override_settings(APPOINTMENT_MAX_RECURRENCE_INSTANCES=3)
    def test_too_many_instances(self):
        with self.assertRaises(TooManyInstancesError) as ctx:
            create_appointments(self.recurring_template(recurrence_type="daily", weeks=1))
        self.assertEqual(ctx.exception.code, "too_many_instances")
        self.assertEqual(Appointment.objects.count(), 0)

    @override_settings(APPOINTMENT_MAX_RECURRENCE_INSTANCES=4)
    def test_exactly_at_ceiling(self):
        self.assertEqual(len(create_appointments(self.recurring_template())), 4)

    @override_settings(APPOINTMENT_BATCH_SIZE=2)
    def test_inserted_in_batches(self):
        real_bulk_create = Appointment.objects.bulk_create
        rule = RecurrenceRule("daily", 1, self.first_date + timedelta(days=4))
        with patch.object(Appointment.objects, "bulk_create", side_effect=real_bulk_create) as bulk_create:
            appointments = create_recurring_appointments(self.template(), rule)
        self.assertEqual(len(appointments), 5)
        self.assertEqual([len(c.args[0]) for c in bulk_create.call_args_list], [2, 2, 1])

    @override_settings(APPOINTMENT_BATCH_SIZE=2, APPOINTMENT_BATCH_PAUSE_SECONDS=0.1)
    def test_pause_between_batches(self):
        with patch("appointments.services.booking_service.time_module.sleep") as sleep:
            create_appointments(self.recurring_template(weeks=4))
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(0.1)

    @override_settings(APPOINTMENT_BATCH_SIZE=2)
    def test_failed_batch_keeps_committed_rows(self):
        real_bulk_create = Appointment.objects.bulk_create
        calls = []

        def fail_second_batch(batch, *args, **kwargs):
            calls.append(len(batch))
            if len(calls) == 2:
                raise DatabaseError("connection lost")
            return real_bulk_create(batch, *args, **kwargs)

        with patch.object(Appointment.objects, "bulk_create", side_effect=fail_second_batch):
            with self.assertLogs("appointments.services.booking_service", level="ERROR"):
                with self.assertRaises(BatchInsertError) as ctx:
                    create_appointments(self.recurring_template(weeks=4))

        self.assertEqual(ctx.exception.created_count, 2)
        self.assertEqual(ctx.exception.code, "batch_insert_failed")
        self.assertEqual(calls, [2, 2])
        self.assertEqual(Appointment.objects.count(), 2)

    def test_series_not_checked_for_conflicts(self):
        create_appointment(self.template(), self.first_date + timedelta(weeks=1))
        appointments = create_appointments(self.recurring_template())
        self.assertEqual(len(appointments), 4)
        self.assertEqual(Appointment.objects.count(), 5)


# ─── API ─────────────────────────────────────────────────────────────────


@override_settings(APPOINTMENT_BATCH_PAUSE_SECONDS=0)
class CreateAppointmentAPITests(BookingTestMixin, TestCase):
    """Tests for POST /appointments/api/appointments/."""

    def setUp(self):
        super().setUp()
        self.api = APIClient()
        self.api.force_authenticate(user=self.receptionist)
        self.url = reverse("appointments:api_create_appointment")

    def payload(self, **overrides):
        payload = {
            "clinic_id": self.clinic.id,
            "professional_id": self.professional.id,
            "client_id": self.client_record.id,
            "service_id": self.service.id,
            "date": self.first_date.isoformat(),
            "start_time": "10:00",
        }
        payload.update(overrides)
        return payload

    def test_create_single(self):
        response = self.api.post(self.url, self.payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["created_count"], 1)
        self.assertEqual(response.data["end_time"], "10:30:00")
        self.assertEqual(response.data["professional_name"], "Lucia Osteo")
        appointment = Appointment.objects.get()
        self.assertEqual(appointment.created_by, self.receptionist)

    def test_create_recurring(self):
        end = self.first_date + timedelta(weeks=4)
        response = self.api.post(
            self.url,
            self.payload(
                is_recurring=True,
                recurrence_type="weekly",
                recurrence_interval=2,
                recurrence_end_date=end.isoformat(),
            ),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["created_count"], 3)
        self.assertEqual(response.data["date"], self.first_date.isoformat())
        self.assertEqual(Appointment.objects.count(), 3)

    def test_invalid_recurrence(self):
        response = self.api.post(
            self.url,
            self.payload(
                is_recurring=True,
                recurrence_type="weekly",
                recurrence_interval=13,
                recurrence_end_date=(self.first_date + timedelta(weeks=4)).isoformat(),
            ),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_recurrence")

    def test_recurring_without_end_date(self):
        response = self.api.post(
            self.url,
            self.payload(is_recurring=True, recurrence_type="weekly"),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_recurrence")

    @override_settings(APPOINTMENT_MAX_RECURRENCE_INSTANCES=2)
    def test_too_many_instances(self):
        response = self.api.post(
            self.url,
            self.payload(
                is_recurring=True,
                recurrence_type="daily",
                recurrence_end_date=(self.first_date + timedelta(days=5)).isoformat(),
            ),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "too_many_instances")
        self.assertEqual(Appointment.objects.count(), 0)

    def test_slot_taken_returns_409(self):
        self.api.post(self.url, self.payload(), format="json")
        response = self.api.post(self.url, self.payload(start_time="10:15"), format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "slot_unavailable")

    def test_outside_working_hours_returns_409(self):
        response = self.api.post(self.url, self.payload(start_time="22:00"), format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "slot_unavailable")
        self.assertEqual(Appointment.objects.count(), 0)

    def test_batch_failure_returns_created_count(self):
        with patch(
            "appointments.api_views.create_appointments",
            side_effect=BatchInsertError(50),
        ):
            response = self.api.post(self.url, self.payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["created_count"], 50)

    def test_end_time_required_without_service(self):
        response = self.api.post(self.url, self.payload(service_id=None), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_time", response.data)

    def test_explicit_end_time(self):
        response = self.api.post(self.url, self.payload(end_time="11:00"), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["end_time"], "11:00:00")

    def test_end_before_start(self):
        response = self.api.post(self.url, self.payload(end_time="09:00"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_from_other_clinic(self):
        outsider = Client.objects.create(clinic=self.other_clinic, name="Other Client")
        response = self.api.post(self.url, self.payload(client_id=outsider.id), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("client_id", response.data)

    def test_professional_not_in_clinic(self):
        stranger = User.objects.create_user(phone="0610000099", password="x", name="Stranger")
        response = self.api.post(self.url, self.payload(professional_id=stranger.id), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("professional_id", response.data)

    def test_not_a_member(self):
        self.api.force_authenticate(user=self.owner)
        response = self.api.post(self.url, self.payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_superuser_bypasses_membership(self):
        admin = User.objects.create_superuser(phone="0610000100", password="x", name="Platform Admin")
        self.api.force_authenticate(user=admin)
        response = self.api.post(self.url, self.payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_unauthenticated(self):
        self.api.force_authenticate(user=None)
        response = self.api.post(self.url, self.payload(), format="json")
        self.assertIn(response.status_code, [status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN])


class RecurrencePreviewAPITests(BookingTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.api = APIClient()
        self.api.force_authenticate(user=self.receptionist)
        self.url = reverse("appointments:api_recurrence_preview")

    def test_preview(self):
        Appointment.objects.create(
            clinic=self.clinic,
            professional=self.professional,
            client=self.client_record,
            date=self.first_date + timedelta(weeks=1),
            start_time=time(10, 0),
            end_time=time(10, 30),
        )
        response = self.api.post(
            self.url,
            {
                "clinic_id": self.clinic.id,
                "professional_id": self.professional.id,
                "date": self.first_date.isoformat(),
                "start_time": "10:00",
                "end_time": "10:30",
                "recurrence_type": "weekly",
                "recurrence_interval": 1,
                "recurrence_end_date": (self.first_date + timedelta(weeks=2)).isoformat(),
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 3)
        self.assertEqual(response.data["conflicts"], [(self.first_date + timedelta(weeks=1)).isoformat()])
        self.assertEqual(response.data["description"], f"Every week until {self.first_date + timedelta(weeks=2):%Y-%m-%d}")
        self.assertEqual(Appointment.objects.count(), 1)

    def test_preview_end_date_too_far(self):
        response = self.api.post(
            self.url,
            {
                "clinic_id": self.clinic.id,
                "professional_id": self.professional.id,
                "date": self.first_date.isoformat(),
                "start_time": "10:00",
                "end_time": "10:30",
                "recurrence_type": "monthly",
                "recurrence_end_date": (timezone.localdate() + relativedelta(months=25)).isoformat(),
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_recurrence")
