"""
Tests for professional schedules and the availability engine.

Covers:
- WorkSchedule / ScheduleBreak / AbsenceRequest model validation
- Time helpers
- Schedule resolution (exceptions win over the weekly schedule)
- Commitment loading
- Slot generation (pure generator and database-backed)
- Interval availability, date ranges and the next free slot
- "Any professional" aggregation
- API endpoints (available slots, schedules)
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from appointments.models import Appointment, GroupActivity, Service
from clients.models import Client
from clinics.models import Clinic, ClinicStaff
from professionals.models import AbsenceRequest, ProfessionalService, ScheduleBreak, WorkSchedule
from professionals.services import (
    SlotGenerationError,
    generate_slots,
    get_candidate_professionals,
    get_next_available_slot,
    get_slots_for_date_range,
    get_slots_for_any_professional,
    get_slots_for_professional,
    has_approved_absence,
    is_professional_available,
    load_commitments,
    minutes_to_clock,
    minutes_to_time,
    overlaps,
    resolve_schedule,
    time_to_minutes,
)

User = get_user_model()


def next_weekday(weekday):
    """Next date (strictly after today) falling on weekday (0 = Monday)."""
    today = timezone.localdate()
    days_ahead = (weekday - today.weekday()) % 7
    if days_ahead == 0:
        days_ahead = 7
    return today + timedelta(days=days_ahead)


class ScheduleTestMixin:
    """Shared setup: one clinic, two professionals, a receptionist, a 30 min service."""

    def setUp(self):
        self.owner = User.objects.create_user(
            phone="0600000001",
            password="testpass123",
            name="Clinic Owner",
            role="ADMIN",
        )
        self.professional_a = User.objects.create_user(
            phone="0600000002",
            password="testpass123",
            name="Ana Physio",
        )
        self.professional_b = User.objects.create_user(
            phone="0600000003",
            password="testpass123",
            name="Bruno Physio",
        )
        self.receptionist = User.objects.create_user(
            phone="0600000004",
            password="testpass123",
            name="Rita Desk",
            role="RECEPTIONIST",
        )

        self.clinic = Clinic.objects.create(
            name="Centro Norte",
            address="Calle Mayor 1",
            phone="0600111111",
            email="norte@clinic.test",
            owner=self.owner,
        )
        self.other_clinic = Clinic.objects.create(
            name="Centro Sur",
            phone="0600222222",
            owner=self.owner,
        )

        for user in (self.professional_a, self.professional_b):
            ClinicStaff.objects.create(clinic=self.clinic, user=user, role="PROFESSIONAL")
        ClinicStaff.objects.create(clinic=self.clinic, user=self.receptionist, role="RECEPTIONIST")

        self.service = Service.objects.create(
            clinic=self.clinic,
            name="Physiotherapy",
            duration_minutes=30,
            price=Decimal("40.00"),
        )
        self.client_record = Client.objects.create(clinic=self.clinic, name="Carla Client")

        self.next_monday = next_weekday(0)

    def make_schedule(self, professional, clinic=None, **kwargs):
        defaults = {
            "day_of_week": 0,
            "start_time": time(9, 0),
            "end_time": time(17, 0),
            "break_start": time(13, 0),
            "break_end": time(14, 0),
        }
        defaults.update(kwargs)
        return WorkSchedule.objects.create(
            professional=professional,
            clinic=clinic or self.clinic,
            **defaults,
        )

    def make_appointment(self, professional, start, end, target_date=None, **kwargs):
        return Appointment.objects.create(
            clinic=kwargs.pop("clinic", self.clinic),
            professional=professional,
            client=self.client_record,
            service=self.service,
            date=target_date or self.next_monday,
            start_time=start,
            end_time=end,
            **kwargs,
        )


# ─── Models ──────────────────────────────────────────────────────────────


class WorkScheduleModelTests(ScheduleTestMixin, TestCase):
    """Tests for WorkSchedule validation."""

    def test_create_regular_schedule(self):
        schedule = self.make_schedule(self.professional_a)
        self.assertIsNotNone(schedule.pk)
        self.assertTrue(schedule.has_primary_break)

    def test_start_after_end_raises_error(self):
        with self.assertRaises(ValidationError):
            self.make_schedule(self.professional_a, start_time=time(17, 0), end_time=time(9, 0))

    def test_equal_start_end_raises_error(self):
        with self.assertRaises(ValidationError):
            self.make_schedule(self.professional_a, start_time=time(9, 0), end_time=time(9, 0))

    def test_regular_schedule_requires_day(self):
        with self.assertRaises(ValidationError):
            self.make_schedule(self.professional_a, day_of_week=None)

    def test_exception_requires_date(self):
        with self.assertRaises(ValidationError):
            self.make_schedule(self.professional_a, day_of_week=None, is_exception=True)

    def test_incomplete_break_raises_error(self):
        with self.assertRaises(ValidationError):
            self.make_schedule(self.professional_a, break_start=time(13, 0), break_end=None)

    def test_break_end_before_start_raises_error(self):
        with self.assertRaises(ValidationError):
            self.make_schedule(self.professional_a, break_start=time(14, 0), break_end=time(13, 0))

    def test_second_active_schedule_same_day_raises_error(self):
        self.make_schedule(self.professional_a)
        with self.assertRaises(ValidationError):
            self.make_schedule(self.professional_a, clinic=self.other_clinic)

    def test_inactive_schedule_not_counted(self):
        self.make_schedule(self.professional_a, is_active=False)
        schedule = self.make_schedule(self.professional_a)
        self.assertIsNotNone(schedule.pk)

    def test_one_exception_per_date(self):
        self.make_schedule(
            self.professional_a, day_of_week=None, is_exception=True, exception_date=self.next_monday
        )
        with self.assertRaises(ValidationError):
            self.make_schedule(
                self.professional_a, day_of_week=None, is_exception=True, exception_date=self.next_monday
            )

    def test_different_professionals_same_day_ok(self):
        self.make_schedule(self.professional_a)
        schedule = self.make_schedule(self.professional_b)
        self.assertIsNotNone(schedule.pk)


class AbsenceRequestModelTests(ScheduleTestMixin, TestCase):

    def test_end_before_start_raises_error(self):
        with self.assertRaises(ValidationError):
            AbsenceRequest.objects.create(
                professional=self.professional_a,
                clinic=self.clinic,
                start_date=self.next_monday,
                end_date=self.next_monday - timedelta(days=1),
            )

    def test_total_days_and_covers(self):
        absence = AbsenceRequest.objects.create(
            professional=self.professional_a,
            clinic=self.clinic,
            start_date=self.next_monday,
            end_date=self.next_monday + timedelta(days=4),
        )
        self.assertEqual(absence.total_days, 5)
        self.assertTrue(absence.covers(self.next_monday + timedelta(days=4)))
        self.assertFalse(absence.covers(self.next_monday + timedelta(days=5)))
        self.assertEqual(absence.status, AbsenceRequest.Status.PENDING)


# ─── Time helpers ────────────────────────────────────────────────────────


class TimeUtilsTests(SimpleTestCase):

    def test_time_to_minutes(self):
        self.assertEqual(time_to_minutes("09:30"), 570)
        self.assertEqual(time_to_minutes("09:30:45"), 570)
        self.assertEqual(time_to_minutes(time(9, 30)), 570)
        self.assertEqual(time_to_minutes("00:00"), 0)

    def test_time_to_minutes_empty_input(self):
        self.assertEqual(time_to_minutes(None), 0)
        self.assertEqual(time_to_minutes(""), 0)

    def test_minutes_to_time(self):
        self.assertEqual(minutes_to_time(570), "09:30")
        self.assertEqual(minutes_to_time(0), "00:00")
        self.assertEqual(minutes_to_time(1439), "23:59")

    def test_minutes_to_clock(self):
        self.assertEqual(minutes_to_clock(570), time(9, 30))

    def test_overlaps_is_half_open(self):
        self.assertTrue(overlaps(540, 570, 560, 600))
        self.assertFalse(overlaps(540, 570, 570, 600))
        self.assertFalse(overlaps(570, 600, 540, 570))
        self.assertTrue(overlaps(540, 600, 550, 560))


# ─── Pure slot generator ─────────────────────────────────────────────────


class GenerateSlotsTests(SimpleTestCase):
    """Tests for generate_slots: no database involved."""

    target_date = date(2030, 1, 7)
    not_today = datetime(2030, 1, 1, 8, 0)

    def generate(self, **kwargs):
        params = {
            "schedule_start": 540,  # 09:00
            "schedule_end": 1020,  # 17:00
            "duration": 30,
            "breaks": [(780, 840)],  # 13:00-14:00
            "appointments": [],
            "group_activities": [],
            "target_date": self.target_date,
            "now": self.not_today,
        }
        params.update(kwargs)
        return generate_slots(**params)

    def starts(self, slots):
        return [s["start_time"] for s in slots]

    def test_full_day_with_break(self):
        # 8 slots from 09:00 to 13:00 plus 6 from 14:00 to 17:00: 14 in total
        slots = self.generate()
        starts = self.starts(slots)
        self.assertEqual(starts[0], "09:00")
        self.assertEqual(starts[-1], "16:30")
        self.assertIn("12:30", starts)
        self.assertIn("14:00", starts)
        self.assertNotIn("13:00", starts)
        self.assertNotIn("13:30", starts)
        self.assertEqual(len(slots), 14)
        self.assertEqual(slots[0], {"start_time": "09:00", "end_time": "09:30", "available": True})

    def test_appointment_removes_slot(self):
        starts = self.starts(self.generate(appointments=[(600, 630)]))
        self.assertNotIn("10:00", starts)
        self.assertIn("09:30", starts)
        self.assertIn("10:30", starts)

    def test_group_activity_removes_slot(self):
        starts = self.starts(self.generate(group_activities=[(660, 720)]))
        self.assertNotIn("11:00", starts)
        self.assertNotIn("11:30", starts)
        self.assertIn("12:00", starts)

    def test_touching_commitment_does_not_block(self):
        starts = self.starts(self.generate(appointments=[(570, 600)]))
        self.assertIn("09:00", starts)
        self.assertIn("10:00", starts)
        self.assertNotIn("09:30", starts)

    def test_today_cutoff(self):
        now = datetime.combine(self.target_date, time(10, 12))
        starts = self.starts(self.generate(now=now))
        self.assertEqual(starts[0], "10:30")
        self.assertTrue(all(time_to_minutes(s) > 10 * 60 + 17 for s in starts))

    def test_today_cutoff_buffer_is_inclusive(self):
        now = datetime.combine(self.target_date, time(9, 55))
        starts = self.starts(self.generate(now=now))
        self.assertNotIn("10:00", starts)
        self.assertEqual(starts[0], "10:30")

    def test_duration_longer_than_window(self):
        self.assertEqual(self.generate(schedule_end=560, breaks=[]), [])

    def test_last_slot_must_fit(self):
        slots = self.generate(schedule_end=585, breaks=[])
        self.assertEqual(self.starts(slots), ["09:00"])

    def test_break_covering_whole_day(self):
        self.assertEqual(self.generate(breaks=[(540, 1020)]), [])

    def test_non_positive_duration_raises(self):
        with self.assertRaises(SlotGenerationError):
            self.generate(duration=0)
        with self.assertRaises(ValueError):
            self.generate(duration=-30)

    def test_non_positive_step_raises(self):
        with self.assertRaises(SlotGenerationError):
            self.generate(step=0)

    def test_fixed_step(self):
        slots = self.generate(schedule_end=600, breaks=[], step=15)
        self.assertEqual(self.starts(slots), ["09:00", "09:15", "09:30"])
        self.assertEqual(slots[1]["end_time"], "09:45")

    def test_break_jumps_cursor_to_break_end(self):
        slots = self.generate(schedule_end=660, breaks=[(600, 630)], step=15)
        self.assertEqual(self.starts(slots), ["09:00", "09:15", "09:30", "10:30"])

    def test_preferred_times_window(self):
        slots = self.generate(schedule_end=720, breaks=[], step=15, preferred_times=["10:00"])
        self.assertEqual(self.starts(slots), ["09:30", "09:45", "10:00", "10:15", "10:30"])

    def test_slots_respect_every_constraint(self):
        breaks = [(780, 840), (615, 625)]
        appointments = [(540, 600), (900, 960)]
        activities = [(690, 750)]
        slots = self.generate(
            breaks=breaks, appointments=appointments, group_activities=activities, duration=45, step=15
        )
        self.assertTrue(slots)
        previous = -1
        for slot in slots:
            start = time_to_minutes(slot["start_time"])
            end = time_to_minutes(slot["end_time"])
            self.assertEqual(end - start, 45)
            self.assertGreaterEqual(start, 540)
            self.assertLessEqual(end, 1020)
            self.assertGreater(start, previous)
            previous = start
            for b_start, b_end in breaks + appointments + activities:
                self.assertFalse(overlaps(start, end, b_start, b_end))


# ─── Resolver & commitments ──────────────────────────────────────────────


class ResolveScheduleTests(ScheduleTestMixin, TestCase):

    def test_regular_schedule(self):
        schedule = self.make_schedule(self.professional_a)
        resolved = resolve_schedule(self.professional_a.id, self.next_monday)
        self.assertEqual(resolved.schedule, schedule)
        self.assertFalse(resolved.is_exception)

    def test_no_schedule_returns_none(self):
        self.make_schedule(self.professional_a)
        self.assertIsNone(resolve_schedule(self.professional_a.id, self.next_monday + timedelta(days=1)))

    def test_exception_wins(self):
        self.make_schedule(self.professional_a)
        exception = self.make_schedule(
            self.professional_a,
            day_of_week=None,
            is_exception=True,
            exception_date=self.next_monday,
            start_time=time(10, 0),
            end_time=time(12, 0),
            break_start=None,
            break_end=None,
        )
        resolved = resolve_schedule(self.professional_a.id, self.next_monday)
        self.assertEqual(resolved.schedule, exception)
        self.assertTrue(resolved.is_exception)

    def test_inactive_exception_ignored(self):
        regular = self.make_schedule(self.professional_a)
        self.make_schedule(
            self.professional_a,
            day_of_week=None,
            is_exception=True,
            exception_date=self.next_monday,
            is_active=False,
        )
        self.assertEqual(resolve_schedule(self.professional_a.id, self.next_monday).schedule, regular)

    def test_exception_on_day_off(self):
        tuesday = self.next_monday + timedelta(days=1)
        exception = self.make_schedule(
            self.professional_a, day_of_week=None, is_exception=True, exception_date=tuesday
        )
        self.assertEqual(resolve_schedule(self.professional_a.id, tuesday).schedule, exception)

    def test_breaks_ordered_and_active_only(self):
        schedule = self.make_schedule(self.professional_a)
        late = ScheduleBreak.objects.create(schedule=schedule, name="Admin", start_time=time(16, 0), end_time=time(16, 30))
        early = ScheduleBreak.objects.create(
            schedule=schedule, name="Coffee", start_time=time(10, 0), end_time=time(10, 15), sort_order=5
        )
        ScheduleBreak.objects.create(
            schedule=schedule, name="Old", start_time=time(11, 0), end_time=time(11, 30), is_active=False
        )
        resolved = resolve_schedule(self.professional_a.id, self.next_monday)
        self.assertEqual(resolved.breaks, [early, late])

    def test_clinic_filter(self):
        self.make_schedule(self.professional_a, clinic=self.other_clinic)
        self.assertIsNone(resolve_schedule(self.professional_a.id, self.next_monday, clinic_id=self.clinic.id))
        self.assertIsNotNone(
            resolve_schedule(self.professional_a.id, self.next_monday, clinic_id=self.other_clinic.id)
        )


class LoadCommitmentsTests(ScheduleTestMixin, TestCase):

    def test_loads_non_cancelled_commitments(self):
        self.make_appointment(self.professional_a, time(10, 0), time(10, 30))
        self.make_appointment(self.professional_a, time(11, 0), time(11, 30), status=Appointment.Status.CANCELLED)
        self.make_appointment(self.professional_b, time(12, 0), time(12, 30))
        GroupActivity.objects.create(
            clinic=self.clinic,
            professional=self.professional_a,
            name="Pilates",
            date=self.next_monday,
            start_time=time(15, 0),
            end_time=time(16, 0),
            max_participants=8,
        )
        GroupActivity.objects.create(
            clinic=self.clinic,
            professional=self.professional_a,
            name="Yoga",
            date=self.next_monday,
            start_time=time(16, 0),
            end_time=time(17, 0),
            status=GroupActivity.Status.CANCELLED,
        )

        commitments = load_commitments(self.professional_a.id, self.next_monday)
        self.assertEqual(commitments.appointments, [(600, 630)])
        self.assertEqual(commitments.group_activities, [(900, 960)])
        self.assertFalse(commitments.has_absence)

    def test_only_approved_absences_count(self):
        AbsenceRequest.objects.create(
            professional=self.professional_a,
            clinic=self.clinic,
            start_date=self.next_monday,
            end_date=self.next_monday,
        )
        self.assertFalse(has_approved_absence(self.professional_a.id, self.next_monday))

        AbsenceRequest.objects.create(
            professional=self.professional_a,
            clinic=self.clinic,
            start_date=self.next_monday - timedelta(days=2),
            end_date=self.next_monday,
            status=AbsenceRequest.Status.APPROVED,
        )
        self.assertTrue(has_approved_absence(self.professional_a.id, self.next_monday))
        self.assertFalse(has_approved_absence(self.professional_a.id, self.next_monday + timedelta(days=1)))
        self.assertTrue(load_commitments(self.professional_a.id, self.next_monday).has_absence)


# ─── Slots for one professional ──────────────────────────────────────────


class SlotsForProfessionalTests(ScheduleTestMixin, TestCase):
    """Tests for the database-backed slot engine."""

    def setUp(self):
        super().setUp()
        self.schedule = self.make_schedule(self.professional_a)

    def slots(self, **kwargs):
        return get_slots_for_professional(self.professional_a.id, self.next_monday, 30, **kwargs)

    def starts(self, slots):
        return [s["start_time"] for s in slots]

    def test_basic_day(self):
        slots = self.slots()
        self.assertEqual(len(slots), 14)
        self.assertNotIn("13:00", self.starts(slots))

    def test_booked_slot_removed(self):
        self.make_appointment(self.professional_a, time(10, 0), time(10, 30))
        starts = self.starts(self.slots())
        self.assertNotIn("10:00", starts)
        self.assertIn("09:30", starts)
        self.assertIn("10:30", starts)

    def test_cancelled_appointment_does_not_block(self):
        self.make_appointment(self.professional_a, time(10, 0), time(10, 30), status=Appointment.Status.CANCELLED)
        self.assertIn("10:00", self.starts(self.slots()))

    def test_cross_clinic_appointment_blocks(self):
        self.make_appointment(self.professional_a, time(9, 0), time(10, 0), clinic=self.other_clinic)
        starts = self.starts(self.slots())
        self.assertNotIn("09:00", starts)
        self.assertNotIn("09:30", starts)

    def test_group_activity_blocks(self):
        GroupActivity.objects.create(
            clinic=self.clinic,
            professional=self.professional_a,
            name="Back school",
            date=self.next_monday,
            start_time=time(16, 0),
            end_time=time(17, 0),
        )
        starts = self.starts(self.slots())
        self.assertEqual(starts[-1], "15:30")

    def test_named_break_blocks(self):
        ScheduleBreak.objects.create(schedule=self.schedule, name="Team meeting", start_time=time(9, 0), end_time=time(10, 0))
        self.assertEqual(self.starts(self.slots())[0], "10:00")

    def test_approved_absence_returns_empty(self):
        AbsenceRequest.objects.create(
            professional=self.professional_a,
            clinic=self.clinic,
            start_date=self.next_monday,
            end_date=self.next_monday + timedelta(days=7),
            status=AbsenceRequest.Status.APPROVED,
        )
        self.assertEqual(self.slots(), [])

    def test_exception_hours_used(self):
        self.make_schedule(
            self.professional_a,
            day_of_week=None,
            is_exception=True,
            exception_date=self.next_monday,
            start_time=time(15, 0),
            end_time=time(16, 0),
            break_start=None,
            break_end=None,
        )
        self.assertEqual(self.starts(self.slots()), ["15:00", "15:30"])

    def test_no_schedule_returns_empty(self):
        tuesday = self.next_monday + timedelta(days=1)
        self.assertEqual(get_slots_for_professional(self.professional_a.id, tuesday, 30), [])

    def test_today_cutoff_uses_now(self):
        now = timezone.make_aware(datetime.combine(self.next_monday, time(10, 12)))
        self.assertEqual(self.starts(self.slots(now=now))[0], "10:30")

    def test_invalid_duration_raises_on_day_without_schedule(self):
        tuesday = self.next_monday + timedelta(days=1)
        with self.assertRaises(SlotGenerationError):
            get_slots_for_professional(self.professional_a.id, tuesday, 0)

    def test_invalid_duration_raises_during_absence(self):
        AbsenceRequest.objects.create(
            professional=self.professional_a,
            clinic=self.clinic,
            start_date=self.next_monday,
            end_date=self.next_monday,
            status=AbsenceRequest.Status.APPROVED,
        )
        with self.assertRaises(SlotGenerationError):
            get_slots_for_professional(self.professional_a.id, self.next_monday, -30)

    def test_invalid_params_rejected_before_any_query(self):
        with self.assertNumQueries(0):
            with self.assertRaises(SlotGenerationError):
                get_slots_for_professional(self.professional_a.id, self.next_monday, 0)
            with self.assertRaises(SlotGenerationError):
                self.slots(step=0)


# ─── Multi-day availability ──────────────────────────────────────────────


class ProfessionalAvailableTests(ScheduleTestMixin, TestCase):
    """Tests for is_professional_available."""

    def setUp(self):
        super().setUp()
        self.schedule = self.make_schedule(self.professional_a)

    def available(self, start, end, target_date=None, **kwargs):
        return is_professional_available(
            self.professional_a.id, target_date or self.next_monday, start, end, **kwargs
        )

    def test_inside_working_hours(self):
        self.assertTrue(self.available(time(9, 0), time(9, 30)))
        self.assertTrue(self.available("16:30", "17:00"))

    def test_outside_working_hours(self):
        self.assertFalse(self.available(time(22, 0), time(22, 30)))
        self.assertFalse(self.available(time(8, 45), time(9, 15)))
        self.assertFalse(self.available(time(16, 45), time(17, 15)))

    def test_primary_break(self):
        self.assertFalse(self.available(time(13, 0), time(13, 30)))
        self.assertFalse(self.available(time(12, 45), time(13, 15)))
        self.assertTrue(self.available(time(12, 30), time(13, 0)))
        self.assertTrue(self.available(time(14, 0), time(14, 30)))

    def test_named_break(self):
        ScheduleBreak.objects.create(schedule=self.schedule, name="Team meeting", start_time=time(10, 0), end_time=time(10, 30))
        self.assertFalse(self.available(time(10, 15), time(10, 45)))

    def test_approved_absence(self):
        AbsenceRequest.objects.create(
            professional=self.professional_a,
            clinic=self.clinic,
            start_date=self.next_monday,
            end_date=self.next_monday,
            status=AbsenceRequest.Status.APPROVED,
        )
        self.assertFalse(self.available(time(9, 0), time(9, 30)))

    def test_day_without_schedule(self):
        tuesday = self.next_monday + timedelta(days=1)
        self.assertFalse(self.available(time(9, 0), time(9, 30), target_date=tuesday))

    def test_exception_hours_apply(self):
        self.make_schedule(
            self.professional_a,
            day_of_week=None,
            is_exception=True,
            exception_date=self.next_monday,
            start_time=time(15, 0),
            end_time=time(16, 0),
            break_start=None,
            break_end=None,
        )
        self.assertFalse(self.available(time(9, 0), time(9, 30)))
        self.assertTrue(self.available(time(15, 0), time(15, 30)))

    def test_clinic_filter(self):
        self.assertFalse(self.available(time(9, 0), time(9, 30), clinic_id=self.other_clinic.id))


class DateRangeSlotsTests(ScheduleTestMixin, TestCase):
    """Tests for get_slots_for_date_range and get_next_available_slot."""

    def setUp(self):
        super().setUp()
        self.make_schedule(self.professional_a)
        self.before_monday = timezone.make_aware(
            datetime.combine(self.next_monday - timedelta(days=1), time(12, 0))
        )

    def test_one_entry_per_day(self):
        days = get_slots_for_date_range(
            self.professional_a.id, self.next_monday, self.next_monday + timedelta(days=6), 30
        )
        self.assertEqual(len(days), 7)
        self.assertEqual(days[0]["date"], self.next_monday.isoformat())
        self.assertEqual(len(days[0]["slots"]), 14)
        self.assertTrue(all(day["slots"] == [] for day in days[1:]))

    def test_max_per_day(self):
        days = get_slots_for_date_range(
            self.professional_a.id, self.next_monday, self.next_monday, 30, max_per_day=3
        )
        self.assertEqual([s["start_time"] for s in days[0]["slots"]], ["09:00", "09:30", "10:00"])

    def test_end_before_start(self):
        self.assertEqual(
            get_slots_for_date_range(
                self.professional_a.id, self.next_monday, self.next_monday - timedelta(days=1), 30
            ),
            [],
        )

    def test_range_invalid_duration(self):
        with self.assertRaises(SlotGenerationError):
            get_slots_for_date_range(self.professional_a.id, self.next_monday, self.next_monday, 0)

    def test_next_available_slot(self):
        slot = get_next_available_slot(self.professional_a.id, 30, now=self.before_monday)
        self.assertEqual(slot["date"], self.next_monday.isoformat())
        self.assertEqual(slot["start_time"], "09:00")
        self.assertEqual(slot["end_time"], "09:30")

    def test_next_available_slot_skips_booked_time(self):
        self.make_appointment(self.professional_a, time(9, 0), time(10, 0))
        slot = get_next_available_slot(self.professional_a.id, 30, now=self.before_monday)
        self.assertEqual(slot["start_time"], "10:00")

    def test_next_available_slot_rolls_over_to_next_week(self):
        late = timezone.make_aware(datetime.combine(self.next_monday, time(16, 40)))
        slot = get_next_available_slot(self.professional_a.id, 30, now=late)
        self.assertEqual(slot["date"], (self.next_monday + timedelta(days=7)).isoformat())
        self.assertEqual(slot["start_time"], "09:00")

    def test_next_available_slot_none(self):
        tuesday = timezone.make_aware(datetime.combine(self.next_monday + timedelta(days=1), time(8, 0)))
        with self.assertLogs("professionals.services.availability", level="INFO"):
            self.assertIsNone(get_next_available_slot(self.professional_a.id, 30, now=tuesday, days=3))


# ─── Aggregator ──────────────────────────────────────────────────────────


class AnyProfessionalTests(ScheduleTestMixin, TestCase):
    """Tests for merging availability across professionals."""

    def setUp(self):
        super().setUp()
        self.make_schedule(self.professional_a)
        self.make_schedule(self.professional_b)

    def test_candidates_qualified_for_service(self):
        ProfessionalService.objects.create(professional=self.professional_b, service=self.service)
        candidates = get_candidate_professionals(self.clinic.id, self.service.id)
        self.assertEqual(candidates, [self.professional_b])

    def test_candidates_fall_back_to_all_professionals(self):
        candidates = get_candidate_professionals(self.clinic.id, self.service.id)
        self.assertEqual(candidates, [self.professional_a, self.professional_b])

    def test_candidates_explicit_order_kept(self):
        outsider = User.objects.create_user(phone="0600000099", password="x", name="Outsider")
        candidates = get_candidate_professionals(
            self.clinic.id, self.service.id, [self.professional_b.id, outsider.id, self.professional_a.id]
        )
        self.assertEqual(candidates, [self.professional_b, self.professional_a])

    def test_inactive_membership_excluded(self):
        ClinicStaff.objects.filter(user=self.professional_b).update(is_active=False)
        self.assertEqual(get_candidate_professionals(self.clinic.id, self.service.id), [self.professional_a])

    def test_first_professional_wins(self):
        slots = get_slots_for_any_professional(self.clinic.id, self.service.id, self.next_monday, 30)
        eleven = [s for s in slots if s["start_time"] == "11:00"]
        self.assertEqual(len(eleven), 1)
        self.assertEqual(eleven[0]["professional_id"], self.professional_a.id)
        self.assertEqual(eleven[0]["professional_name"], "Ana Physio")

    def test_busy_professional_covered_by_next(self):
        self.make_appointment(self.professional_a, time(11, 0), time(11, 30))
        slots = get_slots_for_any_professional(self.clinic.id, self.service.id, self.next_monday, 30)
        eleven = [s for s in slots if s["start_time"] == "11:00"]
        self.assertEqual(eleven[0]["professional_id"], self.professional_b.id)

    def test_unique_keys_sorted(self):
        self.make_schedule(
            self.professional_b,
            day_of_week=None,
            is_exception=True,
            exception_date=self.next_monday,
            start_time=time(17, 0),
            end_time=time(19, 0),
            break_start=None,
            break_end=None,
        )
        slots = get_slots_for_any_professional(self.clinic.id, self.service.id, self.next_monday, 30)
        keys = [(s["start_time"], s["end_time"]) for s in slots]
        self.assertEqual(len(keys), len(set(keys)))
        minutes = [time_to_minutes(s["start_time"]) for s in slots]
        self.assertEqual(minutes, sorted(minutes))
        self.assertEqual(slots[-1]["start_time"], "18:30")
        self.assertEqual(slots[-1]["professional_id"], self.professional_b.id)

    def test_failing_professional_is_skipped(self):
        real = get_slots_for_professional

        def flaky(professional_id, *args, **kwargs):
            if professional_id == self.professional_a.id:
                raise DatabaseError("database unavailable")
            return real(professional_id, *args, **kwargs)

        with patch("professionals.services.aggregator.get_slots_for_professional", side_effect=flaky):
            with self.assertLogs("professionals.services.aggregator", level="ERROR"):
                slots = get_slots_for_any_professional(self.clinic.id, self.service.id, self.next_monday, 30)

        self.assertTrue(slots)
        self.assertTrue(all(s["professional_id"] == self.professional_b.id for s in slots))

    def test_invalid_duration_raises_before_any_query(self):
        with self.assertNumQueries(0):
            with self.assertRaises(SlotGenerationError):
                get_slots_for_any_professional(self.clinic.id, self.service.id, self.next_monday, 0)
            with self.assertRaises(SlotGenerationError):
                get_slots_for_any_professional(self.clinic.id, self.service.id, self.next_monday, 30, step=-5)

    def test_slot_generation_error_not_swallowed(self):
        with patch(
            "professionals.services.aggregator.get_slots_for_professional",
            side_effect=SlotGenerationError("bad step"),
        ):
            with self.assertRaises(SlotGenerationError):
                get_slots_for_any_professional(self.clinic.id, self.service.id, self.next_monday, 30)

    def test_no_candidates_returns_empty(self):
        self.assertEqual(
            get_slots_for_any_professional(self.other_clinic.id, self.service.id, self.next_monday, 30), []
        )


# ─── API ─────────────────────────────────────────────────────────────────


class AvailabilityAPITests(ScheduleTestMixin, TestCase):
    """Tests for the availability endpoints."""

    def setUp(self):
        super().setUp()
        self.api = APIClient()
        self.api.force_authenticate(user=self.receptionist)
        self.schedule = self.make_schedule(self.professional_a)
        self.url = reverse("professionals:api_available_slots")

    def params(self, **overrides):
        params = {
            "clinic_id": self.clinic.id,
            "professional_id": self.professional_a.id,
            "service_id": self.service.id,
            "date": self.next_monday.isoformat(),
        }
        params.update(overrides)
        return params

    def test_get_slots_success(self):
        response = self.api.get(self.url, self.params())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["duration_minutes"], 30)
        self.assertEqual(response.data["service_id"], self.service.id)
        self.assertEqual(len(response.data["slots"]), 14)
        self.assertEqual(response.data["slots"][0]["start_time"], "09:00")
        self.assertTrue(response.data["slots"][0]["available"])

    def test_get_slots_any_professional(self):
        self.make_schedule(self.professional_b)
        response = self.api.get(self.url, self.params(professional_id="any"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        first = response.data["slots"][0]
        self.assertEqual(first["professional_id"], self.professional_a.id)
        self.assertEqual(first["professional_name"], "Ana Physio")

    def test_get_slots_step_and_preferred_times(self):
        response = self.api.get(self.url, self.params(step=15, preferred_times="10:00"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        starts = [s["start_time"] for s in response.data["slots"]]
        self.assertEqual(starts, ["09:30", "09:45", "10:00", "10:15", "10:30"])

    def test_get_slots_no_schedule(self):
        tuesday = self.next_monday + timedelta(days=1)
        response = self.api.get(self.url, self.params(date=tuesday.isoformat()))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["slots"], [])

    def test_get_slots_missing_params(self):
        response = self.api.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("service_id", response.data)

    def test_get_slots_invalid_date_format(self):
        response = self.api.get(self.url, self.params(date="07/01/2030"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_slots_past_date(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        response = self.api.get(self.url, self.params(date=yesterday.isoformat()))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_slots_invalid_professional(self):
        response = self.api.get(self.url, self.params(professional_id="someone"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_slots_invalid_step(self):
        response = self.api.get(self.url, self.params(step="-15"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_slots_invalid_preferred_times(self):
        response = self.api.get(self.url, self.params(preferred_times="morning"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_slots_unknown_service(self):
        other_service = Service.objects.create(clinic=self.other_clinic, name="Massage", duration_minutes=60)
        response = self.api.get(self.url, self.params(service_id=other_service.id))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_get_slots_zero_duration_service(self):
        Service.objects.filter(id=self.service.id).update(duration_minutes=0)
        response = self.api.get(self.url, self.params())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("detail", response.data)

        response = self.api.get(self.url, self.params(professional_id="any"))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_slots_not_a_member(self):
        response = self.api.get(self.url, self.params(clinic_id=self.other_clinic.id))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_get_slots_unauthenticated(self):
        self.api.force_authenticate(user=None)
        response = self.api.get(self.url, self.params())
        self.assertIn(response.status_code, [status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN])

    def test_get_schedules_success(self):
        ScheduleBreak.objects.create(schedule=self.schedule, name="Coffee", start_time=time(11, 0), end_time=time(11, 15))
        url = reverse("professionals:api_professional_schedules", kwargs={"professional_id": self.professional_a.id})
        response = self.api.get(url, {"clinic_id": self.clinic.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["results"]), 1)
        result = response.data["results"][0]
        self.assertEqual(result["day_name"], "Monday")
        self.assertEqual(result["start_time"], "09:00")
        self.assertEqual(result["breaks"][0]["name"], "Coffee")

    def test_get_schedules_missing_clinic_id(self):
        url = reverse("professionals:api_professional_schedules", kwargs={"professional_id": self.professional_a.id})
        response = self.api.get(url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_schedules_empty(self):
        url = reverse("professionals:api_professional_schedules", kwargs={"professional_id": self.professional_b.id})
        response = self.api.get(url, {"clinic_id": self.clinic.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], [])
