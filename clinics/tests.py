from django.contrib.auth import get_user_model
from django.test import TestCase

from clinics.models import Clinic, ClinicStaff
from clinics.permissions import is_clinic_member

User = get_user_model()


class ClinicMembershipTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(phone="0630000001", password="x", name="Owner", role="ADMIN")
        self.member = User.objects.create_user(phone="0630000002", password="x", name="Member")
        self.clinic = Clinic.objects.create(name="Centro", owner=self.owner)
        self.membership = ClinicStaff.objects.create(clinic=self.clinic, user=self.member, role="PROFESSIONAL")

    def test_active_member(self):
        self.assertTrue(is_clinic_member(self.member, self.clinic.id))
        self.assertTrue(is_clinic_member(self.member, str(self.clinic.id)))

    def test_non_member(self):
        self.assertFalse(is_clinic_member(self.owner, self.clinic.id))

    def test_inactive_membership(self):
        self.membership.is_active = False
        self.membership.save()
        self.assertFalse(is_clinic_member(self.member, self.clinic.id))

    def test_inactive_clinic(self):
        self.clinic.is_active = False
        self.clinic.save()
        self.assertFalse(is_clinic_member(self.member, self.clinic.id))

    def test_invalid_clinic_id(self):
        self.assertFalse(is_clinic_member(self.member, "abc"))

    def test_superuser_always_member(self):
        admin = User.objects.create_superuser(phone="0630000003", password="x", name="Root")
        self.assertTrue(is_clinic_member(admin, self.clinic.id))
