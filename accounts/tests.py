import os
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import CustomUser
from clinics.models import Clinic, ClinicStaff


class CustomUserManagerTest(TestCase):
    """Test the phone-based user manager"""

    def test_create_user_defaults_to_professional(self):
        user = CustomUser.objects.create_user(phone="0620000001", password="pass12345", name="Pat")
        self.assertEqual(user.role, "PROFESSIONAL")
        self.assertTrue(user.is_professional)
        self.assertTrue(user.check_password("pass12345"))
        self.assertFalse(user.is_staff)

    def test_create_user_requires_phone(self):
        with self.assertRaises(ValueError):
            CustomUser.objects.create_user(phone="", password="pass12345")

    def test_create_superuser(self):
        admin = CustomUser.objects.create_superuser(phone="0620000002", password="pass12345", name="Root")
        self.assertTrue(admin.is_superuser)
        self.assertTrue(admin.is_staff)
        self.assertEqual(admin.role, "ADMIN")

    def test_professionals_queryset(self):
        CustomUser.objects.create_user(phone="0620000003", password="x", name="Active")
        CustomUser.objects.create_user(phone="0620000004", password="x", name="Gone", is_active=False)
        CustomUser.objects.create_user(phone="0620000005", password="x", name="Desk", role="RECEPTIONIST")
        names = list(CustomUser.objects.professionals().values_list("name", flat=True))
        self.assertEqual(names, ["Active"])


class LoginAPITest(TestCase):
    """Test JWT login with phone and password"""

    def setUp(self):
        self.api = APIClient()
        self.url = reverse("accounts:api_login")
        self.owner = CustomUser.objects.create_user(
            phone="0620000010", password="pass12345", name="Owner", role="ADMIN"
        )
        self.clinic = Clinic.objects.create(name="Centro", owner=self.owner)
        self.staff = CustomUser.objects.create_user(phone="0620000011", password="pass12345", name="Desk")
        ClinicStaff.objects.create(clinic=self.clinic, user=self.staff, role="RECEPTIONIST")

    def test_login_success(self):
        response = self.api.post(self.url, {"phone": "0620000011", "password": "pass12345"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_token_grants_api_access(self):
        response = self.api.post(self.url, {"phone": "0620000011", "password": "pass12345"}, format="json")
        self.api.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        slots = self.api.get(reverse("professionals:api_available_slots"))
        # Authenticated: missing parameters, not 401
        self.assertEqual(slots.status_code, status.HTTP_400_BAD_REQUEST)

    def test_wrong_password(self):
        response = self.api.post(self.url, {"phone": "0620000011", "password": "wrong"}, format="json")
        self.assertNotEqual(response.status_code, status.HTTP_200_OK)

    def test_user_without_clinic_rejected(self):
        response = self.api.post(self.url, {"phone": "0620000010", "password": "pass12345"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inactive_membership_rejected(self):
        ClinicStaff.objects.filter(user=self.staff).update(is_active=False)
        response = self.api.post(self.url, {"phone": "0620000011", "password": "pass12345"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CreateSuperAdminCommandTest(TestCase):

    def run_command(self, env):
        out = StringIO()
        with patch.dict(os.environ, env, clear=False):
            call_command("create_super_admin", stdout=out)
        return out.getvalue()

    def test_missing_variables(self):
        env = {k: v for k, v in os.environ.items() if not k.startswith("DJANGO_SUPERUSER_")}
        with patch.dict(os.environ, env, clear=True):
            out = StringIO()
            call_command("create_super_admin", stdout=out)
        self.assertIn("Missing", out.getvalue())
        self.assertFalse(CustomUser.objects.exists())

    def test_creates_admin(self):
        output = self.run_command({"DJANGO_SUPERUSER_PHONE": "0620000020", "DJANGO_SUPERUSER_PASSWORD": "pass12345"})
        self.assertIn("Created", output)
        admin = CustomUser.objects.get(phone="0620000020")
        self.assertTrue(admin.is_superuser)
        self.assertEqual(admin.role, "ADMIN")

    def test_promotes_existing_user(self):
        CustomUser.objects.create_user(phone="0620000021", password="x", name="Soon Admin")
        output = self.run_command({"DJANGO_SUPERUSER_PHONE": "0620000021", "DJANGO_SUPERUSER_PASSWORD": "pass12345"})
        self.assertIn("Granted", output)
        user = CustomUser.objects.get(phone="0620000021")
        self.assertTrue(user.is_superuser)
        self.assertEqual(user.role, "ADMIN")
