from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

User = get_user_model()


class CustomUserModelTest(TestCase):
    """Test cases for Custom User model"""

    def test_create_user(self):
        """Test creating a basic user"""
        user = User.objects.create_user(
            username="testuser",
            email="test@example.com",
            password="testpass123",
            display_name="Test User",
        )

        self.assertEqual(user.username, "testuser")
        self.assertEqual(user.display_name, "Test User")
        self.assertTrue(user.check_password("testpass123"))
        self.assertTrue(user.is_active)
        self.assertFalse(user.is_staff)
        self.assertIsNone(user.avatar_url)
        self.assertEqual(str(user), "testuser")

    def test_create_superuser(self):
        user = User.objects.create_superuser(username="admin", email="admin@example.com", password="adminpass123")

        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)

    def test_unique_username(self):
        User.objects.create_user(username="taken", email="a@example.com", password="x")
        with self.assertRaises(IntegrityError), transaction.atomic():
            User.objects.create_user(username="taken", email="b@example.com", password="x")

    def test_unique_email(self):
        """Emails are unique across accounts"""
        User.objects.create_user(username="first", email="same@example.com", password="x")
        with self.assertRaises(IntegrityError), transaction.atomic():
            User.objects.create_user(username="second", email="same@example.com", password="x")

    def test_username_format(self):
        """Usernames are 3-50 letters, digits or underscores"""
        for bad in ("ab", "has space", "dash-name", "x" * 51):
            user = User(username=bad, email=f"{len(bad)}@example.com", display_name="Bad")
            user.set_password("x")
            with self.assertRaises(ValidationError, msg=bad):
                user.full_clean()

        user = User(username="good_name_1", email="good@example.com", display_name="Good")
        user.set_password("x")
        user.full_clean()

    def test_avatar_must_be_url(self):
        user = User(username="avatar", email="av@example.com", display_name="Av", avatar_url="not a url")
        user.set_password("x")
        with self.assertRaises(ValidationError):
            user.full_clean()
