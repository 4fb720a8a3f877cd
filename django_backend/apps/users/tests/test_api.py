from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase
from rest_framework_simplejwt.tokens import RefreshToken

from apps.common.events import EventPublisherFactory
from apps.common.kafka.config import USER_EVENTS_TOPIC
from apps.tasks.choices import TaskStatus
from apps.tasks.models import Task

User = get_user_model()


class JWTAuthenticationTest(APITestCase):
    """Token endpoints backed by simplejwt"""

    def setUp(self):
        self.user = User.objects.create_user(
            username="testuser", email="test@example.com", password="testpass123", display_name="Test"
        )

    def test_token_obtain_and_refresh(self):
        response = self.client.post(
            reverse("token_obtain_pair"), {"username": "testuser", "password": "testpass123"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)

        response = self.client.post(reverse("token_refresh"), {"refresh": response.data["refresh"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)

    def test_wrong_password(self):
        response = self.client.post(
            reverse("token_obtain_pair"), {"username": "testuser", "password": "nope"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "AUTHENTICATION_ERROR")

    def test_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = self.client.get(reverse("users-me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserAPITest(APITestCase):

    def setUp(self):
        EventPublisherFactory.reset_publisher()
        self.client = APIClient()
        self.user = User.objects.create_user(
            username="testuser", email="test@example.com", password="testpass123", display_name="Test"
        )
        self.other = User.objects.create_user(
            username="other", email="other@example.com", password="testpass123", display_name="Other"
        )

    def tearDown(self):
        EventPublisherFactory.reset_publisher()

    def authenticate(self, user=None):
        refresh = RefreshToken.for_user(user or self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")

    def test_register_is_open(self):
        response = self.client.post(
            reverse("users-list"),
            {"username": "newbie", "email": "new@example.com", "display_name": "Newbie", "password": "secret123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn("password", response.data)
        self.assertTrue(User.objects.get(username="newbie").check_password("secret123"))

        events = EventPublisherFactory.get_publisher().get_events(USER_EVENTS_TOPIC)
        self.assertEqual(events[-1]["event_type"], "user_registered")

    def test_duplicate_username_and_email(self):
        response = self.client.post(
            reverse("users-list"),
            {"username": "testuser", "email": "test@example.com", "display_name": "Dup", "password": "secret123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "VALIDATION_ERROR")
        self.assertEqual(response.data["details"]["username"], ["Username already exists"])
        self.assertEqual(response.data["details"]["email"], ["Email already exists"])

    def test_list_requires_authentication(self):
        self.assertEqual(self.client.get(reverse("users-list")).status_code, status.HTTP_401_UNAUTHORIZED)
        self.authenticate()
        response = self.client.get(reverse("users-list"))
        self.assertEqual(response.data["total"], 2)

    def test_detail_includes_task_counts(self):
        Task.objects.create(title="Open", created_by=self.user)
        Task.objects.create(title="Done", created_by=self.user, status=TaskStatus.DONE)
        Task.objects.create(title="Gone", created_by=self.user).soft_delete()
        self.authenticate()

        response = self.client.get(reverse("users-detail", args=[self.user.id]))
        self.assertEqual(response.data["task_count"], 2)
        self.assertEqual(response.data["completed_task_count"], 1)

    def test_me(self):
        self.authenticate()
        response = self.client.get(reverse("users-me"))
        self.assertEqual(response.data["username"], "testuser")

    def test_update_self_only(self):
        self.authenticate()
        response = self.client.patch(
            reverse("users-detail", args=[self.user.id]), {"display_name": "Renamed"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["display_name"], "Renamed")

        response = self.client.patch(
            reverse("users-detail", args=[self.other.id]), {"display_name": "Hacked"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_to_taken_email(self):
        self.authenticate()
        response = self.client.patch(
            reverse("users-detail", args=[self.user.id]), {"email": "other@example.com"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data["details"])

    def test_delete(self):
        self.authenticate(self.other)
        response = self.client.delete(reverse("users-detail", args=[self.user.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.authenticate()
        response = self.client.delete(reverse("users-detail", args=[self.user.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.user.id).exists())

    def test_delete_user_with_tasks_conflicts(self):
        Task.objects.create(title="Mine", created_by=self.user)
        self.authenticate()

        response = self.client.delete(reverse("users-detail", args=[self.user.id]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(User.objects.filter(pk=self.user.id).exists())
