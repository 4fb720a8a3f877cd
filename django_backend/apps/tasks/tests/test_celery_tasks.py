from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase
from django.utils import timezone

from apps.tasks.celery_tasks import check_overdue_tasks, purge_deleted_tasks, send_task_notification
from apps.tasks.choices import TaskStatus
from apps.tasks.models import Task

User = get_user_model()


class CeleryTasksTest(TestCase):
    """Background jobs run eagerly under the test settings"""

    def setUp(self):
        self.creator = User.objects.create_user(
            username="creator", email="creator@example.com", password="x", display_name="Creator"
        )
        self.assignee = User.objects.create_user(
            username="assignee", email="assignee@example.com", password="x", display_name="Assignee"
        )

    def test_notification_goes_to_assignee(self):
        task = Task.objects.create(title="Ship it", created_by=self.creator, assigned_to=self.assignee)

        sent = send_task_notification(task.id, "completed")

        self.assertEqual(sent, 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["assignee@example.com"])
        self.assertEqual(mail.outbox[0].subject, "[Completed] Ship it")

    def test_notification_falls_back_to_creator(self):
        task = Task.objects.create(title="Solo", created_by=self.creator)
        send_task_notification(task.id, "created")
        self.assertEqual(mail.outbox[0].to, ["creator@example.com"])

    def test_notification_for_missing_task(self):
        self.assertEqual(send_task_notification(4242, "updated"), 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_check_overdue_tasks(self):
        past = timezone.now() - timedelta(days=1)
        Task.objects.create(title="Late", created_by=self.creator, due_date=past)
        Task.objects.create(title="Late but done", created_by=self.creator, due_date=past, status=TaskStatus.DONE)
        Task.objects.create(title="On time", created_by=self.creator, due_date=timezone.now() + timedelta(days=1))
        gone = Task.objects.create(title="Late and deleted", created_by=self.creator, due_date=past)
        gone.soft_delete()

        self.assertEqual(check_overdue_tasks(), 1)
        self.assertEqual([m.subject for m in mail.outbox], ["[Overdue] Late"])

    def test_purge_deleted_tasks(self):
        old = Task.objects.create(title="Old", created_by=self.creator)
        recent = Task.objects.create(title="Recent", created_by=self.creator)
        live = Task.objects.create(title="Live", created_by=self.creator)
        for task in (old, recent):
            task.soft_delete()
        Task.objects.filter(pk=old.pk).update(deleted_at=timezone.now() - timedelta(days=45))

        self.assertEqual(purge_deleted_tasks(), 1)
        self.assertFalse(Task.objects.filter(pk=old.pk).exists())
        self.assertTrue(Task.objects.filter(pk=recent.pk).exists())
        self.assertTrue(Task.objects.filter(pk=live.pk).exists())
