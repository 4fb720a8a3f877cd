from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.common.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from apps.common.events import EventPublisherFactory
from apps.common.kafka.config import TASK_EVENTS_TOPIC
from apps.tasks.choices import TaskAction, TaskPriority, TaskStatus
from apps.tasks.models import Attachment, Comment, Task, TimeLog
from apps.tasks.services import attachments as attachment_service
from apps.tasks.services import bulk as bulk_service
from apps.tasks.services import comments as comment_service
from apps.tasks.services import tasks as task_service
from apps.tasks.services import time_logs as time_log_service

User = get_user_model()


class ServiceTestCase(TestCase):

    def setUp(self):
        EventPublisherFactory.reset_publisher()
        self.publisher = EventPublisherFactory.get_publisher()
        self.user = User.objects.create_user(
            username="owner", email="owner@example.com", password="testpass123", display_name="Owner"
        )
        self.other = User.objects.create_user(
            username="other", email="other@example.com", password="testpass123", display_name="Other"
        )

    def tearDown(self):
        EventPublisherFactory.reset_publisher()

    def event_types(self):
        return [e["event_type"] for e in self.publisher.get_events(TASK_EVENTS_TOPIC)]

    def make_task(self, **fields):
        data = {"title": "Task"}
        data.update(fields)
        return task_service.create_task(data, self.user)


class TaskServiceTest(ServiceTestCase):

    def test_create_computes_quadrant_and_records_history(self):
        task = self.make_task(importance=True, urgency=False)

        self.assertEqual(task.eisenhower_quadrant, 2)
        self.assertEqual(task.created_by, self.user)
        self.assertEqual(task.history.get().action, TaskAction.CREATED)
        self.assertEqual(self.event_types(), ["task_created"])

    def test_create_rejects_inverted_schedule(self):
        now = timezone.now()
        with self.assertRaises(ValidationError) as ctx:
            self.make_task(scheduled_start_date=now, scheduled_end_date=now - timedelta(days=1))
        self.assertEqual(ctx.exception.message, "Scheduled end date must be after start date")

    def test_create_rejects_deleted_parent(self):
        parent = self.make_task()
        task_service.delete_task(parent.id, self.user)
        parent.refresh_from_db()
        with self.assertRaises(ValidationError):
            self.make_task(parent=parent)

    def test_update_only_touches_given_fields(self):
        task = self.make_task(description="keep me", importance=True)
        updated = task_service.update_task(task.id, {"title": "Renamed"}, self.user)

        self.assertEqual(updated.title, "Renamed")
        self.assertEqual(updated.description, "keep me")
        self.assertEqual(updated.eisenhower_quadrant, 2)
        self.assertEqual(updated.revision, 1)

    def test_update_recomputes_quadrant(self):
        task = self.make_task(importance=True, urgency=False)
        updated = task_service.update_task(task.id, {"urgency": True}, self.user)
        self.assertEqual(updated.eisenhower_quadrant, 1)

        event = self.publisher.get_events(TASK_EVENTS_TOPIC)[-1]
        self.assertEqual(event["event_type"], "task_updated")
        self.assertEqual(event["data"]["changes"], {"urgency": True, "eisenhower_quadrant": 1})

    def test_done_is_final_for_status_and_priority(self):
        task = self.make_task()
        task_service.update_task(task.id, {"status": TaskStatus.DONE}, self.user)
        self.assertIn("task_completed", self.event_types())

        with self.assertRaises(ValidationError) as ctx:
            task_service.update_task(task.id, {"status": TaskStatus.TODO}, self.user)
        self.assertEqual(ctx.exception.message, "Cannot change status from DONE to other statuses")

        with self.assertRaises(ValidationError) as ctx:
            task_service.update_task(task.id, {"priority": TaskPriority.HIGH}, self.user)
        self.assertEqual(ctx.exception.message, "Cannot change priority of completed tasks")

        # DONE -> DONE stays allowed
        task_service.update_task(task.id, {"status": TaskStatus.DONE, "title": "still done"}, self.user)

    def test_update_checks_merged_schedule_window(self):
        now = timezone.now()
        task = self.make_task(scheduled_start_date=now, scheduled_end_date=now + timedelta(days=2))
        with self.assertRaises(ValidationError):
            task_service.update_task(task.id, {"scheduled_end_date": now - timedelta(days=1)}, self.user)

    def test_status_and_priority_history(self):
        task = self.make_task()
        task_service.update_task(task.id, {"status": TaskStatus.DOING, "priority": TaskPriority.HIGH}, self.user)

        actions = set(task.history.values_list("action", flat=True))
        self.assertEqual(actions, {TaskAction.CREATED, TaskAction.STATUS_CHANGED, TaskAction.PRIORITY_CHANGED})
        status_row = task.history.get(action=TaskAction.STATUS_CHANGED)
        self.assertEqual(status_row.metadata, {"from": TaskStatus.TODO, "to": TaskStatus.DOING})

    def test_revision_mismatch_is_a_conflict(self):
        task = self.make_task()
        task_service.update_task(task.id, {"title": "v1"}, self.user, revision=0)

        with self.assertRaises(ConflictError):
            task_service.update_task(task.id, {"title": "stale"}, self.user, revision=0)
        task.refresh_from_db()
        self.assertEqual(task.title, "v1")
        self.assertEqual(task.revision, 1)

    def test_update_missing_task(self):
        with self.assertRaises(NotFoundError) as ctx:
            task_service.update_task(999, {"title": "x"}, self.user)
        self.assertEqual(ctx.exception.message, "Task with id 999 not found")

    def test_soft_delete_restore_cycle(self):
        task = self.make_task()
        task_service.delete_task(task.id, self.user)

        with self.assertRaises(NotFoundError):
            task_service.get_task(task.id)
        self.assertEqual(task_service.get_task(task.id, include_deleted=True).id, task.id)

        restored = task_service.restore_task(task.id, self.user)
        self.assertIsNone(restored.deleted_at)
        self.assertIn("task_restored", self.event_types())

    def test_restore_requires_deleted_task(self):
        task = self.make_task()
        with self.assertRaises(NotFoundError) as ctx:
            task_service.restore_task(task.id, self.user)
        self.assertEqual(ctx.exception.message, f"Deleted task with id {task.id} not found")

    def test_permanent_delete(self):
        task = self.make_task()
        task_service.delete_task(task.id, self.user)
        task_service.permanent_delete_task(task.id, self.user)

        self.assertFalse(Task.objects.filter(pk=task.id).exists())
        self.assertIn("task_permanently_deleted", self.event_types())

    def test_permanent_delete_event_carries_integer_id(self):
        task = self.make_task()
        task_service.permanent_delete_task(str(task.id), self.user)

        event = self.publisher.get_events(TASK_EVENTS_TOPIC)[-1]
        self.assertEqual(event["event_type"], "task_permanently_deleted")
        self.assertEqual(event["data"]["task_id"], task.id)

    def test_update_rejects_deleted_parent(self):
        parent = self.make_task(title="Parent")
        child = self.make_task(title="Child")
        task_service.delete_task(parent.id, self.user)
        parent.refresh_from_db()

        with self.assertRaises(ValidationError) as ctx:
            task_service.update_task(child.id, {"parent": parent}, self.user)
        self.assertEqual(ctx.exception.message, "Parent task is deleted")
        self.assertEqual(ctx.exception.field, "parent_id")

        child.refresh_from_db()
        self.assertIsNone(child.parent_id)

    def test_update_rejects_self_as_parent(self):
        task = self.make_task()

        with self.assertRaises(ValidationError) as ctx:
            task_service.update_task(task.id, {"parent": task}, self.user)
        self.assertEqual(ctx.exception.message, "Task cannot be its own parent")
        self.assertEqual(ctx.exception.field, "parent_id")

    def test_update_moves_task_under_active_parent(self):
        parent = self.make_task(title="Parent")
        child = self.make_task(title="Child")

        updated = task_service.update_task(child.id, {"parent": parent}, self.user)
        self.assertEqual(updated.parent_id, parent.id)


class BulkServiceTest(ServiceTestCase):

    def test_bulk_update_collects_failures(self):
        ok = self.make_task()
        done = self.make_task(status=TaskStatus.DONE)

        result = bulk_service.bulk_update_tasks([ok.id, done.id, 999], {"status": TaskStatus.DOING}, self.user)

        self.assertEqual(result["successful"], 1)
        self.assertEqual(result["failed"], 2)
        self.assertEqual(
            result["errors"],
            [
                {"id": done.id, "code": "VALIDATION_ERROR", "message": "Cannot change status from DONE to other statuses"},
                {"id": 999, "code": "NOT_FOUND", "message": "Task with id 999 not found"},
            ],
        )
        ok.refresh_from_db()
        self.assertEqual(ok.status, TaskStatus.DOING)

    def test_bulk_delete(self):
        a, b = self.make_task(), self.make_task()
        task_service.delete_task(b.id, self.user)

        result = bulk_service.bulk_delete_tasks([a.id, b.id], self.user)
        self.assertEqual((result["successful"], result["failed"]), (1, 1))
        self.assertTrue(Task.objects.deleted().filter(pk=a.id).exists())


class CommentServiceTest(ServiceTestCase):

    def setUp(self):
        super().setUp()
        self.task = self.make_task()

    def test_create_sanitizes_content(self):
        comment = comment_service.create_comment(self.task.id, self.user, "  <i>hello</i>   there ")
        self.assertEqual(comment.content, "hello there")
        self.assertIn("task_comment_added", self.event_types())
        self.assertTrue(self.task.history.filter(action=TaskAction.COMMENT_ADDED).exists())

    def test_reply_parent_must_be_on_same_task(self):
        other_task = self.make_task(title="Other")
        parent = comment_service.create_comment(other_task.id, self.user, "root")

        with self.assertRaises(ValidationError) as ctx:
            comment_service.create_comment(self.task.id, self.user, "reply", parent_id=parent.id)
        self.assertEqual(ctx.exception.message, "Parent comment must belong to the same task")

    def test_missing_parent(self):
        with self.assertRaises(NotFoundError):
            comment_service.create_comment(self.task.id, self.user, "reply", parent_id=12345)

    def test_cannot_comment_on_deleted_task(self):
        task_service.delete_task(self.task.id, self.user)
        with self.assertRaises(ValidationError):
            comment_service.create_comment(self.task.id, self.user, "late")

    @override_settings(TASK_RULES={
        "MAX_FILE_SIZE": 10, "MAX_TOTAL_ATTACHMENT_SIZE": 20, "MAX_ATTACHMENTS_PER_TASK": 1,
        "MAX_COMMENTS_PER_TASK": 2, "COMMENT_EDIT_WINDOW_HOURS": 24, "PURGE_DELETED_AFTER_DAYS": 30,
    })
    def test_comment_limit(self):
        comment_service.create_comment(self.task.id, self.user, "one")
        comment_service.create_comment(self.task.id, self.user, "two")
        with self.assertRaises(ValidationError):
            comment_service.create_comment(self.task.id, self.user, "three")

    def test_only_author_can_edit_or_delete(self):
        comment = comment_service.create_comment(self.task.id, self.user, "mine")
        with self.assertRaises(AuthorizationError):
            comment_service.update_comment(comment.id, self.other, "hijack")
        with self.assertRaises(AuthorizationError):
            comment_service.delete_comment(comment.id, self.other)

    def test_edit_window(self):
        comment = comment_service.create_comment(self.task.id, self.user, "old")
        Comment.objects.filter(pk=comment.pk).update(created_at=timezone.now() - timedelta(hours=30))
        with self.assertRaises(ValidationError):
            comment_service.update_comment(comment.id, self.user, "new")

    def test_delete_and_restore(self):
        comment = comment_service.create_comment(self.task.id, self.user, "temp")
        comment_service.delete_comment(comment.id, self.user)
        self.assertEqual(comment_service.count_comments(self.task.id), 0)

        comment_service.restore_comment(comment.id, self.user)
        self.assertEqual(comment_service.count_comments(self.task.id), 1)

        with self.assertRaises(NotFoundError):
            comment_service.restore_comment(comment.id, self.user)


class AttachmentServiceTest(ServiceTestCase):

    def setUp(self):
        super().setUp()
        self.task = self.make_task()

    def test_create_stores_safe_name(self):
        attachment = attachment_service.create_attachment(
            self.task.id, self.user, "my file.pdf", 2048, "application/pdf", "/uploads/my file.pdf"
        )
        self.assertEqual(attachment.original_name, "my file.pdf")
        self.assertTrue(attachment.file_name.startswith("my_file_"))
        self.assertTrue(attachment.file_name.endswith(".pdf"))
        self.assertIn("task_attachment_added", self.event_types())

    def test_deleted_task_rejected(self):
        task_service.delete_task(self.task.id, self.user)
        with self.assertRaises(ValidationError) as ctx:
            attachment_service.validate_attachment(self.task.id, "a.pdf", 10, "application/pdf")
        self.assertEqual(ctx.exception.message, "Cannot attach file to deleted task")

    @override_settings(TASK_RULES={
        "MAX_FILE_SIZE": 100, "MAX_TOTAL_ATTACHMENT_SIZE": 150, "MAX_ATTACHMENTS_PER_TASK": 5,
        "MAX_COMMENTS_PER_TASK": 1000, "COMMENT_EDIT_WINDOW_HOURS": 24, "PURGE_DELETED_AFTER_DAYS": 30,
    })
    def test_total_size_limit(self):
        attachment_service.create_attachment(self.task.id, self.user, "a.txt", 100, "text/plain", "/a")
        with self.assertRaises(ValidationError) as ctx:
            attachment_service.create_attachment(self.task.id, self.user, "b.txt", 60, "text/plain", "/b")
        self.assertEqual(ctx.exception.message, "Total file size limit exceeded for this task")

    def test_only_uploader_can_delete(self):
        attachment = attachment_service.create_attachment(
            self.task.id, self.user, "a.png", 10, "image/png", "/a.png"
        )
        with self.assertRaises(AuthorizationError):
            attachment_service.delete_attachment(attachment.id, self.other)
        attachment_service.delete_attachment(attachment.id, self.user)
        self.assertFalse(Attachment.objects.exists())


class TimeLogServiceTest(ServiceTestCase):

    def setUp(self):
        super().setUp()
        self.task = self.make_task()

    def test_start_and_end(self):
        log = time_log_service.start_time_log(self.task.id, self.user, "coding")
        self.assertTrue(log.is_active)

        ended = time_log_service.end_time_log(log.id, self.user, ended_at=log.started_at + timedelta(seconds=30))
        self.assertEqual(ended.duration, 30)
        self.assertFalse(ended.is_active)
        self.assertEqual(self.event_types()[-2:], ["time_log_started", "time_log_ended"])

    def test_only_one_running_log_per_user(self):
        time_log_service.start_time_log(self.task.id, self.user)
        with self.assertRaises(ValidationError) as ctx:
            time_log_service.start_time_log(self.task.id, self.user)
        self.assertEqual(ctx.exception.message, "User already has an active time log")

    def test_end_twice_rejected(self):
        log = time_log_service.start_time_log(self.task.id, self.user)
        time_log_service.end_time_log(log.id, self.user, ended_at=log.started_at + timedelta(minutes=1))
        with self.assertRaises(ValidationError) as ctx:
            time_log_service.end_time_log(log.id, self.user)
        self.assertEqual(ctx.exception.message, "Time log is already ended")

    def test_end_before_start_rejected(self):
        log = time_log_service.start_time_log(self.task.id, self.user)
        with self.assertRaises(ValidationError):
            time_log_service.end_time_log(log.id, self.user, ended_at=log.started_at - timedelta(seconds=1))

    def test_overlap_with_previous_log_rejected(self):
        now = timezone.now()
        TimeLog.objects.create(
            task=self.task, user=self.user,
            started_at=now - timedelta(hours=2), ended_at=now - timedelta(hours=1), duration=3600,
        )
        log = TimeLog.objects.create(task=self.task, user=self.user, started_at=now - timedelta(hours=3))
        with self.assertRaises(ValidationError):
            time_log_service.end_time_log(log.id, self.user, ended_at=now)

    def test_owner_only(self):
        log = time_log_service.start_time_log(self.task.id, self.user)
        with self.assertRaises(AuthorizationError):
            time_log_service.end_time_log(log.id, self.other)
        with self.assertRaises(AuthorizationError):
            time_log_service.delete_time_log(log.id, self.other)

    def test_update_recomputes_duration(self):
        start = timezone.now() - timedelta(hours=1)
        log = TimeLog.objects.create(task=self.task, user=self.user, started_at=start,
                                     ended_at=start + timedelta(minutes=10), duration=600)
        updated = time_log_service.update_time_log(log.id, self.user, {"ended_at": start + timedelta(minutes=20)})
        self.assertEqual(updated.duration, 1200)

    def test_reopening_clears_duration(self):
        start = timezone.now() - timedelta(hours=2)
        log = TimeLog.objects.create(task=self.task, user=self.user, started_at=start,
                                     ended_at=start + timedelta(hours=1), duration=3600)

        reopened = time_log_service.update_time_log(log.id, self.user, {"ended_at": None})

        reopened.refresh_from_db()
        self.assertIsNone(reopened.ended_at)
        self.assertIsNone(reopened.duration)
        self.assertTrue(reopened.is_active)

    def test_reopening_rejected_while_another_log_runs(self):
        start = timezone.now() - timedelta(hours=2)
        log = TimeLog.objects.create(task=self.task, user=self.user, started_at=start,
                                     ended_at=start + timedelta(hours=1), duration=3600)
        time_log_service.start_time_log(self.task.id, self.user)

        with self.assertRaises(ValidationError) as ctx:
            time_log_service.update_time_log(log.id, self.user, {"ended_at": None})
        self.assertEqual(ctx.exception.message, "User already has an active time log")

        log.refresh_from_db()
        self.assertEqual(log.duration, 3600)
        self.assertEqual(time_log_service.active_time_logs(self.user).count(), 1)


class NotificationDispatchTest(ServiceTestCase):

    def test_create_schedules_notification_on_commit(self):
        with mock.patch("apps.tasks.services.tasks.send_task_notification") as notify:
            with self.captureOnCommitCallbacks(execute=True):
                task = self.make_task()
        notify.delay.assert_called_once_with(task.id, "created")
