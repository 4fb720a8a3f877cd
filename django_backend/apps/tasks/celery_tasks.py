import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from apps.tasks.choices import TaskStatus
from apps.tasks.models import Task

logger = logging.getLogger(__name__)


NOTIFICATION_TEMPLATES = {
    "created": ("[Task Created] {title}", "The task '{title}' was created (priority: {priority})."),
    "status_changed": ("[Status Changed] {title}", "The status of '{title}' is now: {status}."),
    "completed": ("[Completed] {title}", "The task '{title}' was completed."),
    "comment_added": ("[New Comment] {title}", "A comment was added to the task '{title}'."),
    "overdue": ("[Overdue] {title}", "The task '{title}' is overdue (due_date: {due_date})."),
    "updated": ("[Update] {title}", "The task '{title}' has been updated."),
}


def _task_recipients(task):
    user = task.assigned_to or task.created_by
    if user and user.email:
        return [user.email]
    return []


@shared_task
def send_task_notification(task_id, notification_type):
    """
    Email the assignee (or the creator when unassigned) about a task event.
    notification_type: created | status_changed | completed | comment_added | overdue | updated
    Returns the number of recipients.
    """
    try:
        task = Task.objects.select_related("created_by", "assigned_to").get(pk=task_id)
    except Task.DoesNotExist:
        logger.warning(f"Notification {notification_type} skipped: task {task_id} no longer exists")
        return 0

    recipients = _task_recipients(task)
    if not recipients:
        return 0

    subject, body = NOTIFICATION_TEMPLATES.get(notification_type, NOTIFICATION_TEMPLATES["updated"])
    context = {
        "title": task.title,
        "priority": task.priority,
        "status": task.status,
        "due_date": task.due_date,
    }
    send_mail(
        subject.format(**context),
        body.format(**context),
        settings.DEFAULT_FROM_EMAIL,
        recipients,
        fail_silently=True,
    )
    return len(recipients)


@shared_task
def check_overdue_tasks():
    """
    Notify about every active, unfinished task whose due date has passed.
    Returns the number of overdue tasks found.
    """
    now = timezone.now()
    overdue = (
        Task.objects.active()
        .filter(due_date__lt=now)
        .exclude(status=TaskStatus.DONE)
        .values_list("id", flat=True)
    )

    count = 0
    for task_id in overdue:
        send_task_notification.delay(task_id, "overdue")
        count += 1

    logger.info(f"Overdue check found {count} tasks")
    return count


@shared_task
def purge_deleted_tasks():
    """
    Hard delete tasks that were soft-deleted longer ago than PURGE_DELETED_AFTER_DAYS.
    Returns the number of deleted tasks.
    """
    days = settings.TASK_RULES["PURGE_DELETED_AFTER_DAYS"]
    cutoff = timezone.now() - timedelta(days=days)
    stale = Task.objects.deleted().filter(deleted_at__lt=cutoff)
    count = stale.count()
    if count:
        stale.delete()
        logger.info(f"Purged {count} tasks deleted before {cutoff:%Y-%m-%d}")
    return count
