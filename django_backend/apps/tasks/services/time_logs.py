import logging

from django.utils import timezone

from apps.common.errors import AuthorizationError, NotFoundError, ValidationError, ensure_ok
from apps.tasks.models import Task, TimeLog
from apps.tasks.producer import events
from apps.tasks.rules.time_logs import calculate_duration, has_overlapping_time_log, is_valid_time_log

logger = logging.getLogger(__name__)


def start_time_log(task_id, user, description=""):
    task = Task.objects.filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Task", task_id)
    if task.is_deleted:
        raise ValidationError("Cannot log time on a deleted task", field="task_id")
    if active_time_logs(user).exists():
        raise ValidationError("User already has an active time log")

    time_log = TimeLog.objects.create(
        task=task,
        user=user,
        started_at=timezone.now(),
        description=description or "",
    )
    events.publish_time_log_started(user.id, time_log)
    return time_log


def end_time_log(time_log_id, user, ended_at=None, description=None):
    time_log = get_time_log(time_log_id)
    _check_owner(time_log, user)
    if not time_log.is_active:
        raise ValidationError("Time log is already ended")

    ended_at = ended_at or timezone.now()
    duration = ensure_ok(calculate_duration(time_log.started_at, ended_at), field="ended_at")

    others = TimeLog.objects.filter(user_id=time_log.user_id).exclude(pk=time_log.pk)
    if has_overlapping_time_log(others, time_log.started_at, ended_at):
        raise ValidationError("Time log overlaps with an existing time log", field="ended_at")

    time_log.ended_at = ended_at
    time_log.duration = duration
    fields = ["ended_at", "duration"]
    if description is not None:
        time_log.description = description
        fields.append("description")
    time_log.save(update_fields=fields)

    logger.info(f"Time log {time_log.id} ended after {duration}s")
    events.publish_time_log_ended(user.id, time_log)
    return time_log


def update_time_log(time_log_id, user, data):
    """Partial update of started_at / ended_at / description; duration follows the bounds."""
    time_log = get_time_log(time_log_id)
    _check_owner(time_log, user)

    started_at = data.get("started_at", time_log.started_at)
    ended_at = data.get("ended_at", time_log.ended_at)
    if not is_valid_time_log(started_at, ended_at):
        raise ValidationError("End time must be after start time", field="ended_at")

    if ended_at is None and active_time_logs(user).exclude(pk=time_log.pk).exists():
        raise ValidationError("User already has an active time log", field="ended_at")

    for key, value in data.items():
        setattr(time_log, key, value)
    if ended_at is None:
        time_log.duration = None
    else:
        time_log.duration = ensure_ok(calculate_duration(started_at, ended_at), field="ended_at")
    time_log.save()
    return time_log


def get_time_log(time_log_id):
    time_log = TimeLog.objects.select_related("task", "user").filter(pk=time_log_id).first()
    if time_log is None:
        raise NotFoundError("Time log", time_log_id)
    return time_log


def list_task_time_logs(task_id):
    if not Task.objects.filter(pk=task_id).exists():
        raise NotFoundError("Task", task_id)
    return TimeLog.objects.filter(task_id=task_id).select_related("user")


def active_time_logs(user):
    return TimeLog.objects.filter(user=user, ended_at__isnull=True)


def delete_time_log(time_log_id, user):
    time_log = get_time_log(time_log_id)
    _check_owner(time_log, user)
    time_log.delete()
    return True


def _check_owner(time_log, user):
    if time_log.user_id != user.id:
        raise AuthorizationError("Only the owner can modify this time log")
