"""
Task lifecycle: create, read, partial update, soft delete, restore, purge.

Views hand in data already shaped by the serializers; the business rules in
apps.tasks.rules.lifecycle decide what is allowed.
"""
import logging

from django.db import transaction

from apps.common.errors import ConflictError, NotFoundError, ValidationError, ensure_ok
from apps.tasks.celery_tasks import send_task_notification
from apps.tasks.choices import TaskAction, TaskStatus
from apps.tasks.models import Task, TaskHistory
from apps.tasks.producer import events
from apps.tasks.rules.lifecycle import (
    recalculate_quadrant,
    validate_date_range,
    validate_priority_update,
    validate_progress,
    validate_status_transition,
)

logger = logging.getLogger(__name__)


def _notify(task_id, kind):
    transaction.on_commit(lambda: send_task_notification.delay(task_id, kind))


def _user_id(user):
    return getattr(user, "id", None)


def create_task(data, user):
    ensure_ok(
        validate_date_range(data.get("scheduled_start_date"), data.get("scheduled_end_date")),
        field="scheduled_end_date",
    )
    if "progress" in data:
        ensure_ok(validate_progress(data["progress"]), field="progress")

    parent = data.get("parent")
    if parent is not None and parent.is_deleted:
        raise ValidationError("Parent task is deleted", field="parent_id")

    with transaction.atomic():
        task = Task.objects.create(created_by=user, **data)
        TaskHistory.objects.create(task=task, user=user, action=TaskAction.CREATED)
        _notify(task.id, "created")

    logger.info(f"Task {task.id} created by user {user.id} in quadrant {task.eisenhower_quadrant}")
    events.publish_task_created(user.id, task)
    return task


def get_task(task_id, include_deleted=False):
    qs = Task.objects.with_relations()
    if not include_deleted:
        qs = qs.active()
    task = qs.filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def update_task(task_id, data, user=None, revision=None):
    """
    Apply a partial update. Only keys present in ``data`` are touched.

    When ``revision`` is given it must match the stored revision, otherwise
    the update is rejected with ConflictError.
    """
    with transaction.atomic():
        task = Task.objects.active().select_for_update().filter(pk=task_id).first()
        if task is None:
            raise NotFoundError("Task", task_id)

        if revision is not None and revision != task.revision:
            raise ConflictError(
                f"Task {task_id} is at revision {task.revision}, update was based on {revision}"
            )
        if "status" in data:
            ensure_ok(validate_status_transition(task.status, data["status"]), field="status")
        if "priority" in data:
            ensure_ok(validate_priority_update(task.status), field="priority")
        if "progress" in data:
            ensure_ok(validate_progress(data["progress"]), field="progress")
        parent = data.get("parent")
        if parent is not None:
            if parent.pk == task.pk:
                raise ValidationError("Task cannot be its own parent", field="parent_id")
            if parent.is_deleted:
                raise ValidationError("Parent task is deleted", field="parent_id")
        ensure_ok(
            validate_date_range(
                data.get("scheduled_start_date", task.scheduled_start_date),
                data.get("scheduled_end_date", task.scheduled_end_date),
            ),
            field="scheduled_end_date",
        )

        old_status, old_priority = task.status, task.priority
        changes = {
            key: value for key, value in data.items()
            if getattr(task, key) != value
        }
        quadrant = recalculate_quadrant(data, task.importance, task.urgency)
        if quadrant is not None and quadrant != task.eisenhower_quadrant:
            changes["eisenhower_quadrant"] = quadrant

        for key, value in data.items():
            setattr(task, key, value)
        task.revision += 1
        task.save()

        if old_status != task.status:
            TaskHistory.objects.create(
                task=task,
                user=user,
                action=TaskAction.STATUS_CHANGED,
                metadata={"from": old_status, "to": task.status},
            )
            _notify(task.id, "completed" if task.status == TaskStatus.DONE else "status_changed")
        if old_priority != task.priority:
            TaskHistory.objects.create(
                task=task,
                user=user,
                action=TaskAction.PRIORITY_CHANGED,
                metadata={"from": old_priority, "to": task.priority},
            )
        if old_status == task.status and old_priority == task.priority:
            TaskHistory.objects.create(task=task, user=user, action=TaskAction.UPDATED)

    user_id = _user_id(user)
    events.publish_task_updated(user_id, task, _jsonable(changes))
    if old_status != task.status:
        events.publish_task_status_changed(user_id, task, old_status)
        if task.status == TaskStatus.DONE:
            events.publish_task_completed(user_id, task)
    if old_priority != task.priority:
        events.publish_task_priority_changed(user_id, task, old_priority)
    return task


def _jsonable(changes):
    out = {}
    for key, value in changes.items():
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        elif hasattr(value, "pk"):
            value = value.pk
        out[key] = value
    return out


def delete_task(task_id, user=None):
    task = Task.objects.active().filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Task", task_id)

    with transaction.atomic():
        task.soft_delete()
        TaskHistory.objects.create(task=task, user=user, action=TaskAction.DELETED)

    events.publish_task_deleted(_user_id(user), task)
    return True


def restore_task(task_id, user=None):
    task = Task.objects.deleted().filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Deleted task", task_id)

    with transaction.atomic():
        task.restore()
        TaskHistory.objects.create(task=task, user=user, action=TaskAction.RESTORED)

    events.publish_task_restored(_user_id(user), task)
    return get_task(task_id)


def permanent_delete_task(task_id, user=None):
    task = Task.objects.filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Task", task_id)

    pk = task.pk
    task.delete()
    logger.info(f"Task {pk} permanently deleted")
    task.pk = pk
    events.publish_task_deleted(_user_id(user), task, permanent=True)
    return True


def task_history(task_id):
    task = get_task(task_id)
    return task.history.select_related("user")
