import logging

from django.conf import settings
from django.db import transaction

from apps.common.errors import AuthorizationError, NotFoundError, ValidationError, ensure_ok
from apps.tasks.celery_tasks import send_task_notification
from apps.tasks.choices import TaskAction
from apps.tasks.models import Comment, Task, TaskHistory
from apps.tasks.producer import events
from apps.tasks.rules.comments import (
    can_add_comment,
    can_modify_comment,
    is_comment_editable,
    validate_comment_content,
    validate_reply_parent,
)

logger = logging.getLogger(__name__)


def _active_task(task_id):
    task = Task.objects.filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Task", task_id)
    if task.is_deleted:
        raise ValidationError("Cannot comment on a deleted task", field="task_id")
    return task


def create_comment(task_id, user, content, parent_id=None):
    task = _active_task(task_id)
    content = ensure_ok(validate_comment_content(content), field="content")

    parent = None
    if parent_id is not None:
        parent = Comment.objects.active().filter(pk=parent_id).first()
        if parent is None:
            raise NotFoundError("Parent comment", parent_id)
        ensure_ok(validate_reply_parent(parent.task_id, task.id), field="parent_id")

    limit = settings.TASK_RULES["MAX_COMMENTS_PER_TASK"]
    if not can_add_comment(count_comments(task.id), limit):
        raise ValidationError("Maximum number of comments reached for this task")

    with transaction.atomic():
        comment = Comment.objects.create(task=task, user=user, content=content, parent=parent)
        TaskHistory.objects.create(
            task=task,
            user=user,
            action=TaskAction.COMMENT_ADDED,
            metadata={"comment_id": comment.id},
        )
        transaction.on_commit(lambda: send_task_notification.delay(task.id, "comment_added"))

    events.publish_comment_added(user.id, comment)
    return comment


def get_comment(comment_id, include_deleted=False):
    qs = Comment.objects.select_related("user")
    if not include_deleted:
        qs = qs.active()
    comment = qs.filter(pk=comment_id).first()
    if comment is None:
        raise NotFoundError("Comment", comment_id)
    return comment


def list_task_comments(task_id):
    """Active comments of a task, newest first."""
    if not Task.objects.active().filter(pk=task_id).exists():
        raise NotFoundError("Task", task_id)
    return Comment.objects.active().filter(task_id=task_id).select_related("user").order_by("-created_at", "-id")


def count_comments(task_id):
    return Comment.objects.active().filter(task_id=task_id).count()


def _check_author(comment, user):
    if not can_modify_comment(comment.user_id, user.id):
        raise AuthorizationError("Only the author can modify this comment")


def update_comment(comment_id, user, content):
    comment = get_comment(comment_id)
    _check_author(comment, user)
    if not is_comment_editable(comment.created_at, settings.TASK_RULES["COMMENT_EDIT_WINDOW_HOURS"]):
        raise ValidationError("Comment can no longer be edited")

    comment.content = ensure_ok(validate_comment_content(content), field="content")
    comment.save(update_fields=["content", "updated_at"])
    return comment


def delete_comment(comment_id, user):
    comment = get_comment(comment_id)
    _check_author(comment, user)
    comment.soft_delete()
    logger.info(f"Comment {comment_id} deleted by user {user.id}")
    return True


def restore_comment(comment_id, user):
    comment = Comment.objects.deleted().filter(pk=comment_id).first()
    if comment is None:
        raise NotFoundError("Deleted comment", comment_id)
    _check_author(comment, user)
    comment.restore()
    return comment
