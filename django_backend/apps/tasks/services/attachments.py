"""
Attachment metadata. File bytes live elsewhere; rows only describe them.
"""
import logging

from django.conf import settings
from django.db.models import Sum

from apps.common.errors import AuthorizationError, NotFoundError, ValidationError, ensure_ok
from apps.tasks.models import Attachment, Task
from apps.tasks.producer import events
from apps.tasks.rules.attachments import can_delete_attachment, generate_safe_file_name, validate_upload

logger = logging.getLogger(__name__)


def validate_attachment(task_id, file_name, file_size, file_type):
    task = Task.objects.filter(pk=task_id).first()
    if task is None:
        raise NotFoundError("Task", task_id)
    if task.is_deleted:
        raise ValidationError("Cannot attach file to deleted task", field="task_id")

    existing = Attachment.objects.filter(task_id=task_id).aggregate(total=Sum("file_size"))
    rules = settings.TASK_RULES
    ensure_ok(
        validate_upload(
            file_name,
            file_size,
            file_type,
            existing_count=Attachment.objects.filter(task_id=task_id).count(),
            existing_total=existing["total"] or 0,
            max_file_size=rules["MAX_FILE_SIZE"],
            max_count=rules["MAX_ATTACHMENTS_PER_TASK"],
            max_total=rules["MAX_TOTAL_ATTACHMENT_SIZE"],
        ),
        field="file",
    )
    return task


def create_attachment(task_id, user, file_name, file_size, file_type, file_path):
    task = validate_attachment(task_id, file_name, file_size, file_type)
    attachment = Attachment.objects.create(
        task=task,
        uploaded_by=user,
        file_name=generate_safe_file_name(file_name),
        original_name=file_name,
        file_size=file_size,
        file_type=file_type,
        file_path=file_path,
    )
    logger.info(f"Attachment {attachment.id} ({file_size} bytes) added to task {task.id}")
    events.publish_attachment_added(user.id, attachment)
    return attachment


def list_task_attachments(task_id):
    if not Task.objects.filter(pk=task_id).exists():
        raise NotFoundError("Task", task_id)
    return Attachment.objects.filter(task_id=task_id).select_related("uploaded_by")


def get_attachment(attachment_id):
    attachment = Attachment.objects.select_related("uploaded_by").filter(pk=attachment_id).first()
    if attachment is None:
        raise NotFoundError("Attachment", attachment_id)
    return attachment


def delete_attachment(attachment_id, user):
    attachment = get_attachment(attachment_id)
    if not can_delete_attachment(attachment.uploaded_by_id, user.id):
        raise AuthorizationError("Only the uploader can delete this attachment")
    attachment.delete()
    return True
