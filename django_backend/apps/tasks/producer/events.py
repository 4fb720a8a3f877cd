import logging
from enum import Enum
from typing import Dict, Any, Optional

from apps.common.events import EventPayload
from apps.common.events.base import EventPublisherFactory
from apps.common.kafka.config import TASK_EVENTS_TOPIC

logger = logging.getLogger(__name__)


class TaskEventType(Enum):
    """Task event types"""
    # Task lifecycle
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_RESTORED = "task_restored"
    TASK_PERMANENTLY_DELETED = "task_permanently_deleted"
    TASK_COMPLETED = "task_completed"

    # Field changes
    TASK_STATUS_CHANGED = "task_status_changed"
    TASK_PRIORITY_CHANGED = "task_priority_changed"

    # Related records
    TASK_COMMENT_ADDED = "task_comment_added"
    TASK_ATTACHMENT_ADDED = "task_attachment_added"
    TIME_LOG_STARTED = "time_log_started"
    TIME_LOG_ENDED = "time_log_ended"


def publish_task_event(
    event_type: TaskEventType,
    user_id: int,
    data: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish a task event to the task events topic

    Args:
        event_type: Type of task event
        user_id: ID of the user performing the action
        data: Event-specific data (should include task_id)
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    payload = EventPayload(
        event_type=event_type.value,
        user_id=user_id,
        data=data,
        metadata=metadata,
    )
    # task_id keeps every event of one task on the same partition
    message_key = str(data.get('task_id', user_id))

    try:
        publisher = EventPublisherFactory.get_publisher()
        success = publisher.publish(topic=TASK_EVENTS_TOPIC, event=payload, key=message_key)
    except Exception as e:
        logger.error(f"Error publishing task event {event_type.value}: {e}")
        return False

    if success:
        logger.debug(f"Task event published: {event_type.value}")
    else:
        logger.error(f"Failed to publish task event: {event_type.value}")
    return success


def publish_task_created(user_id: int, task):
    """Publishes task creation event"""
    data = {
        'task_id': task.id,
        'title': task.title,
        'priority': task.priority,
        'eisenhower_quadrant': task.eisenhower_quadrant,
        'parent_id': task.parent_id,
        'assigned_to_id': task.assigned_to_id,
    }
    return publish_task_event(TaskEventType.TASK_CREATED, user_id, data)


def publish_task_updated(user_id: int, task, changes: Dict[str, Any]):
    data = {
        'task_id': task.id,
        'title': task.title,
        'changes': changes,
        'revision': task.revision,
    }
    return publish_task_event(TaskEventType.TASK_UPDATED, user_id, data)


def publish_task_status_changed(user_id: int, task, old_status: str):
    data = {
        'task_id': task.id,
        'title': task.title,
        'old_status': old_status,
        'new_status': task.status,
    }
    return publish_task_event(TaskEventType.TASK_STATUS_CHANGED, user_id, data)


def publish_task_completed(user_id: int, task):
    data = {'task_id': task.id, 'title': task.title}
    return publish_task_event(TaskEventType.TASK_COMPLETED, user_id, data)


def publish_task_priority_changed(user_id: int, task, old_priority: str):
    data = {
        'task_id': task.id,
        'title': task.title,
        'old_priority': old_priority,
        'new_priority': task.priority,
    }
    return publish_task_event(TaskEventType.TASK_PRIORITY_CHANGED, user_id, data)


def publish_task_deleted(user_id: int, task, permanent: bool = False):
    event_type = TaskEventType.TASK_PERMANENTLY_DELETED if permanent else TaskEventType.TASK_DELETED
    return publish_task_event(event_type, user_id, {'task_id': task.id, 'title': task.title})


def publish_task_restored(user_id: int, task):
    return publish_task_event(TaskEventType.TASK_RESTORED, user_id, {'task_id': task.id, 'title': task.title})


def publish_comment_added(user_id: int, comment):
    data = {
        'task_id': comment.task_id,
        'comment_id': comment.id,
        'parent_id': comment.parent_id,
    }
    return publish_task_event(TaskEventType.TASK_COMMENT_ADDED, user_id, data)


def publish_attachment_added(user_id: int, attachment):
    data = {
        'task_id': attachment.task_id,
        'attachment_id': attachment.id,
        'file_name': attachment.file_name,
        'file_size': attachment.file_size,
    }
    return publish_task_event(TaskEventType.TASK_ATTACHMENT_ADDED, user_id, data)


def publish_time_log_started(user_id: int, time_log):
    data = {
        'task_id': time_log.task_id,
        'time_log_id': time_log.id,
        'started_at': time_log.started_at.isoformat(),
    }
    return publish_task_event(TaskEventType.TIME_LOG_STARTED, user_id, data)


def publish_time_log_ended(user_id: int, time_log):
    data = {
        'task_id': time_log.task_id,
        'time_log_id': time_log.id,
        'ended_at': time_log.ended_at.isoformat(),
        'duration': time_log.duration,
    }
    return publish_task_event(TaskEventType.TIME_LOG_ENDED, user_id, data)
