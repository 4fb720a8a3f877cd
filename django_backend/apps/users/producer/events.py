import logging
from enum import Enum
from typing import Dict, Any, Optional

from apps.common.events import EventPayload
from apps.common.events.base import EventPublisherFactory
from apps.common.kafka.config import USER_EVENTS_TOPIC

logger = logging.getLogger(__name__)


class UserEventType(Enum):
    """User event types"""
    USER_REGISTERED = "user_registered"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"


def publish_user_event(
    event_type: UserEventType,
    user_id: int,
    data: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish a user event to the user events topic

    Args:
        event_type: Type of user event
        user_id: ID of the affected user
        data: Event-specific data
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    try:
        payload = EventPayload(
            event_type=event_type.value,
            user_id=user_id,
            data=data,
            metadata=metadata
        )
        publisher = EventPublisherFactory.get_publisher()
        success = publisher.publish(topic=USER_EVENTS_TOPIC, event=payload, key=str(user_id))
    except Exception as e:
        logger.error(f"Error publishing user event {event_type.value}: {e}")
        return False

    if success:
        logger.info(f"User event published successfully: {event_type.value}")
    else:
        logger.error(f"Failed to publish user event: {event_type.value}")
    return success


def publish_user_registered(user_id: int, username: str, email: str):
    """Publishes user registration event"""
    data = {'username': username, 'email': email}
    return publish_user_event(UserEventType.USER_REGISTERED, user_id, data)


def publish_user_updated(user_id: int, fields):
    return publish_user_event(UserEventType.USER_UPDATED, user_id, {'fields': sorted(fields)})


def publish_user_deleted(user_id: int, username: str):
    return publish_user_event(UserEventType.USER_DELETED, user_id, {'username': username})
