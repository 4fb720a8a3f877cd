import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from django.conf import settings
from django.utils import timezone

EVENT_SOURCE = "task-quadrants-api"


class EventPayload:
    """
    Envelope for every domain event published by the API.

    ``user_id`` is the actor (None for system jobs such as the nightly purge),
    ``data`` holds the event body and ``metadata`` anything consumers may
    want for routing or tracing.
    """

    def __init__(self, event_type: str, user_id: Optional[int], timestamp: datetime = None,
                 data: Dict[str, Any] = None, metadata: Dict[str, Any] = None):
        self.event_id = str(uuid.uuid4())
        self.event_type = event_type
        self.user_id = user_id
        self.timestamp = timestamp or timezone.now()
        self.data = data or {}
        self.metadata = {"source": EVENT_SOURCE, **(metadata or {})}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'event_type': self.event_type,
            'user_id': self.user_id,
            'timestamp': self.timestamp.isoformat(),
            'data': self.data,
            'metadata': self.metadata,
        }

    def __repr__(self):
        return f"<EventPayload {self.event_type} {self.event_id}>"


class EventPublisher(ABC):

    @abstractmethod
    def publish(self, topic: str, event: EventPayload, key: str = None) -> bool:
        """
        Publish an event to a topic.

        ``key`` is the partition key; task events use the task id so that all
        events of one task stay ordered. Returns True when the event was
        accepted, False otherwise. Publishing never raises.
        """

    @abstractmethod
    def close(self):
        """Release the underlying connection"""


class EventPublisherFactory:
    """Process-wide publisher chosen by ``settings.EVENT_PUBLISHER_TYPE``"""

    _publisher = None

    @classmethod
    def get_publisher(cls) -> EventPublisher:
        if cls._publisher is None:
            publisher_type = getattr(settings, 'EVENT_PUBLISHER_TYPE', 'kafka')

            if publisher_type == 'kafka':
                from .kafka_publisher import KafkaEventPublisher
                cls._publisher = KafkaEventPublisher()
            elif publisher_type == 'memory':
                from .memory_publisher import MemoryEventPublisher
                cls._publisher = MemoryEventPublisher()
            else:
                raise ValueError(f"Unknown event publisher type: {publisher_type}")

        return cls._publisher

    @classmethod
    def reset_publisher(cls):
        """Close and forget the current publisher; tests call this between cases"""
        if cls._publisher:
            cls._publisher.close()
            cls._publisher = None
