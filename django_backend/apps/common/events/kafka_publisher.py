import logging
from apps.common.kafka.config import KafkaConnection
from .base import EventPublisher, EventPayload

logger = logging.getLogger(__name__)


class KafkaEventPublisher(EventPublisher):
    """Kafka implementation of EventPublisher"""

    def __init__(self):
        self.producer = KafkaConnection.get_producer()

    def publish(self, topic: str, event: EventPayload, key: str = None) -> bool:
        """
        Publish an event to Kafka topic

        The producer serializes values to JSON and keys to UTF-8.
        Returns False when the broker is unavailable or the send fails.
        """
        if self.producer is None:
            logger.error(f"Kafka producer unavailable, dropping {event.event_type} for topic {topic}")
            return False

        try:
            self.producer.send(topic=topic, value=event.to_dict(), key=key)
            self.producer.flush()
        except Exception as e:
            logger.error(f"Failed to publish event to topic {topic}: {e}")
            return False

        logger.info(f"Event published to topic {topic}: {event.event_type}")
        return True

    def close(self):
        KafkaConnection.close_producer()
        self.producer = None
