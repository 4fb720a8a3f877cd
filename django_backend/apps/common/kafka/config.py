import json
import logging

from django.conf import settings
from kafka import KafkaProducer
from kafka.errors import KafkaError

logger = logging.getLogger(__name__)

TASK_EVENTS_TOPIC = getattr(settings, "KAFKA_TASK_EVENTS_TOPIC", "task-events")
USER_EVENTS_TOPIC = getattr(settings, "KAFKA_USER_EVENTS_TOPIC", "user-events")


def _serialize_value(value):
    return json.dumps(value, default=str).encode("utf-8")


def _serialize_key(key):
    return str(key).encode("utf-8") if key is not None else None


class KafkaConnection:
    """One lazily created producer shared by every publisher in the process"""

    _producer = None

    @classmethod
    def get_producer(cls):
        if cls._producer is None:
            servers = [s.strip() for s in settings.KAFKA_BOOTSTRAP_SERVERS.split(",") if s.strip()]
            try:
                cls._producer = KafkaProducer(
                    bootstrap_servers=servers,
                    client_id=getattr(settings, "KAFKA_CLIENT_ID", "task-quadrants-api"),
                    value_serializer=_serialize_value,
                    key_serializer=_serialize_key,
                    retries=3,
                    retry_backoff_ms=300,
                    request_timeout_ms=30000,
                    acks="all",
                )
                logger.info(f"Kafka producer connected to {','.join(servers)}")
            except KafkaError as e:
                logger.error(f"Failed to initialize Kafka producer: {e}")
                cls._producer = None
        return cls._producer

    @classmethod
    def close_producer(cls):
        if cls._producer:
            cls._producer.flush()
            cls._producer.close()
            cls._producer = None
