from .events import (
    publish_user_event,
    publish_user_registered,
    publish_user_updated,
    publish_user_deleted,
)

__all__ = [
    "publish_user_event",
    "publish_user_registered",
    "publish_user_updated",
    "publish_user_deleted",
]
