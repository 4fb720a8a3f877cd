import re
from datetime import datetime, timedelta
from typing import Optional

from django.utils import timezone

from apps.common.results import Err, Ok

MAX_CONTENT_LENGTH = 2000
MAX_COMMENTS_PER_TASK = 1000
EDIT_WINDOW_HOURS = 24

HTML_TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")


def is_valid_comment_content(content, max_length: int = MAX_CONTENT_LENGTH) -> bool:
    if not isinstance(content, str):
        return False
    return 1 <= len(content.strip()) <= max_length


def sanitize_comment_content(content) -> str:
    """Trim, drop HTML tags and collapse runs of whitespace."""
    if not isinstance(content, str):
        return ""
    stripped = HTML_TAG_RE.sub("", content.strip())
    return WHITESPACE_RE.sub(" ", stripped).strip()


def can_modify_comment(author_id: int, user_id: int) -> bool:
    return author_id == user_id


def can_add_comment(existing_count: int, limit: int = MAX_COMMENTS_PER_TASK) -> bool:
    return existing_count < limit


def is_comment_editable(created_at: datetime, max_hours: int = EDIT_WINDOW_HOURS,
                        now: Optional[datetime] = None) -> bool:
    now = now or timezone.now()
    return now - created_at <= timedelta(hours=max_hours)


def validate_comment_content(content, max_length: int = MAX_CONTENT_LENGTH):
    """Sanitized content, or Err when nothing valid remains."""
    cleaned = sanitize_comment_content(content)
    if not is_valid_comment_content(cleaned, max_length):
        return Err(f"Comment content must be between 1 and {max_length} characters")
    return Ok(cleaned)


def validate_reply_parent(parent_task_id: int, task_id: int):
    if parent_task_id != task_id:
        return Err("Parent comment must belong to the same task")
    return Ok()
