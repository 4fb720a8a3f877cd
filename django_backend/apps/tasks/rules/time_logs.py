import math
from datetime import datetime
from typing import Iterable, Optional

from django.utils import timezone

from apps.common.results import Err, Ok


def calculate_duration(started_at: datetime, ended_at: datetime):
    """Whole seconds between start and end; Err unless end is strictly later."""
    if ended_at <= started_at:
        return Err("End time must be after start time")
    return Ok(math.floor((ended_at - started_at).total_seconds()))


def is_valid_time_log(started_at: Optional[datetime], ended_at: Optional[datetime] = None) -> bool:
    if started_at is None:
        return False
    if ended_at is not None and ended_at <= started_at:
        return False
    return True


def is_time_log_active(log) -> bool:
    return log.ended_at is None


def has_active_time_log(logs: Iterable, user_id: int) -> bool:
    return any(log.user_id == user_id and is_time_log_active(log) for log in logs)


def has_overlapping_time_log(existing_logs: Iterable, new_start: datetime,
                             new_end: Optional[datetime] = None,
                             now: Optional[datetime] = None) -> bool:
    """
    True if [new_start, new_end) intersects any existing log.

    A log that is still running always counts as overlapping. A missing
    ``new_end`` means the candidate runs until ``now``.
    """
    new_end = new_end or now or timezone.now()
    for log in existing_logs:
        if log.ended_at is None:
            return True
        start, end = log.started_at, log.ended_at
        if start <= new_start < end:
            return True
        if start < new_end <= end:
            return True
        if new_start <= start and new_end >= end:
            return True
    return False


def format_duration(seconds: int) -> str:
    if seconds < 0:
        return "0s"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)
