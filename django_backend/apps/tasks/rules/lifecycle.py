from datetime import datetime
from typing import Optional

from django.utils import timezone

from apps.common.results import Err, Ok
from apps.tasks.choices import TaskStatus


def calculate_eisenhower_quadrant(importance: bool, urgency: bool) -> int:
    """
    Map the importance/urgency flags to an Eisenhower quadrant.

    1 = important & urgent, 2 = important, 3 = urgent, 4 = neither.
    """
    if importance and urgency:
        return 1
    if importance:
        return 2
    if urgency:
        return 3
    return 4


def recalculate_quadrant(changes: dict, importance: bool, urgency: bool) -> Optional[int]:
    """
    Quadrant after applying a partial update, or None if neither flag is in ``changes``.

    ``importance`` and ``urgency`` are the task's current values.
    """
    if "importance" not in changes and "urgency" not in changes:
        return None
    return calculate_eisenhower_quadrant(
        changes.get("importance", importance),
        changes.get("urgency", urgency),
    )


def can_update_status(current: str, new: str) -> bool:
    # DONE -> DONE is an allowed no-op
    return not (current == TaskStatus.DONE and new != TaskStatus.DONE)


def can_update_priority(status: str) -> bool:
    return status != TaskStatus.DONE


def is_valid_progress(progress: int) -> bool:
    return 0 <= progress <= 100


def is_valid_date_range(start: Optional[datetime] = None, end: Optional[datetime] = None) -> bool:
    if start is None or end is None:
        return True
    return start <= end


def is_overdue(due_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if due_date is None:
        return False
    return due_date < (now or timezone.now())


def validate_status_transition(current: str, new: str):
    if not can_update_status(current, new):
        return Err("Cannot change status from DONE to other statuses")
    return Ok()


def validate_priority_update(status: str):
    if not can_update_priority(status):
        return Err("Cannot change priority of completed tasks")
    return Ok()


def validate_progress(progress: int):
    if not is_valid_progress(progress):
        return Err("Progress must be between 0 and 100")
    return Ok(progress)


def validate_date_range(start: Optional[datetime], end: Optional[datetime]):
    if not is_valid_date_range(start, end):
        return Err("Scheduled end date must be after start date")
    return Ok()
