from django.db import models


class TaskStatus(models.TextChoices):
    TODO = "TODO", "To Do"
    DOING = "DOING", "Doing"
    PENDING = "PENDING", "Pending"
    DONE = "DONE", "Done"


class TaskPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


class TaskAction(models.TextChoices):
    CREATED = "created", "Created"
    UPDATED = "updated", "Updated"
    STATUS_CHANGED = "status_changed", "Status Changed"
    PRIORITY_CHANGED = "priority_changed", "Priority Changed"
    COMMENT_ADDED = "comment_added", "Comment Added"
    DELETED = "deleted", "Deleted"
    RESTORED = "restored", "Restored"
