from django.conf import settings
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.db.models import Count, Q

from apps.common.models import SoftDeleteModel, SoftDeleteQuerySet
from apps.tasks.choices import TaskAction, TaskPriority, TaskStatus
from apps.tasks.rules.comments import MAX_CONTENT_LENGTH
from apps.tasks.rules.lifecycle import calculate_eisenhower_quadrant, is_overdue


class TaskQuerySet(SoftDeleteQuerySet):
    def with_relations(self):
        live_subtasks = Q(subtasks__deleted_at__isnull=True)
        return self.select_related("created_by", "assigned_to").annotate(
            subtask_count=Count("subtasks", filter=live_subtasks, distinct=True),
            completed_subtask_count=Count(
                "subtasks",
                filter=live_subtasks & Q(subtasks__status=TaskStatus.DONE),
                distinct=True,
            ),
        )


class Task(SoftDeleteModel):
    title = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True, default="")

    status = models.CharField(
        max_length=16,
        choices=TaskStatus.choices,
        default=TaskStatus.TODO,
    )
    priority = models.CharField(
        max_length=16,
        choices=TaskPriority.choices,
        default=TaskPriority.MEDIUM,
    )

    importance = models.BooleanField(default=False)
    urgency = models.BooleanField(default=False)
    # derived from importance/urgency in save()
    eisenhower_quadrant = models.PositiveSmallIntegerField(default=4, editable=False)

    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="subtasks",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="tasks_created",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks_assigned",
    )

    estimated_time = models.PositiveIntegerField(null=True, blank=True, validators=[MinValueValidator(1)])
    progress = models.PositiveSmallIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    scheduled_start_date = models.DateTimeField(null=True, blank=True)
    scheduled_end_date = models.DateTimeField(null=True, blank=True)
    due_date = models.DateTimeField(null=True, blank=True)

    revision = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TaskQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["status"], name="tasks_task_status_idx"),
            models.Index(fields=["priority"], name="tasks_task_priority_idx"),
            models.Index(fields=["eisenhower_quadrant"], name="tasks_task_quadrant_idx"),
            models.Index(fields=["due_date"], name="tasks_task_due_date_idx"),
            models.Index(fields=["created_at"], name="tasks_task_created_idx"),
            models.Index(fields=["status", "deleted_at"], name="tasks_task_status_del_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=Q(progress__gte=0) & Q(progress__lte=100),
                name="chk_tasks_progress",
            ),
            models.CheckConstraint(
                check=Q(eisenhower_quadrant__gte=1) & Q(eisenhower_quadrant__lte=4),
                name="chk_tasks_eisenhower_quadrant",
            ),
            models.CheckConstraint(
                check=(
                    Q(scheduled_start_date__isnull=True)
                    | Q(scheduled_end_date__isnull=True)
                    | Q(scheduled_start_date__lte=models.F("scheduled_end_date"))
                ),
                name="chk_tasks_schedule_window",
            ),
        ]
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return self.title

    def save(self, *args, **kwargs):
        self.eisenhower_quadrant = calculate_eisenhower_quadrant(self.importance, self.urgency)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and {"importance", "urgency"} & set(update_fields):
            kwargs["update_fields"] = set(update_fields) | {"eisenhower_quadrant"}
        super().save(*args, **kwargs)

    @property
    def is_overdue(self) -> bool:
        return is_overdue(self.due_date)


class TaskHistory(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="history")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="task_events",
    )
    action = models.CharField(max_length=32, choices=TaskAction.choices)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["task", "created_at"], name="tasks_hist_task_created_idx")]

    def __str__(self) -> str:
        return f"{self.action} on {self.task_id}"


class Comment(SoftDeleteModel):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="comments")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="task_comments",
    )
    content = models.TextField(
        validators=[MinLengthValidator(1), MaxLengthValidator(MAX_CONTENT_LENGTH)],
    )
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="replies",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["task", "deleted_at"], name="tasks_comment_task_del_idx")]

    def __str__(self) -> str:
        return f"Comment #{self.pk} on {self.task_id}"


class Attachment(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="attachments")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="attachments",
    )
    file_name = models.CharField(max_length=255)
    original_name = models.CharField(max_length=255)
    file_size = models.PositiveBigIntegerField()
    file_type = models.CharField(max_length=150)
    file_path = models.CharField(max_length=1024)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-uploaded_at", "-id"]

    def __str__(self) -> str:
        return self.file_name


class TimeLog(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="time_logs")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="time_logs",
    )
    started_at = models.DateTimeField()
    ended_at = models.DateTimeField(null=True, blank=True)
    # seconds, set once the log is ended
    duration = models.PositiveIntegerField(null=True, blank=True)
    description = models.TextField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-started_at", "-id"]
        indexes = [models.Index(fields=["user", "ended_at"], name="tasks_timelog_user_end_idx")]

    def __str__(self) -> str:
        return f"{self.user_id} on {self.task_id} from {self.started_at:%Y-%m-%d %H:%M}"

    @property
    def is_active(self) -> bool:
        return self.ended_at is None
