from django.db.models import Exists, OuterRef, Q
from django.utils import timezone
from django_filters import rest_framework as filters

from apps.common.filters import SortedFilterSet, sort_choices
from apps.tasks.choices import TaskPriority, TaskStatus
from apps.tasks.models import Attachment, Comment, Task, TimeLog


class TaskFilter(SortedFilterSet):
    status = filters.ChoiceFilter(choices=TaskStatus.choices)
    priority = filters.ChoiceFilter(choices=TaskPriority.choices)
    importance = filters.BooleanFilter()
    urgency = filters.BooleanFilter()
    eisenhower_quadrant = filters.NumberFilter()
    parent_id = filters.NumberFilter(field_name="parent_id")
    created_by = filters.NumberFilter(field_name="created_by_id")
    assigned_to = filters.NumberFilter(field_name="assigned_to_id")

    search = filters.CharFilter(method="filter_search")
    q = filters.CharFilter(method="filter_search")

    due_date_from = filters.IsoDateTimeFilter(field_name="due_date", lookup_expr="gte")
    due_date_to = filters.IsoDateTimeFilter(field_name="due_date", lookup_expr="lte")
    scheduled_start_from = filters.IsoDateTimeFilter(field_name="scheduled_start_date", lookup_expr="gte")
    scheduled_start_to = filters.IsoDateTimeFilter(field_name="scheduled_start_date", lookup_expr="lte")
    scheduled_end_from = filters.IsoDateTimeFilter(field_name="scheduled_end_date", lookup_expr="gte")
    scheduled_end_to = filters.IsoDateTimeFilter(field_name="scheduled_end_date", lookup_expr="lte")
    progress_min = filters.NumberFilter(field_name="progress", lookup_expr="gte")
    progress_max = filters.NumberFilter(field_name="progress", lookup_expr="lte")

    is_overdue = filters.BooleanFilter(method="filter_is_overdue")
    has_comments = filters.BooleanFilter(method="filter_has_comments")
    has_attachments = filters.BooleanFilter(method="filter_has_attachments")
    include_subtasks = filters.BooleanFilter(method="filter_include_subtasks")

    # applied in filter_queryset, before the other filters
    include_deleted = filters.BooleanFilter(method="filter_noop")
    deleted_only = filters.BooleanFilter(method="filter_noop")

    sort_by = filters.ChoiceFilter(
        choices=sort_choices(
            "id", "created_at", "updated_at", "due_date", "priority",
            "title", "progress", "eisenhower_quadrant",
        ),
        method="filter_noop",
    )

    class Meta:
        model = Task
        fields = []

    def filter_queryset(self, queryset):
        data = self.form.cleaned_data
        if data.get("deleted_only"):
            queryset = queryset.deleted()
        elif not data.get("include_deleted"):
            queryset = queryset.active()
        return super().filter_queryset(queryset)

    def filter_search(self, queryset, name, value):
        return queryset.filter(Q(title__icontains=value) | Q(description__icontains=value))

    def filter_is_overdue(self, queryset, name, value):
        now = timezone.now()
        if value:
            return queryset.filter(due_date__lt=now)
        return queryset.filter(Q(due_date__isnull=True) | Q(due_date__gte=now))

    def filter_has_comments(self, queryset, name, value):
        live = Comment.objects.active().filter(task=OuterRef("pk"))
        return queryset.filter(Exists(live)) if value else queryset.exclude(Exists(live))

    def filter_has_attachments(self, queryset, name, value):
        files = Attachment.objects.filter(task=OuterRef("pk"))
        return queryset.filter(Exists(files)) if value else queryset.exclude(Exists(files))

    def filter_include_subtasks(self, queryset, name, value):
        return queryset if value else queryset.filter(parent__isnull=True)


class CommentFilter(SortedFilterSet):
    task_id = filters.NumberFilter(field_name="task_id")
    user_id = filters.NumberFilter(field_name="user_id")
    sort_by = filters.ChoiceFilter(choices=sort_choices("created_at", "updated_at"), method="filter_noop")

    default_sort = "created_at"
    default_order = "desc"

    class Meta:
        model = Comment
        fields = []


class AttachmentFilter(SortedFilterSet):
    task_id = filters.NumberFilter(field_name="task_id")
    uploaded_by = filters.NumberFilter(field_name="uploaded_by_id")
    file_type = filters.CharFilter()
    sort_by = filters.ChoiceFilter(
        choices=sort_choices("uploaded_at", "file_name", "file_size"),
        method="filter_noop",
    )

    default_sort = "uploaded_at"
    default_order = "desc"

    class Meta:
        model = Attachment
        fields = []


class TimeLogFilter(SortedFilterSet):
    task_id = filters.NumberFilter(field_name="task_id")
    user_id = filters.NumberFilter(field_name="user_id")
    start_from = filters.IsoDateTimeFilter(field_name="started_at", lookup_expr="gte")
    start_to = filters.IsoDateTimeFilter(field_name="started_at", lookup_expr="lte")
    end_from = filters.IsoDateTimeFilter(field_name="ended_at", lookup_expr="gte")
    end_to = filters.IsoDateTimeFilter(field_name="ended_at", lookup_expr="lte")
    sort_by = filters.ChoiceFilter(
        choices=sort_choices("started_at", "ended_at", "duration", "created_at"),
        method="filter_noop",
    )

    default_sort = "started_at"
    default_order = "desc"

    class Meta:
        model = TimeLog
        fields = []
