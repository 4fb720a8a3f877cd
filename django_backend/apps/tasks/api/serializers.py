from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.tasks.models import Attachment, Comment, Task, TaskHistory, TimeLog
from apps.tasks.rules.attachments import format_file_size, get_file_icon
from apps.tasks.rules.comments import MAX_CONTENT_LENGTH
from apps.tasks.rules.time_logs import format_duration

User = get_user_model()


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "display_name", "avatar_url"]


class TaskSerializer(serializers.ModelSerializer):
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True
    )
    parent_id = serializers.PrimaryKeyRelatedField(
        source="parent", queryset=Task.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "status",
            "priority",
            "importance",
            "urgency",
            "eisenhower_quadrant",
            "parent_id",
            "created_by",
            "assigned_to",
            "estimated_time",
            "progress",
            "scheduled_start_date",
            "scheduled_end_date",
            "due_date",
            "revision",
            "created_at",
            "updated_at",
            "deleted_at",
        ]
        read_only_fields = [
            "id",
            "eisenhower_quadrant",
            "created_by",
            "revision",
            "created_at",
            "updated_at",
            "deleted_at",
        ]


class TaskDetailSerializer(TaskSerializer):
    creator = UserSummarySerializer(source="created_by", read_only=True)
    assignee = UserSummarySerializer(source="assigned_to", read_only=True)
    subtask_count = serializers.IntegerField(read_only=True, default=0)
    completed_subtask_count = serializers.IntegerField(read_only=True, default=0)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta(TaskSerializer.Meta):
        fields = TaskSerializer.Meta.fields + [
            "creator",
            "assignee",
            "subtask_count",
            "completed_subtask_count",
            "is_overdue",
        ]


class TaskUpdateSerializer(TaskSerializer):
    # compare-and-swap against Task.revision when sent
    revision = serializers.IntegerField(min_value=0, required=False, write_only=True)


class BulkUpdateSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    data = serializers.DictField()

    def validate_data(self, value):
        inner = TaskUpdateSerializer(data=value, partial=True)
        inner.is_valid(raise_exception=True)
        validated = dict(inner.validated_data)
        validated.pop("revision", None)
        if not validated:
            raise serializers.ValidationError("No fields to update")
        return validated


class BulkDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class TaskHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskHistory
        fields = ["id", "action", "metadata", "created_at", "user"]


class CommentSerializer(serializers.ModelSerializer):
    task_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    parent_id = serializers.IntegerField(required=False, allow_null=True)
    author = UserSummarySerializer(source="user", read_only=True)
    content = serializers.CharField(max_length=MAX_CONTENT_LENGTH, trim_whitespace=True)

    class Meta:
        model = Comment
        fields = [
            "id",
            "task_id",
            "user_id",
            "author",
            "content",
            "parent_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class CommentUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=MAX_CONTENT_LENGTH, trim_whitespace=True)


class AttachmentSerializer(serializers.ModelSerializer):
    task_id = serializers.IntegerField(read_only=True)
    uploaded_by = serializers.PrimaryKeyRelatedField(read_only=True)
    file_size_display = serializers.SerializerMethodField()
    icon = serializers.SerializerMethodField()

    class Meta:
        model = Attachment
        fields = [
            "id",
            "task_id",
            "uploaded_by",
            "file_name",
            "original_name",
            "file_size",
            "file_size_display",
            "file_type",
            "icon",
            "file_path",
            "uploaded_at",
        ]
        read_only_fields = ["id", "file_name", "original_name", "uploaded_at"]

    def get_file_size_display(self, obj):
        return format_file_size(obj.file_size)

    def get_icon(self, obj):
        return get_file_icon(obj.file_type)


class AttachmentCreateSerializer(serializers.Serializer):
    file_name = serializers.CharField(max_length=255)
    file_size = serializers.IntegerField()
    file_type = serializers.CharField(max_length=150)
    file_path = serializers.CharField(max_length=1024, required=False, default="")


class TimeLogSerializer(serializers.ModelSerializer):
    task_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    duration_display = serializers.SerializerMethodField()
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = TimeLog
        fields = [
            "id",
            "task_id",
            "user_id",
            "started_at",
            "ended_at",
            "duration",
            "duration_display",
            "description",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["id", "duration", "created_at"]

    def get_duration_display(self, obj):
        if obj.duration is None:
            return None
        return format_duration(obj.duration)


class TimeLogStartSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class TimeLogEndSerializer(serializers.Serializer):
    ended_at = serializers.DateTimeField(required=False)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
