from django_filters import utils
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.tasks.models import Attachment, Comment, Task, TimeLog
from apps.tasks.rules.comment_threads import build_comment_threads
from apps.tasks.services import attachments as attachment_service
from apps.tasks.services import bulk as bulk_service
from apps.tasks.services import comments as comment_service
from apps.tasks.services import tasks as task_service
from apps.tasks.services import time_logs as time_log_service
from .filters import AttachmentFilter, CommentFilter, TaskFilter, TimeLogFilter
from .permissions import IsCreatorOrStaff
from .serializers import (
    AttachmentCreateSerializer,
    AttachmentSerializer,
    BulkDeleteSerializer,
    BulkUpdateSerializer,
    CommentSerializer,
    CommentUpdateSerializer,
    TaskDetailSerializer,
    TaskHistorySerializer,
    TaskSerializer,
    TaskUpdateSerializer,
    TimeLogEndSerializer,
    TimeLogSerializer,
    TimeLogStartSerializer,
)


class TaskViewSet(viewsets.GenericViewSet):
    queryset = Task.objects.with_relations()
    serializer_class = TaskDetailSerializer
    filterset_class = TaskFilter
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def _paginated(self, items, serializer_class):
        page = self.paginate_queryset(items)
        data = serializer_class(page, many=True, context=self.get_serializer_context()).data
        return self.get_paginated_response(data)

    def list(self, request):
        qs = self.filter_queryset(self.get_queryset())
        return self._paginated(qs, TaskDetailSerializer)

    def create(self, request):
        ser = TaskSerializer(data=request.data, context=self.get_serializer_context())
        ser.is_valid(raise_exception=True)
        task = task_service.create_task(ser.validated_data, request.user)
        task = task_service.get_task(task.id)
        return Response(TaskDetailSerializer(task).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        task = task_service.get_task(pk)
        return Response(TaskDetailSerializer(task).data)

    def update(self, request, pk=None):
        ser = TaskUpdateSerializer(data=request.data, partial=True, context=self.get_serializer_context())
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        revision = data.pop("revision", None)
        task_service.update_task(pk, data, request.user, revision=revision)
        return Response(TaskDetailSerializer(task_service.get_task(pk)).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        task_service.delete_task(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def deleted(self, request):
        params = {**request.query_params.dict(), "deleted_only": "true"}
        fs = TaskFilter(params, queryset=Task.objects.with_relations(), request=request)
        if not fs.is_valid():
            raise utils.translate_validation(fs.errors)
        return self._paginated(fs.qs, TaskDetailSerializer)

    @action(detail=True, methods=["put"])
    def restore(self, request, pk=None):
        task = task_service.restore_task(pk, request.user)
        return Response(TaskDetailSerializer(task).data)

    @action(detail=True, methods=["delete"])
    def permanent(self, request, pk=None):
        task = task_service.get_task(pk, include_deleted=True)
        permission = IsCreatorOrStaff()
        if not permission.has_object_permission(request, self, task):
            self.permission_denied(request, message=permission.message)
        task_service.permanent_delete_task(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="bulk-update")
    def bulk_update(self, request):
        ser = BulkUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = bulk_service.bulk_update_tasks(
            ser.validated_data["ids"], ser.validated_data["data"], request.user
        )
        return Response(result)

    @action(detail=False, methods=["post"], url_path="bulk-delete")
    def bulk_delete(self, request):
        ser = BulkDeleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return Response(bulk_service.bulk_delete_tasks(ser.validated_data["ids"], request.user))

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        qs = task_service.task_history(pk)
        return Response(TaskHistorySerializer(qs, many=True).data)

    @action(detail=True, methods=["post"])
    def comments(self, request, pk=None):
        ser = CommentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        comment = comment_service.create_comment(
            pk,
            request.user,
            ser.validated_data["content"],
            parent_id=ser.validated_data.get("parent_id"),
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)

    @comments.mapping.get
    def list_comments(self, request, pk=None):
        comments = comment_service.list_task_comments(pk)
        threads = build_comment_threads(CommentSerializer(comments, many=True).data)
        page = self.paginate_queryset(threads)
        return self.get_paginated_response(page)

    @action(detail=True, methods=["get"], url_path="comments/count")
    def comment_count(self, request, pk=None):
        task_service.get_task(pk)
        return Response({"task_id": int(pk), "count": comment_service.count_comments(pk)})

    @action(detail=True, methods=["post"])
    def attachments(self, request, pk=None):
        ser = AttachmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        attachment = attachment_service.create_attachment(pk, request.user, **ser.validated_data)
        return Response(AttachmentSerializer(attachment).data, status=status.HTTP_201_CREATED)

    @attachments.mapping.get
    def list_attachments(self, request, pk=None):
        return self._paginated(attachment_service.list_task_attachments(pk), AttachmentSerializer)

    @action(detail=True, methods=["post"], url_path="attachments/validate")
    def validate_attachment(self, request, pk=None):
        ser = AttachmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        attachment_service.validate_attachment(pk, data["file_name"], data["file_size"], data["file_type"])
        return Response({"is_valid": True})

    @action(detail=True, methods=["post"], url_path="time-logs/start")
    def start_time_log(self, request, pk=None):
        ser = TimeLogStartSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        time_log = time_log_service.start_time_log(pk, request.user, ser.validated_data["description"])
        return Response(TimeLogSerializer(time_log).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="time-logs")
    def time_logs(self, request, pk=None):
        return self._paginated(time_log_service.list_task_time_logs(pk), TimeLogSerializer)


class CommentViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    queryset = Comment.objects.active().select_related("user")
    serializer_class = CommentSerializer
    filterset_class = CommentFilter
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def retrieve(self, request, pk=None):
        return Response(CommentSerializer(comment_service.get_comment(pk)).data)

    def update(self, request, pk=None):
        ser = CommentUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        comment = comment_service.update_comment(pk, request.user, ser.validated_data["content"])
        return Response(CommentSerializer(comment).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        comment_service.delete_comment(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put"])
    def restore(self, request, pk=None):
        comment = comment_service.restore_comment(pk, request.user)
        return Response(CommentSerializer(comment).data)


class AttachmentViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    queryset = Attachment.objects.select_related("uploaded_by")
    serializer_class = AttachmentSerializer
    filterset_class = AttachmentFilter
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def retrieve(self, request, pk=None):
        return Response(AttachmentSerializer(attachment_service.get_attachment(pk)).data)

    def destroy(self, request, pk=None):
        attachment_service.delete_attachment(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class TimeLogViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    queryset = TimeLog.objects.select_related("user")
    serializer_class = TimeLogSerializer
    filterset_class = TimeLogFilter
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def retrieve(self, request, pk=None):
        return Response(TimeLogSerializer(time_log_service.get_time_log(pk)).data)

    def partial_update(self, request, pk=None):
        ser = TimeLogSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        time_log = time_log_service.update_time_log(pk, request.user, dict(ser.validated_data))
        return Response(TimeLogSerializer(time_log).data)

    def update(self, request, pk=None):
        return self.partial_update(request, pk)

    def destroy(self, request, pk=None):
        time_log_service.delete_time_log(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def end(self, request, pk=None):
        ser = TimeLogEndSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        time_log = time_log_service.end_time_log(pk, request.user, **ser.validated_data)
        return Response(TimeLogSerializer(time_log).data)
