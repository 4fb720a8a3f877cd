import logging

from django.contrib.auth import get_user_model
from django.db.models import Count, ProtectedError, Q
from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.errors import ConflictError
from apps.tasks.api.serializers import TimeLogSerializer
from apps.tasks.choices import TaskStatus
from apps.tasks.services.time_logs import active_time_logs
from .permissions import IsSelfOrAdmin
from .serializers import RegisterSerializer, UserDetailSerializer, UserSerializer, UserUpdateSerializer
from ..producer import publish_user_deleted, publish_user_registered, publish_user_updated

User = get_user_model()
logger = logging.getLogger(__name__)


class UserViewSet(viewsets.ModelViewSet):
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        live = Q(tasks_created__deleted_at__isnull=True)
        return User.objects.annotate(
            task_count=Count("tasks_created", filter=live, distinct=True),
            completed_task_count=Count(
                "tasks_created",
                filter=live & Q(tasks_created__status=TaskStatus.DONE),
                distinct=True,
            ),
        ).order_by("id")

    def get_serializer_class(self):
        if self.action == "create":
            return RegisterSerializer
        if self.action in ["update", "partial_update"]:
            return UserUpdateSerializer
        if self.action == "retrieve":
            return UserDetailSerializer
        return UserSerializer

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        if self.action in ["update", "partial_update", "destroy"]:
            return [permissions.IsAuthenticated(), IsSelfOrAdmin()]
        return super().get_permissions()

    def perform_create(self, serializer):
        user = serializer.save()
        logger.info(f"User {user.id} registered")
        publish_user_registered(user.id, user.username, user.email)

    def perform_update(self, serializer):
        user = serializer.save()
        publish_user_updated(user.id, serializer.validated_data.keys())

    def perform_destroy(self, instance):
        user_id, username = instance.id, instance.username
        try:
            instance.delete()
        except ProtectedError:
            raise ConflictError("User still has created tasks and cannot be deleted")
        publish_user_deleted(user_id, username)

    @action(detail=False, methods=["get"])
    def me(self, request):
        return Response(UserSerializer(request.user).data)

    @action(detail=False, methods=["get"], url_path="me/active-time-logs")
    def active_time_logs(self, request):
        qs = active_time_logs(request.user).select_related("task")
        return Response(TimeLogSerializer(qs, many=True).data)
