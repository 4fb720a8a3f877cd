from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AttachmentViewSet, CommentViewSet, TaskViewSet, TimeLogViewSet

router = DefaultRouter()
router.register(r"tasks", TaskViewSet, basename="tasks")
router.register(r"comments", CommentViewSet, basename="comments")
router.register(r"attachments", AttachmentViewSet, basename="attachments")
router.register(r"time-logs", TimeLogViewSet, basename="time-logs")

urlpatterns = [
    path("", include(router.urls)),
]
