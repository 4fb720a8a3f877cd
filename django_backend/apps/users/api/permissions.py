from rest_framework.permissions import BasePermission


class IsSelfOrAdmin(BasePermission):
    message = "You can only modify your own account"

    def has_object_permission(self, request, view, obj):
        return bool(request.user and (request.user.is_staff or obj.id == request.user.id))
