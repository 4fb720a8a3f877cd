from rest_framework.permissions import BasePermission


class IsCreatorOrStaff(BasePermission):
    message = "Only the task creator can permanently delete it"

    def has_object_permission(self, request, view, obj):
        u = request.user
        if not u or not u.is_authenticated:
            return False
        return u.is_staff or obj.created_by_id == u.id
