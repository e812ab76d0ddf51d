"""
PATH: users/views/users.py

USER MANAGEMENT (capability users.*)

/api/auth/users/             GET list
/api/auth/users/<id>/        GET | PUT | PATCH | DELETE
/api/auth/users/<id>/role/   PUT {"role": "..."}

Accounts are created through /api/auth/register/.

Guards:
- an admin cannot be demoted
- admins cannot be deleted, and nobody deletes their own account
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import filters, mixins, serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from audit.models import EventType
from audit.services.event_log import EventLog
from permissions.roles import ROLE_ADMIN, HasResourcePermission
from users.serializers import UserRoleSerializer, UserSerializer, UserUpdateSerializer

logger = logging.getLogger("users")

User = get_user_model()


class UserViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = User.objects.all()
    permission_classes = [IsAuthenticated, HasResourcePermission]
    permission_resource = "users"

    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["username", "email", "first_name", "last_name"]
    ordering_fields = ["username", "role", "created_at"]

    def get_serializer_class(self):
        if self.action in ("update", "partial_update"):
            return UserUpdateSerializer
        if self.action == "role":
            return UserRoleSerializer
        return UserSerializer

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        user = self.get_object()
        old_role = user.role

        serializer = UserUpdateSerializer(user, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        self._updated_event(request, user, old_role, sorted(serializer.validated_data.keys()))
        return Response(UserSerializer(user).data)

    @extend_schema(request=UserRoleSerializer, responses={200: UserSerializer})
    @action(detail=True, methods=["put"], url_path="role")
    def role(self, request, pk=None):
        user = self.get_object()
        old_role = user.role

        serializer = UserRoleSerializer(user, data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        self._updated_event(request, user, old_role, ["role"])
        return Response(UserSerializer(user).data)

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()

        if user.pk == request.user.pk:
            raise serializers.ValidationError({"detail": "Cannot delete your own account."})
        if user.role == ROLE_ADMIN:
            raise serializers.ValidationError({"detail": "Cannot delete admin users."})

        snapshot = {"user_id": user.id, "username": user.username, "role": user.role}
        user.delete()

        logger.info("User deleted", extra={"user_id": str(snapshot["user_id"]), "deleted_by": str(request.user.id)})
        EventLog().append(
            EventType.USER_LOGIN,
            {"action": "user_deleted", **snapshot, "deleted_by": request.user.username},
            f"User deleted by {request.user.username}: {snapshot['username']} ({snapshot['role']})",
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _updated_event(self, request, user, old_role, changes):
        EventLog().append(
            EventType.USER_LOGIN,
            {
                "action": "user_updated",
                "user_id": user.id,
                "username": user.username,
                "old_role": old_role,
                "new_role": user.role,
                "changes": changes,
                "updated_by": request.user.username,
            },
            f"User updated by {request.user.username}: {user.username}",
        )
