"""
PATH: users/views/auth.py

AUTH VIEWS

- JWT obtain (username + password) with USER_LOGIN audit events
- Register: admin-only (users.create capability)
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.views import TokenObtainPairView

from audit.models import EventType
from audit.services.event_log import EventLog
from permissions.roles import CAP_USERS_CREATE, HasCapability
from users.serializers import RegisterSerializer, RoleTokenObtainPairSerializer, UserSerializer

logger = logging.getLogger("users")


def _client_ip(request) -> str:
    return request.META.get("REMOTE_ADDR", "")


class LoginView(TokenObtainPairView):
    serializer_class = RoleTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        username = str(request.data.get("username", "")).strip()
        events = EventLog()

        try:
            response = super().post(request, *args, **kwargs)
        except (AuthenticationFailed, InvalidToken, TokenError):
            events.append(
                EventType.USER_LOGIN,
                {"action": "login_failed", "username": username, "ip": _client_ip(request)},
                f"Login failed: {username}",
            )
            raise

        user = response.data.get("user") or {}
        events.append(
            EventType.USER_LOGIN,
            {
                "action": "login_success",
                "user_id": user.get("id"),
                "username": username,
                "role": user.get("role"),
                "ip": _client_ip(request),
            },
            f"User logged in successfully: {username} ({user.get('role')})",
        )
        return response


class RegisterView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_USERS_CREATE
    serializer_class = RegisterSerializer

    @extend_schema(
        request=RegisterSerializer,
        responses={201: UserSerializer},
        description="Create a staff account (admin only)",
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(
            "User created",
            extra={"user_id": str(user.id), "role": user.role, "created_by": str(request.user.id)},
        )
        EventLog().append(
            EventType.USER_LOGIN,
            {
                "action": "user_created",
                "user_id": user.id,
                "username": user.username,
                "role": user.role,
                "created_by": request.user.username,
            },
            f"User created: {user.username} with role {user.role}",
        )

        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
