"""
PATH: users/models.py

CUSTOM USER MODEL

Staff identity for the pharmacy backend:
- username is the login identifier (JWT obtain uses it)
- email is optional contact info
- role is one of admin | pharmacist | audit and drives the capability table
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models

from permissions.roles import ROLE_ADMIN, ROLE_AUDIT, ROLE_CHOICES, ROLE_PHARMACIST, STAFF_ROLES


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, username, password=None, **extra_fields):
        """
        create_user(username="pharma1", password="x", role="pharmacist")

        Rules:
        - username is required and stored trimmed
        - role defaults to pharmacist and must be a staff role
        """
        username = (username or "").strip()
        if not username:
            raise ValueError("Username is required")

        email = (extra_fields.pop("email", "") or "").strip()
        extra_fields["email"] = self.normalize_email(email) if email else ""

        extra_fields.setdefault("role", ROLE_PHARMACIST)
        extra_fields.setdefault("is_active", True)

        user = self.model(username=username, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", ROLE_ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(username=username, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(blank=True, default="")

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_PHARMACIST)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "username"
    REQUIRED_FIELDS: list[str] = []

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        self.username = (self.username or "").strip()
        if len(self.username) < 3:
            raise ValidationError({"username": "Username must be at least 3 characters long."})
        if self.role not in STAFF_ROLES:
            raise ValidationError({"role": f"Invalid role: {self.role}"})

    @property
    def is_audit(self) -> bool:
        return self.role == ROLE_AUDIT

    def __str__(self):
        return f"{self.username} ({self.role})"
