# users/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import ROLE_ADMIN, ROLE_AUDIT, ROLE_PHARMACIST


@dataclass(frozen=True)
class SeedUserSpec:
    role: str
    username: str
    first_name: str = ""
    last_name: str = ""


SEED_USERS = [
    SeedUserSpec(ROLE_ADMIN, "admin", "System", "Admin"),
    SeedUserSpec(ROLE_PHARMACIST, "pharmacist", "Lead", "Pharmacist"),
    SeedUserSpec(ROLE_AUDIT, "auditor", "Audit", "Reviewer"),
]


class Command(BaseCommand):
    help = "Seed one staff user per role (admin, pharmacist, audit)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="Reset password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        User = get_user_model()
        created_count = 0
        updated_count = 0

        for seed in SEED_USERS:
            is_admin = seed.role == ROLE_ADMIN
            user = User.objects.filter(username=seed.username).first()

            if user is None:
                User.objects.create_user(
                    username=seed.username,
                    password=password,
                    role=seed.role,
                    first_name=seed.first_name,
                    last_name=seed.last_name,
                    is_staff=is_admin,
                    is_superuser=is_admin,
                )
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"Created {seed.role}: {seed.username}"))
                continue

            dirty = False
            if user.role != seed.role:
                user.role = seed.role
                dirty = True
            if not user.is_active:
                user.is_active = True
                dirty = True
            if force_password:
                user.set_password(password)
                dirty = True

            if dirty:
                user.save()
                updated_count += 1
                self.stdout.write(f"Updated {seed.role}: {seed.username}")

        self.stdout.write(
            self.style.SUCCESS(f"Done. created={created_count} updated={updated_count}")
        )
