# tracker/management/commands/ensure_test_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from tracker.models import Profile

TEST_SET = [
    ("admin1", "Admin One", Profile.ROLE_ADMIN),
    ("mr1", "Rahul Sharma", Profile.ROLE_MR),
    ("mr2", "Priya Nair", Profile.ROLE_MR),
]

class Command(BaseCommand):
    help = "Ensure test users exist, are active and have password=123456 (idempotent)."

    def handle(self, *args, **opts):
        for username, name, role in TEST_SET:
            u, created = Profile.objects.get_or_create(
                username=username,
                defaults={"name": name, "role": role, "status": Profile.STATUS_ACTIVE,
                          "password": make_password("123456"), "is_active": True},
            )
            if not created:
                # reset password, role and activation
                u.password = make_password("123456")
                u.role = role
                u.status = Profile.STATUS_ACTIVE
                u.is_active = True
                u.save(update_fields=["password", "role", "status", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
