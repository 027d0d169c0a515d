# raktsetu/management/commands/seed_demo.py
from datetime import timedelta

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from raktsetu.compat import BLOOD_TYPES
from raktsetu.models import BloodRequest, Profile

DEMO_PASSWORD = "demo-pass"
CLIENT_PHONE = "9000000001"
URGENCY_CYCLE = ["critical", "high", "medium", "low"]
HOSPITALS = [
    ("AIIMS", "Ansari Nagar, New Delhi"),
    ("KEM Hospital", "Parel, Mumbai"),
    ("Christian Medical College", "Ida Scudder Rd, Vellore"),
    ("NIMHANS", "Hosur Road, Bengaluru"),
]


class Command(BaseCommand):
    help = "Seed a demo client, donors of every blood type, and open blood requests."

    def add_arguments(self, parser):
        parser.add_argument("--donors-per-type", type=int, default=1,
                            help="Donor accounts per blood type (default: 1)")
        parser.add_argument("--requests", type=int, default=8,
                            help="Active requests to create for the demo client (default: 8)")
        parser.add_argument("--reset", action="store_true",
                            help="Delete all demo users (and their requests) before seeding")

    def _user(self, phone, name, role, **extra):
        user, created = User.objects.get_or_create(username=phone)
        if created:
            user.set_password(DEMO_PASSWORD)
            user.save(update_fields=["password"])
            Profile.objects.create(user=user, role=role, name=name, phone_number=phone, **extra)
        return user, created

    @transaction.atomic
    def handle(self, *args, **opts):
        per_type = opts["donors_per_type"]
        n_requests = opts["requests"]

        if opts["reset"]:
            self.stdout.write(self.style.WARNING("Deleting demo users..."))
            User.objects.filter(username__startswith="90000").delete()

        client, _ = self._user(CLIENT_PHONE, "Demo Client", Profile.Role.CLIENT)

        created_donors = 0
        for t_idx, bt in enumerate(BLOOD_TYPES):
            for n in range(per_type):
                phone = f"90000{t_idx + 1:02d}{n:03d}"
                _, created = self._user(
                    phone, f"Demo Donor {bt} {n + 1}", Profile.Role.DONOR,
                    age=30, weight=70, blood_group=bt, health_info=["none"], details_submitted=True,
                )
                created_donors += int(created)
        self.stdout.write(f"Donors: created {created_donors} (password: {DEMO_PASSWORD}).")

        now = timezone.now()
        for i in range(n_requests):
            hospital, location = HOSPITALS[i % len(HOSPITALS)]
            BloodRequest.objects.create(
                client=client,
                blood_type=BLOOD_TYPES[i % len(BLOOD_TYPES)],
                hospital_name=hospital,
                location_details=location,
                time_limit=now + timedelta(hours=6 * (i + 1)),
                urgency=URGENCY_CYCLE[i % len(URGENCY_CYCLE)],
                status=BloodRequest.Status.ACTIVE,
            )

        self.stdout.write(self.style.SUCCESS(
            f"Done. Client login {CLIENT_PHONE}; created {n_requests} active request(s)."
        ))
