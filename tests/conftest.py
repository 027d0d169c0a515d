"""Shared fixtures: users with profiles and blood requests."""
import itertools
from datetime import timedelta

import pytest
from django.contrib.auth.models import User
from django.utils import timezone

from raktsetu.models import BloodRequest, Profile

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fast_password_hasher(settings):
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role=Profile.Role.DONOR, blood_group="O-", name=None, **extra):
        n = next(counter)
        phone = f"98{n:08d}"
        user = User.objects.create_user(username=phone, password=PASSWORD)
        donor = role == Profile.Role.DONOR
        Profile.objects.create(
            user=user,
            role=role,
            name=name or f"{role.title()} {n}",
            phone_number=phone,
            blood_group=blood_group if donor else "",
            details_submitted=bool(blood_group) and donor,
            **extra,
        )
        return user

    return _make


@pytest.fixture
def client_user(make_user):
    return make_user(role=Profile.Role.CLIENT)


@pytest.fixture
def donor(make_user):
    return make_user(role=Profile.Role.DONOR, blood_group="O-")


@pytest.fixture
def make_request(client_user):
    def _make(client=None, blood_type="A+", urgency="high", hours=4,
              status=BloodRequest.Status.ACTIVE, **extra):
        return BloodRequest.objects.create(
            client=client or client_user,
            blood_type=blood_type,
            hospital_name="City Hospital",
            location_details="Ward 3, MG Road",
            time_limit=timezone.now() + timedelta(hours=hours),
            urgency=urgency,
            status=status,
            **extra,
        )

    return _make


@pytest.fixture
def request_fields():
    """Valid create-request input, keyed by form field name."""
    return {
        "blood_type": "B+",
        "hospital_name": "Ruby Hall Clinic",
        "location_details": "Emergency wing, 2nd floor",
        "time_limit": (timezone.now() + timedelta(hours=3)).isoformat(),
        "urgency": "critical",
        "additional_info": "Surgery scheduled",
    }
