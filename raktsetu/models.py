# raktsetu/models.py
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from .compat import BLOOD_TYPES as _BLOOD_TYPE_CODES
from .titles import NEW_HERO, title_for

# -------------------- Constants --------------------
BLOOD_TYPES = [(bt, bt) for bt in _BLOOD_TYPE_CODES]


def _iso(dt):
    return dt.isoformat() if dt else None


# -------------------- Users --------------------
class Profile(models.Model):
    class Role(models.TextChoices):
        DONOR = "donor", "Donor"
        CLIENT = "client", "Client"

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    role = models.CharField("Role", max_length=10, choices=Role.choices)
    name = models.CharField("Name", max_length=120)
    phone_number = models.CharField("Phone number", max_length=20, unique=True)

    # donor details (filled by the donor-details form)
    age = models.PositiveSmallIntegerField(
        "Age", null=True, blank=True, validators=[MinValueValidator(18), MaxValueValidator(65)]
    )
    weight = models.FloatField("Weight (kg)", null=True, blank=True, validators=[MinValueValidator(45)])
    blood_group = models.CharField("Blood group", max_length=3, choices=BLOOD_TYPES, blank=True)
    health_info = models.JSONField("Health info", default=list, blank=True)
    details_submitted = models.BooleanField("Details submitted", default=False)

    # awards; written only by rewards.complete_donation
    donations = models.PositiveIntegerField("Donations", default=0)
    tokens = models.PositiveIntegerField("Tokens", default=0)
    title = models.CharField("Title", max_length=40, default=NEW_HERO, editable=False)

    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.role})"

    @property
    def is_donor(self):
        return self.role == self.Role.DONOR

    @property
    def is_client(self):
        return self.role == self.Role.CLIENT

    def save(self, *args, **kwargs):
        # title always follows the donation count
        self.title = title_for(self.donations).title
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "donations" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"title"}
        super().save(*args, **kwargs)

    def to_dict(self):
        data = {
            "id": self.user_id,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "role": self.role,
        }
        if self.is_donor:
            data.update({
                "age": self.age,
                "weight": self.weight,
                "bloodGroup": self.blood_group or None,
                "healthInfo": self.health_info,
                "detailsSubmitted": self.details_submitted,
                "donations": self.donations,
                "tokens": self.tokens,
                "title": self.title,
            })
        return data


# -------------------- Core domain --------------------
class BloodRequest(models.Model):
    class Urgency(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        CRITICAL = "critical", "Critical"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ACTIVE = "active", "Active"
        PARTIALLY_FULFILLED = "partially_fulfilled", "Partially fulfilled"
        FULFILLED = "fulfilled", "Fulfilled"
        CANCELLED = "cancelled", "Cancelled"

    URGENCY_RANK = {"low": 0, "medium": 1, "high": 2, "critical": 3}
    TERMINAL_STATUSES = (Status.FULFILLED, Status.CANCELLED)

    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="blood_requests")
    blood_type = models.CharField("Blood type", max_length=3, choices=BLOOD_TYPES)
    hospital_name = models.CharField("Hospital name", max_length=160)
    location_details = models.TextField("Location details")
    time_limit = models.DateTimeField("Time limit")
    urgency = models.CharField("Urgency", max_length=10, choices=Urgency.choices, default=Urgency.MEDIUM)
    additional_info = models.TextField("Additional info", blank=True)
    status = models.CharField("Status", max_length=20, choices=Status.choices,
                              default=Status.PENDING, db_index=True)
    assigned_donors = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="assigned_requests", blank=True)
    confirmed_donors = models.ManyToManyField(settings.AUTH_USER_MODEL, related_name="confirmed_requests", blank=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    updated_at = models.DateTimeField("Updated at", auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Req {self.blood_type} ({self.urgency}) - {self.hospital_name} [{self.status}]"

    @property
    def urgency_rank(self):
        return self.URGENCY_RANK[self.urgency]

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def is_expired(self, now=None):
        return self.time_limit <= (now or timezone.now())

    def to_dict(self, compatible=None):
        data = {
            "id": self.pk,
            "clientId": self.client_id,
            "bloodType": self.blood_type,
            "hospitalName": self.hospital_name,
            "locationDetails": self.location_details,
            "timeLimit": _iso(self.time_limit),
            "urgency": self.urgency,
            "additionalInfo": self.additional_info or None,
            "status": self.status,
            "assignedDonors": sorted(u.pk for u in self.assigned_donors.all()),
            "confirmedDonors": sorted(u.pk for u in self.confirmed_donors.all()),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if compatible is not None:
            data["compatible"] = compatible
        return data


class DonationRecord(models.Model):
    donor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="donation_records")
    blood_request = models.ForeignKey(BloodRequest, on_delete=models.CASCADE, related_name="donation_records")
    arrival_latency_minutes = models.PositiveIntegerField("Arrival latency (min)", null=True, blank=True)
    tokens_awarded = models.PositiveIntegerField("Tokens awarded")
    breakdown = models.JSONField("Token breakdown", default=dict)
    completed_at = models.DateTimeField("Completed at", default=timezone.now)

    class Meta:
        ordering = ["-completed_at"]
        constraints = [
            models.UniqueConstraint(fields=["donor", "blood_request"], name="unique_donation_per_request"),
        ]

    def __str__(self):
        return f"{self.donor_id} -> req {self.blood_request_id} (+{self.tokens_awarded})"

    def to_dict(self):
        req = self.blood_request
        return {
            "id": self.pk,
            "requestId": req.pk,
            "bloodType": req.blood_type,
            "hospitalName": req.hospital_name,
            "urgency": req.urgency,
            "arrivalTime": self.arrival_latency_minutes,
            "tokensAwarded": self.tokens_awarded,
            "breakdown": self.breakdown,
            "completedAt": _iso(self.completed_at),
        }


class Notification(models.Model):
    class Kind(models.TextChoices):
        REQUEST_ACCEPTED = "request_accepted", "Request accepted"
        DONOR_ARRIVED = "donor_arrived", "Donor arrived"
        DONATION_COMPLETED = "donation_completed", "Donation completed"
        REQUEST_CANCELLED = "request_cancelled", "Request cancelled"

    recipient = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    kind = models.CharField("Kind", max_length=30, choices=Kind.choices)
    title = models.CharField("Title", max_length=120)
    body = models.TextField("Body")
    data = models.JSONField("Data", default=dict, blank=True)
    blood_request = models.ForeignKey(BloodRequest, on_delete=models.SET_NULL, null=True, blank=True,
                                      related_name="notifications")
    created_at = models.DateTimeField("Created at", auto_now_add=True)
    read_at = models.DateTimeField("Read at", null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.kind} -> {self.recipient_id}"

    def to_dict(self):
        return {
            "id": self.pk,
            "kind": self.kind,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "requestId": self.blood_request_id,
            "createdAt": _iso(self.created_at),
            "read": self.read_at is not None,
        }


# -------------------- Audit --------------------
class AuditEvent(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    role = models.CharField("Role at time", max_length=20, blank=True)
    action = models.CharField("Action", max_length=50)
    details = models.JSONField("Details", default=dict, blank=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        who = self.user.username if self.user else "anon"
        return f"{self.created_at:%Y-%m-%d %H:%M} [{self.role}] {who} -> {self.action}"
