# raktsetu/lifecycle.py
"""
Blood request state machine.

    pending -> active -> partially_fulfilled -> fulfilled
                  |              |
                  +--> cancelled <+

Requests are created `active` (`pending` is reserved for an approval step).
Acceptance only grows `confirmed_donors`; the move out of `active` happens in
`record_completion`, called by the reward engine when a donation completes.
Every mutation runs in one transaction with the request row locked.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from .audit import log_event
from .compat import is_compatible
from .exceptions import (
    AlreadyAcceptedError,
    ForbiddenError,
    IncompatibleError,
    InvalidStateError,
    NotAssignedError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from .forms import BloodRequestForm, errors_to_wire
from .models import BloodRequest, Notification, Profile
from .notifications import notify

logger = logging.getLogger(__name__)

Status = BloodRequest.Status

DEFAULT_FULFILLMENT_THRESHOLD = 3


# ------------------------ helpers ------------------------
def get_profile(user) -> Profile:
    try:
        return user.profile
    except Profile.DoesNotExist:
        raise ForbiddenError("No profile is attached to this account.")


def require_role(user, role) -> Profile:
    profile = get_profile(user)
    if profile.role != role:
        raise ForbiddenError(f"Role '{profile.role}' is not authorized to access this resource")
    return profile


def donor_blood_group(profile: Profile) -> str:
    if not profile.blood_group:
        raise PreconditionError("Donor blood group not found. Please update your profile.")
    return profile.blood_group


def lock_request(request_id) -> BloodRequest:
    """Fetch a request with its row locked until the surrounding transaction ends."""
    try:
        return BloodRequest.objects.select_for_update().get(pk=request_id)
    except BloodRequest.DoesNotExist:
        raise NotFoundError("Blood request not found.")


def _is_confirmed(blood_request, user) -> bool:
    return blood_request.confirmed_donors.filter(pk=user.pk).exists()


def fulfillment_threshold() -> int:
    return getattr(settings, "RAKTSETU_FULFILLMENT_THRESHOLD", DEFAULT_FULFILLMENT_THRESHOLD)


# ------------------------ operations ------------------------
def create_request(client, fields) -> BloodRequest:
    """
    Create an `active` request owned by `client`.
    `fields` uses form field names (blood_type, hospital_name, location_details,
    time_limit, urgency, additional_info).
    """
    require_role(client, Profile.Role.CLIENT)
    form = BloodRequestForm(data=fields)
    if not form.is_valid():
        raise ValidationError("Validation Error", errors=errors_to_wire(form))

    with transaction.atomic():
        blood_request = form.save(commit=False)
        blood_request.client = client
        blood_request.status = Status.ACTIVE
        blood_request.save()
        log_event(
            client,
            "request_created",
            request_id=blood_request.pk,
            blood_type=blood_request.blood_type,
            urgency=blood_request.urgency,
        )

    logger.info("request %s created by client %s (%s, %s)",
                blood_request.pk, client.pk, blood_request.blood_type, blood_request.urgency)
    return blood_request


def list_requests_for(user, now=None) -> list:
    """
    Clients: their own requests, newest first.
    Donors: open requests (active, deadline not passed) by urgency, then
    requests their blood group can serve, then newest first. Each donor-facing
    request carries a `compatible` attribute.
    """
    profile = get_profile(user)
    qs = BloodRequest.objects.prefetch_related("assigned_donors", "confirmed_donors").order_by("-created_at", "-pk")

    if profile.is_client:
        return list(qs.filter(client=user))

    blood_group = donor_blood_group(profile)
    now = now or timezone.now()
    open_requests = list(qs.filter(status=Status.ACTIVE, time_limit__gt=now))
    for req in open_requests:
        req.compatible = is_compatible(blood_group, req.blood_type)
    # stable sort keeps the newest-first order inside each (urgency, match) group
    open_requests.sort(key=lambda r: (-r.urgency_rank, not r.compatible))
    return open_requests


def get_request(user, request_id) -> BloodRequest:
    profile = get_profile(user)
    try:
        blood_request = BloodRequest.objects.prefetch_related(
            "assigned_donors", "confirmed_donors"
        ).get(pk=request_id)
    except BloodRequest.DoesNotExist:
        raise NotFoundError("Blood request not found.")

    if profile.is_client and blood_request.client_id != user.pk:
        raise ForbiddenError("You can only view your own requests.")
    if profile.is_donor and profile.blood_group:
        blood_request.compatible = is_compatible(profile.blood_group, blood_request.blood_type)
    return blood_request


def accept_request(donor, request_id, now=None) -> BloodRequest:
    profile = require_role(donor, Profile.Role.DONOR)
    now = now or timezone.now()

    with transaction.atomic():
        blood_request = lock_request(request_id)
        blood_group = donor_blood_group(profile)
        if blood_request.status != Status.ACTIVE:
            raise InvalidStateError("This request is no longer active.")
        if blood_request.is_expired(now):
            raise InvalidStateError("This request has passed its time limit.")
        if _is_confirmed(blood_request, donor):
            raise AlreadyAcceptedError("You have already accepted this request.")
        if not is_compatible(blood_group, blood_request.blood_type):
            raise IncompatibleError(
                f"Blood group {blood_group} cannot donate to a {blood_request.blood_type} request."
            )

        try:
            with transaction.atomic():
                blood_request.confirmed_donors.add(donor)
        except IntegrityError:
            raise AlreadyAcceptedError("You have already accepted this request.")
        blood_request.assigned_donors.remove(donor)
        blood_request.save(update_fields=["updated_at"])

        notify(
            blood_request.client,
            Notification.Kind.REQUEST_ACCEPTED,
            "A donor accepted your request",
            f"{profile.name} ({blood_group}) accepted your {blood_request.blood_type} request "
            f"at {blood_request.hospital_name}.",
            blood_request=blood_request,
            donor_id=donor.pk,
        )
        log_event(donor, "request_accepted", request_id=blood_request.pk)

    logger.info("donor %s accepted request %s", donor.pk, blood_request.pk)
    return blood_request


def mark_arrived(donor, request_id) -> BloodRequest:
    """Tell the owner a confirmed donor is at the hospital. Status is unchanged."""
    profile = require_role(donor, Profile.Role.DONOR)

    with transaction.atomic():
        blood_request = lock_request(request_id)
        if not _is_confirmed(blood_request, donor):
            raise NotAssignedError("You are not assigned to this request.")
        if blood_request.status == Status.CANCELLED:
            raise InvalidStateError("This request has been cancelled.")

        notify(
            blood_request.client,
            Notification.Kind.DONOR_ARRIVED,
            "Donor has arrived",
            f"{profile.name} has arrived at {blood_request.hospital_name}.",
            blood_request=blood_request,
            donor_id=donor.pk,
        )
        log_event(donor, "donor_arrived", request_id=blood_request.pk)

    logger.info("donor %s arrived for request %s", donor.pk, blood_request.pk)
    return blood_request


def cancel_request(client, request_id, now=None) -> BloodRequest:
    require_role(client, Profile.Role.CLIENT)
    now = now or timezone.now()

    with transaction.atomic():
        blood_request = lock_request(request_id)
        if blood_request.client_id != client.pk:
            raise ForbiddenError("You can only cancel your own requests.")
        if blood_request.is_terminal:
            raise InvalidStateError(f"Request is already {blood_request.status}.")
        if blood_request.is_expired(now):
            raise InvalidStateError("Request time limit has already passed.")

        previous = blood_request.status
        blood_request.status = Status.CANCELLED
        blood_request.save(update_fields=["status", "updated_at"])

        for donor in blood_request.confirmed_donors.all():
            notify(
                donor,
                Notification.Kind.REQUEST_CANCELLED,
                "Request cancelled",
                f"The {blood_request.blood_type} request at {blood_request.hospital_name} was cancelled.",
                blood_request=blood_request,
            )
        log_event(client, "request_cancelled", request_id=blood_request.pk, previous_status=previous)

    logger.info("request %s cancelled (was %s)", blood_request.pk, previous)
    return blood_request


# ------------------------ completion ------------------------
def completion_status(blood_request) -> str:
    """
    Status a request moves to when one of its donors completes a donation:
    fulfilled once enough donors have confirmed, partially_fulfilled before.
    A fulfilled request stays fulfilled.
    """
    if blood_request.status == Status.FULFILLED:
        return Status.FULFILLED
    if blood_request.confirmed_donors.count() >= fulfillment_threshold():
        return Status.FULFILLED
    return Status.PARTIALLY_FULFILLED


def record_completion(blood_request) -> str:
    """Apply `completion_status`. Caller holds the row lock and the transaction."""
    previous = blood_request.status
    blood_request.status = completion_status(blood_request)
    if blood_request.status != previous:
        blood_request.save(update_fields=["status", "updated_at"])
        logger.info("request %s %s -> %s", blood_request.pk, previous, blood_request.status)
    return blood_request.status
