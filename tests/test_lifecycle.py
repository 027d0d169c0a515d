from datetime import timedelta

import pytest
from django.utils import timezone

from raktsetu import lifecycle, rewards
from raktsetu.exceptions import (
    AlreadyAcceptedError,
    ForbiddenError,
    IncompatibleError,
    InvalidStateError,
    NotAssignedError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from raktsetu.models import AuditEvent, BloodRequest, Notification, Profile

Status = BloodRequest.Status


# ---------------- create ----------------
def test_create_request_starts_active_with_no_donors(client_user, request_fields):
    req = lifecycle.create_request(client_user, request_fields)

    assert req.status == Status.ACTIVE
    assert req.client_id == client_user.pk
    assert req.confirmed_donors.count() == 0
    assert req.assigned_donors.count() == 0
    assert req.urgency == "critical"
    assert AuditEvent.objects.filter(user=client_user, action="request_created").exists()


@pytest.mark.parametrize("missing,wire_key", [
    ("blood_type", "bloodType"),
    ("hospital_name", "hospitalName"),
    ("location_details", "locationDetails"),
    ("time_limit", "timeLimit"),
    ("urgency", "urgency"),
])
def test_create_request_requires_fields(client_user, request_fields, missing, wire_key):
    del request_fields[missing]
    with pytest.raises(ValidationError) as exc:
        lifecycle.create_request(client_user, request_fields)
    assert wire_key in exc.value.errors
    assert not BloodRequest.objects.exists()


def test_additional_info_is_optional(client_user, request_fields):
    del request_fields["additional_info"]
    assert lifecycle.create_request(client_user, request_fields).additional_info == ""


def test_time_limit_must_be_in_the_future(client_user, request_fields):
    request_fields["time_limit"] = (timezone.now() - timedelta(minutes=1)).isoformat()
    with pytest.raises(ValidationError) as exc:
        lifecycle.create_request(client_user, request_fields)
    assert "timeLimit" in exc.value.errors


@pytest.mark.parametrize("field,value", [
    ("blood_type", "C+"),
    ("urgency", "extreme"),
    ("hospital_name", "   "),
    ("time_limit", "next tuesday"),
])
def test_create_request_rejects_bad_values(client_user, request_fields, field, value):
    request_fields[field] = value
    with pytest.raises(ValidationError):
        lifecycle.create_request(client_user, request_fields)


def test_donor_cannot_create_request(donor, request_fields):
    with pytest.raises(ForbiddenError):
        lifecycle.create_request(donor, request_fields)


# ---------------- listing ----------------
def _set_created(req, minutes_ago):
    BloodRequest.objects.filter(pk=req.pk).update(created_at=timezone.now() - timedelta(minutes=minutes_ago))


def test_client_sees_only_own_requests_newest_first(make_user, client_user, make_request):
    other = make_user(role=Profile.Role.CLIENT)
    old = make_request()
    new = make_request(status=Status.CANCELLED)
    make_request(client=other)
    _set_created(old, 30)
    _set_created(new, 5)

    assert [r.pk for r in lifecycle.list_requests_for(client_user)] == [new.pk, old.pk]


def test_donor_listing_orders_by_urgency_then_match_then_newest(make_user, make_request):
    viewer = make_user(blood_group="A-")
    low_match = make_request(blood_type="A-", urgency="low")
    crit_mismatch = make_request(blood_type="O-", urgency="critical")
    crit_match_old = make_request(blood_type="AB+", urgency="critical")
    crit_match_new = make_request(blood_type="A+", urgency="critical")
    medium_mismatch = make_request(blood_type="B+", urgency="medium")
    for minutes, req in enumerate([crit_match_new, crit_mismatch, medium_mismatch, crit_match_old, low_match]):
        _set_created(req, (minutes + 1) * 10)

    listing = lifecycle.list_requests_for(viewer)

    assert [r.pk for r in listing] == [
        crit_match_new.pk, crit_match_old.pk, crit_mismatch.pk, medium_mismatch.pk, low_match.pk,
    ]
    assert [r.compatible for r in listing] == [True, True, False, False, True]


def test_donor_listing_hides_expired_and_inactive(donor, make_request):
    open_req = make_request()
    make_request(hours=-1)  # active but past its time limit
    for status in (Status.PENDING, Status.PARTIALLY_FULFILLED, Status.FULFILLED, Status.CANCELLED):
        make_request(status=status)

    assert [r.pk for r in lifecycle.list_requests_for(donor)] == [open_req.pk]


def test_donor_without_blood_group_cannot_list(make_user, make_request):
    make_request()
    newcomer = make_user(blood_group="")
    with pytest.raises(PreconditionError):
        lifecycle.list_requests_for(newcomer)


def test_get_request_checks_ownership(make_user, client_user, donor, make_request):
    req = make_request(blood_type="AB+")
    assert lifecycle.get_request(client_user, req.pk).pk == req.pk
    assert lifecycle.get_request(donor, req.pk).compatible is True
    with pytest.raises(ForbiddenError):
        lifecycle.get_request(make_user(role=Profile.Role.CLIENT), req.pk)
    with pytest.raises(NotFoundError):
        lifecycle.get_request(donor, req.pk + 100)


# ---------------- accept ----------------
def test_accept_adds_confirmed_donor_and_keeps_active(donor, client_user, make_request):
    req = make_request(blood_type="B-")
    req.assigned_donors.add(donor)

    accepted = lifecycle.accept_request(donor, req.pk)

    assert accepted.status == Status.ACTIVE
    assert list(accepted.confirmed_donors.all()) == [donor]
    assert not accepted.assigned_donors.exists()
    assert Notification.objects.filter(recipient=client_user, kind=Notification.Kind.REQUEST_ACCEPTED).count() == 1


def test_accept_twice_fails(donor, make_request):
    req = make_request()
    lifecycle.accept_request(donor, req.pk)
    with pytest.raises(AlreadyAcceptedError):
        lifecycle.accept_request(donor, req.pk)
    assert req.confirmed_donors.count() == 1


@pytest.mark.parametrize("status", [Status.CANCELLED, Status.FULFILLED, Status.PARTIALLY_FULFILLED, Status.PENDING])
def test_accept_requires_active(donor, make_request, status):
    req = make_request(status=status)
    with pytest.raises(InvalidStateError):
        lifecycle.accept_request(donor, req.pk)


def test_accept_expired_request_fails_even_if_active(donor, make_request):
    req = make_request(hours=-2)
    with pytest.raises(InvalidStateError):
        lifecycle.accept_request(donor, req.pk)


def test_accept_incompatible_blood_type(make_user, make_request):
    ab_donor = make_user(blood_group="AB+")
    req = make_request(blood_type="O+")
    with pytest.raises(IncompatibleError):
        lifecycle.accept_request(ab_donor, req.pk)
    assert not req.confirmed_donors.exists()


def test_accept_unknown_request(donor):
    with pytest.raises(NotFoundError):
        lifecycle.accept_request(donor, 424242)


def test_accept_requires_blood_group(make_user, make_request):
    req = make_request()
    with pytest.raises(PreconditionError):
        lifecycle.accept_request(make_user(blood_group=""), req.pk)


def test_accept_has_no_donor_quota(make_user, make_request):
    req = make_request(blood_type="AB+")
    for _ in range(5):
        lifecycle.accept_request(make_user(blood_group="O-"), req.pk)
    req.refresh_from_db()
    assert req.confirmed_donors.count() == 5
    assert req.status == Status.ACTIVE


def test_client_cannot_accept(client_user, make_request):
    with pytest.raises(ForbiddenError):
        lifecycle.accept_request(client_user, make_request().pk)


# ---------------- arrived ----------------
def test_mark_arrived_notifies_without_status_change(donor, client_user, make_request):
    req = make_request()
    lifecycle.accept_request(donor, req.pk)

    lifecycle.mark_arrived(donor, req.pk)

    req.refresh_from_db()
    assert req.status == Status.ACTIVE
    assert Notification.objects.filter(recipient=client_user, kind=Notification.Kind.DONOR_ARRIVED).count() == 1


def test_mark_arrived_requires_confirmation(donor, make_request):
    with pytest.raises(NotAssignedError):
        lifecycle.mark_arrived(donor, make_request().pk)
    assert not Notification.objects.exists()


# ---------------- cancel ----------------
@pytest.mark.parametrize("status", [Status.ACTIVE, Status.PARTIALLY_FULFILLED, Status.PENDING])
def test_cancel_from_non_terminal_states(client_user, make_request, status):
    req = make_request(status=status)
    assert lifecycle.cancel_request(client_user, req.pk).status == Status.CANCELLED
    req.refresh_from_db()
    assert req.status == Status.CANCELLED


@pytest.mark.parametrize("status", [Status.FULFILLED, Status.CANCELLED])
def test_cancel_terminal_request_fails(client_user, make_request, status):
    req = make_request(status=status)
    with pytest.raises(InvalidStateError):
        lifecycle.cancel_request(client_user, req.pk)


def test_cancel_after_time_limit_fails(client_user, make_request):
    req = make_request(hours=-1)
    with pytest.raises(InvalidStateError):
        lifecycle.cancel_request(client_user, req.pk)
    req.refresh_from_db()
    assert req.status == Status.ACTIVE


def test_only_owner_can_cancel(make_user, make_request):
    req = make_request()
    with pytest.raises(ForbiddenError):
        lifecycle.cancel_request(make_user(role=Profile.Role.CLIENT), req.pk)


def test_cancel_notifies_confirmed_donors(client_user, donor, make_request):
    req = make_request()
    lifecycle.accept_request(donor, req.pk)
    lifecycle.cancel_request(client_user, req.pk)
    assert Notification.objects.filter(recipient=donor, kind=Notification.Kind.REQUEST_CANCELLED).exists()


def test_partially_fulfilled_request_can_be_cancelled_after_completion(client_user, donor, make_request):
    req = make_request()
    lifecycle.accept_request(donor, req.pk)
    rewards.complete_donation(donor, req.pk)
    req.refresh_from_db()
    assert req.status == Status.PARTIALLY_FULFILLED

    assert lifecycle.cancel_request(client_user, req.pk).status == Status.CANCELLED
    with pytest.raises(InvalidStateError):
        lifecycle.accept_request(donor, req.pk)


# ---------------- completion status ----------------
def test_completion_status_threshold(make_user, make_request):
    req = make_request(blood_type="AB+")
    donors = [make_user(blood_group="O-") for _ in range(3)]

    req.confirmed_donors.add(donors[0], donors[1])
    assert lifecycle.completion_status(req) == Status.PARTIALLY_FULFILLED
    req.confirmed_donors.add(donors[2])
    assert lifecycle.completion_status(req) == Status.FULFILLED


def test_fulfilled_never_moves_back(make_request):
    req = make_request(status=Status.FULFILLED)
    assert lifecycle.completion_status(req) == Status.FULFILLED
