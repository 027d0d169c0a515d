# raktsetu/rewards.py
"""
Token awards for completed donations.

    tokens = base (10)
           + urgency bonus (critical 20, high 15, medium 10, low 5)
           + night bonus (10 when the local hour is < 6 or > 22)
           + response bonus (15 within 30 min, 10 within 60 min)

`complete_donation` is the only code path that changes a donor's
donations/tokens/title.
"""
import logging
from typing import NamedTuple, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from . import lifecycle
from .audit import log_event
from .exceptions import AlreadyCompletedError, InvalidStateError, NotAssignedError, ValidationError
from .models import BloodRequest, DonationRecord, Notification, Profile
from .notifications import notify
from .titles import achievements_for, rewards_for, title_for

logger = logging.getLogger(__name__)

BASE_TOKENS = 10
URGENCY_BONUS = {
    "critical": 20,
    "high": 15,
    "medium": 10,
    "low": 5,
}
NIGHT_BONUS = 10
NIGHT_ENDS_HOUR = 6     # hours before this one are night
NIGHT_STARTS_AFTER = 22  # hours after this one are night; 22 itself is not
RESPONSE_BONUSES = [
    (30, 15),
    (60, 10),
]


class TokenAward(NamedTuple):
    base: int
    urgency: int
    night: int
    response: int

    @property
    def total(self):
        return self.base + self.urgency + self.night + self.response

    def as_dict(self):
        return {**self._asdict(), "total": self.total}


class DonationResult(NamedTuple):
    tokens_awarded: int
    total_tokens: int
    title: str
    request_status: str
    record: DonationRecord


def is_night(hour: int) -> bool:
    return hour < NIGHT_ENDS_HOUR or hour > NIGHT_STARTS_AFTER


def response_bonus(arrival_latency_minutes: Optional[int]) -> int:
    if arrival_latency_minutes is None:
        return 0
    for limit, bonus in RESPONSE_BONUSES:
        if arrival_latency_minutes <= limit:
            return bonus
    return 0


def compute_tokens(urgency: str, completion_hour: int, arrival_latency_minutes: Optional[int] = None) -> TokenAward:
    return TokenAward(
        base=BASE_TOKENS,
        urgency=URGENCY_BONUS[urgency],
        night=NIGHT_BONUS if is_night(completion_hour) else 0,
        response=response_bonus(arrival_latency_minutes),
    )


def _check_latency(value):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            "arrivalTime must be a non-negative number of minutes.",
            errors={"arrivalTime": ["Enter a whole number of minutes (0 or more)."]},
        )
    return value


def complete_donation(donor, request_id, arrival_latency_minutes=None, now=None) -> DonationResult:
    """
    Record one completed donation and award its tokens.

    Donor counters, the donation record, the request status, the owner's
    notification and the audit row are written in one transaction. A second
    call for the same (donor, request) raises AlreadyCompletedError.
    """
    lifecycle.require_role(donor, Profile.Role.DONOR)
    latency = _check_latency(arrival_latency_minutes)
    now = now or timezone.now()

    with transaction.atomic():
        blood_request = lifecycle.lock_request(request_id)
        if not blood_request.confirmed_donors.filter(pk=donor.pk).exists():
            raise NotAssignedError("You are not assigned to this request.")
        if blood_request.status == BloodRequest.Status.CANCELLED:
            raise InvalidStateError("This request has been cancelled.")
        if DonationRecord.objects.filter(donor=donor, blood_request=blood_request).exists():
            raise AlreadyCompletedError("Donation already recorded for this request.")

        award = compute_tokens(blood_request.urgency, timezone.localtime(now).hour, latency)
        try:
            with transaction.atomic():
                record = DonationRecord.objects.create(
                    donor=donor,
                    blood_request=blood_request,
                    arrival_latency_minutes=latency,
                    tokens_awarded=award.total,
                    breakdown=award.as_dict(),
                    completed_at=now,
                )
        except IntegrityError:
            raise AlreadyCompletedError("Donation already recorded for this request.")

        profile = Profile.objects.select_for_update().get(user=donor)
        profile.donations += 1
        profile.tokens += award.total
        profile.save(update_fields=["donations", "tokens", "updated_at"])

        status = lifecycle.record_completion(blood_request)

        notify(
            blood_request.client,
            Notification.Kind.DONATION_COMPLETED,
            "Donation completed",
            f"{profile.name} completed a donation for your {blood_request.blood_type} request.",
            blood_request=blood_request,
            donor_id=donor.pk,
            status=status,
        )
        log_event(
            donor,
            "donation_completed",
            request_id=blood_request.pk,
            tokens=award.total,
            request_status=status,
        )

    logger.info("donor %s completed request %s: +%s tokens (total %s, %s)",
                donor.pk, blood_request.pk, award.total, profile.tokens, profile.title)
    return DonationResult(award.total, profile.tokens, profile.title, status, record)


def rewards_summary(donor) -> dict:
    profile = lifecycle.require_role(donor, Profile.Role.DONOR)
    progress = title_for(profile.donations)
    return {
        "donations": profile.donations,
        "tokens": profile.tokens,
        "title": profile.title,
        "nextTitle": progress.next_title,
        "progress": progress.progress_percent,
        "achievements": achievements_for(profile.donations),
        "rewards": rewards_for(profile.donations),
    }


def donation_history(donor):
    lifecycle.require_role(donor, Profile.Role.DONOR)
    return DonationRecord.objects.filter(donor=donor).select_related("blood_request").order_by("-completed_at", "-pk")
