# raktsetu/views.py
import json
import logging
from functools import wraps

from django.contrib.auth import login as auth_login, logout as auth_logout
from django.db import InterfaceError, OperationalError
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone

from . import lifecycle, rewards
from .audit import log_event
from .exceptions import NotFoundError, RaktsetuError, TransientError, ValidationError
from .exports import EXPORT_FORMATS, export_history
from .forms import DonorDetailsForm, LoginForm, SignupForm, errors_to_wire, from_wire
from .models import Notification, Profile

logger = logging.getLogger(__name__)


# ------------------------ helpers ------------------------
def _json_body(request):
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (TypeError, ValueError):
        raise ValidationError("Malformed JSON body.")
    if not isinstance(payload, dict):
        raise ValidationError("JSON body must be an object.")
    return payload


def _request_payload(blood_request):
    return blood_request.to_dict(compatible=getattr(blood_request, "compatible", None))


def _error_response(exc):
    return JsonResponse(exc.to_dict(), status=exc.status_code)


# ------------------------ guard ------------------------
def api_view(methods, role=None, public=False):
    """
    JSON endpoint guard: allowed methods, authentication, optional role, and
    translation of domain/persistence errors to {"error": kind, "message": ...}.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if request.method not in methods:
                resp = JsonResponse({"error": "method_not_allowed",
                                     "message": f"Use {', '.join(methods)}."}, status=405)
                resp["Allow"] = ", ".join(methods)
                return resp
            if not public and not request.user.is_authenticated:
                return JsonResponse({"error": "auth_required", "message": "Not authorized, no session"}, status=401)
            try:
                if role is not None:
                    lifecycle.require_role(request.user, role)
                return view_func(request, *args, **kwargs)
            except RaktsetuError as exc:
                logger.warning("%s %s rejected: %s (%s)", request.method, request.path, exc.kind, exc.message)
                return _error_response(exc)
            except (OperationalError, InterfaceError):
                logger.exception("%s %s failed on the database", request.method, request.path)
                return _error_response(TransientError("Temporary storage failure, please retry."))
        return _wrapped
    return decorator


# ------------------------ auth ------------------------
@csrf_exempt
@api_view(["POST"], public=True)
def signup(request):
    form = SignupForm(from_wire(_json_body(request)))
    if not form.is_valid():
        raise ValidationError("Validation Error", errors=errors_to_wire(form))
    user = form.save()
    auth_login(request, user)
    log_event(user, "signup")
    logger.info("user %s signed up as %s", user.pk, user.profile.role)
    return JsonResponse({"user": user.profile.to_dict(), "role": user.profile.role,
                         "csrfToken": get_token(request)}, status=201)


@csrf_exempt
@api_view(["POST"], public=True)
def login(request):
    body = _json_body(request)
    form = LoginForm(request, data={"username": body.get("phoneNumber"), "password": body.get("password")})
    if not form.is_valid():
        raise ValidationError("Invalid credentials")
    user = form.get_user()
    auth_login(request, user)
    log_event(user, "login")
    return JsonResponse({"user": lifecycle.get_profile(user).to_dict(), "role": user.profile.role,
                         "csrfToken": get_token(request)})


@api_view(["POST"])
def logout(request):
    log_event(request.user, "logout")
    auth_logout(request)
    return JsonResponse({"message": "Signed out."})


# ------------------------ profile ------------------------
@api_view(["GET"])
def me(request):
    return JsonResponse(lifecycle.get_profile(request.user).to_dict())


@api_view(["GET", "PUT"], role=Profile.Role.DONOR)
def donor_details(request):
    profile = request.user.profile
    if request.method == "PUT":
        form = DonorDetailsForm(from_wire(_json_body(request)))
        if not form.is_valid():
            raise ValidationError("Validation Error", errors=errors_to_wire(form))
        form.save(profile)
        logger.info("donor %s submitted details (%s)", request.user.pk, profile.blood_group)
        return JsonResponse({"message": "Donor details updated successfully.", "user": profile.to_dict()})

    data = profile.to_dict()
    return JsonResponse({k: data[k] for k in ("age", "weight", "bloodGroup", "healthInfo", "detailsSubmitted")})


# ------------------------ blood requests ------------------------
@api_view(["GET", "POST"])
def blood_requests(request):
    if request.method == "POST":
        blood_request = lifecycle.create_request(request.user, from_wire(_json_body(request)))
        return JsonResponse(_request_payload(blood_request), status=201)

    items = lifecycle.list_requests_for(request.user)
    return JsonResponse([_request_payload(r) for r in items], safe=False)


@api_view(["GET"])
def blood_request_detail(request, pk: int):
    return JsonResponse(_request_payload(lifecycle.get_request(request.user, pk)))


@api_view(["POST"], role=Profile.Role.DONOR)
def blood_request_accept(request, pk: int):
    blood_request = lifecycle.accept_request(request.user, pk)
    return JsonResponse({"message": "Request accepted successfully.", "request": _request_payload(blood_request)})


@api_view(["POST"], role=Profile.Role.DONOR)
def blood_request_arrived(request, pk: int):
    lifecycle.mark_arrived(request.user, pk)
    return JsonResponse({"message": "Arrival notification sent.", "requestId": pk})


@api_view(["PUT"], role=Profile.Role.CLIENT)
def blood_request_cancel(request, pk: int):
    blood_request = lifecycle.cancel_request(request.user, pk)
    return JsonResponse({"message": "Request cancelled.", "id": blood_request.pk, "status": blood_request.status})


# ------------------------ donations ------------------------
@api_view(["POST"], role=Profile.Role.DONOR)
def donation_complete(request, request_id: int):
    body = _json_body(request)
    result = rewards.complete_donation(request.user, request_id, body.get("arrivalTime"))
    return JsonResponse({
        "message": "Donation recorded successfully!",
        "tokensAwarded": result.tokens_awarded,
        "totalTokens": result.total_tokens,
        "title": result.title,
        "requestStatus": result.request_status,
    })


@api_view(["GET"], role=Profile.Role.DONOR)
def donation_rewards(request):
    return JsonResponse(rewards.rewards_summary(request.user))


@api_view(["GET"], role=Profile.Role.DONOR)
def donation_history(request):
    records = rewards.donation_history(request.user)
    return JsonResponse([r.to_dict() for r in records], safe=False)


@api_view(["GET"], role=Profile.Role.DONOR)
def donation_history_export(request):
    fmt = request.GET.get("format", "csv").strip().lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f"Unsupported export format: {fmt}",
                              errors={"format": [f"Choose one of {', '.join(EXPORT_FORMATS)}."]})
    return export_history(request.user.profile, rewards.donation_history(request.user), fmt)


# ------------------------ notifications ------------------------
@api_view(["GET"])
def notifications_list(request):
    qs = Notification.objects.filter(recipient=request.user)
    if request.GET.get("unread") in ("1", "true"):
        qs = qs.filter(read_at__isnull=True)
    return JsonResponse([n.to_dict() for n in qs[:100]], safe=False)


@api_view(["POST"])
def notification_read(request, pk: int):
    note = Notification.objects.filter(recipient=request.user, pk=pk).first()
    if note is None:
        raise NotFoundError("Notification not found.")
    if note.read_at is None:
        note.read_at = timezone.now()
        note.save(update_fields=["read_at"])
    return JsonResponse(note.to_dict())
