# raktsetu/forms.py
from django import forms
from django.contrib.auth.forms import AuthenticationForm
from django.contrib.auth.models import User
from django.core.validators import RegexValidator
from django.db import transaction
from django.utils import timezone

from .models import BLOOD_TYPES, BloodRequest, Profile

# ---------------- Wire <-> form field names ----------------
WIRE_FIELDS = {
    "bloodType": "blood_type",
    "hospitalName": "hospital_name",
    "locationDetails": "location_details",
    "timeLimit": "time_limit",
    "urgency": "urgency",
    "additionalInfo": "additional_info",
    "name": "name",
    "phoneNumber": "phone_number",
    "password": "password",
    "role": "role",
    "age": "age",
    "weight": "weight",
    "bloodGroup": "blood_group",
    "healthInfo": "health_info",
}
FORM_TO_WIRE = {v: k for k, v in WIRE_FIELDS.items()}


def from_wire(payload):
    """Rename camelCase request keys to form field names; unknown keys are dropped."""
    return {WIRE_FIELDS[k]: v for k, v in (payload or {}).items() if k in WIRE_FIELDS}


def errors_to_wire(form):
    """Form errors keyed by the camelCase names the client sent."""
    return {
        FORM_TO_WIRE.get(field, field): [e["message"] for e in errs]
        for field, errs in form.errors.get_json_data().items()
    }


# ---------------- Validators ----------------
phone_validator = RegexValidator(regex=r"^\+?\d{7,15}$",
                                 message="Phone number must be 7 to 15 digits, optionally prefixed with +.")
name_validator = RegexValidator(regex=r"^[^\W\d_][\w\s'.\-]{1,}$",
                                message="Name may contain letters, spaces, apostrophes, dots, and hyphens only.")


class HealthInfoField(forms.JSONField):
    """A non-empty list of short strings, e.g. ["none"] or ["asthma", "on medication"]."""

    def validate(self, value):
        super().validate(value)
        if value in self.empty_values:
            return
        if not isinstance(value, list) or not value:
            raise forms.ValidationError("Health info must be a non-empty array.")
        if not all(isinstance(item, str) and item.strip() for item in value):
            raise forms.ValidationError("Health info entries must be non-empty strings.")


class DonorDetailsFields(forms.Form):
    """Shared donor fields; optional at signup, required on the details form."""
    age = forms.IntegerField(min_value=18, max_value=65, required=False)
    weight = forms.FloatField(min_value=45, required=False)
    blood_group = forms.ChoiceField(choices=BLOOD_TYPES, required=False)
    health_info = HealthInfoField(required=False)


# ==================== Auth forms ====================
class SignupForm(DonorDetailsFields):
    name = forms.CharField(max_length=120, validators=[name_validator])
    phone_number = forms.CharField(max_length=20, validators=[phone_validator])
    password = forms.CharField(min_length=6, strip=False)
    role = forms.ChoiceField(choices=Profile.Role.choices)

    def clean_phone_number(self):
        phone = (self.cleaned_data.get("phone_number") or "").strip()
        if User.objects.filter(username=phone).exists() or Profile.objects.filter(phone_number=phone).exists():
            raise forms.ValidationError("User already exists")
        return phone

    @transaction.atomic
    def save(self):
        data = self.cleaned_data
        role = data["role"]
        user = User.objects.create_user(username=data["phone_number"], password=data["password"])
        donor = role == Profile.Role.DONOR
        Profile.objects.create(
            user=user,
            role=role,
            name=data["name"].strip(),
            phone_number=data["phone_number"],
            age=data.get("age") if donor else None,
            weight=data.get("weight") if donor else None,
            blood_group=(data.get("blood_group") or "") if donor else "",
            health_info=(data.get("health_info") or []) if donor else [],
        )
        return user


class LoginForm(AuthenticationForm):
    username = forms.CharField(label="Phone number")
    password = forms.CharField(label="Password", strip=False)


# --------- Donor details ----------
class DonorDetailsForm(DonorDetailsFields):
    age = forms.IntegerField(min_value=18, max_value=65)
    weight = forms.FloatField(min_value=45)
    blood_group = forms.ChoiceField(choices=BLOOD_TYPES)
    health_info = HealthInfoField()

    def save(self, profile):
        for field in ("age", "weight", "blood_group", "health_info"):
            setattr(profile, field, self.cleaned_data[field])
        profile.details_submitted = True
        profile.save(update_fields=["age", "weight", "blood_group", "health_info",
                                    "details_submitted", "updated_at"])
        return profile


# ==================== Domain forms ====================
class BloodRequestForm(forms.ModelForm):
    class Meta:
        model = BloodRequest
        fields = ["blood_type", "hospital_name", "location_details", "time_limit", "urgency", "additional_info"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # urgency has a model default but callers must choose one explicitly
        self.fields["urgency"].required = True

    def clean_hospital_name(self):
        val = (self.cleaned_data.get("hospital_name") or "").strip()
        if not val:
            raise forms.ValidationError("This field is required.")
        return val

    def clean_location_details(self):
        val = (self.cleaned_data.get("location_details") or "").strip()
        if not val:
            raise forms.ValidationError("This field is required.")
        return val

    def clean_time_limit(self):
        deadline = self.cleaned_data["time_limit"]
        if deadline <= timezone.now():
            raise forms.ValidationError("Time limit must be in the future.")
        return deadline
