# raktsetu/compat.py

BLOOD_TYPES = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]

# Red-cell compatibility. Key: requested (recipient) type, value: donor types
# that can supply it, in order of preference (exact match first, O- last).
DONORS_BY_RECIPIENT = {
    "O-":  ["O-"],
    "O+":  ["O+", "O-"],
    "A-":  ["A-", "O-"],
    "A+":  ["A+", "A-", "O+", "O-"],
    "B-":  ["B-", "O-"],
    "B+":  ["B+", "B-", "O+", "O-"],
    "AB-": ["AB-", "A-", "B-", "O-"],
    "AB+": ["AB+", "AB-", "A+", "A-", "B+", "B-", "O+", "O-"],
}

# Inverse view: donor type -> recipient types it can give to.
RECIPIENTS_BY_DONOR = {
    donor_type: [r for r in BLOOD_TYPES if donor_type in DONORS_BY_RECIPIENT[r]]
    for donor_type in BLOOD_TYPES
}


def _check(blood_type: str) -> str:
    if blood_type not in DONORS_BY_RECIPIENT:
        raise ValueError(f"Unknown blood type: {blood_type!r}")
    return blood_type


def is_compatible(donor_type: str, requested_type: str) -> bool:
    """
    True when a donor of `donor_type` can give to a request for `requested_type`.
    Total over the eight ABO/Rh types; anything else raises ValueError.
    """
    return _check(donor_type) in DONORS_BY_RECIPIENT[_check(requested_type)]


def compatible_donor_types(requested_type: str) -> list[str]:
    """Donor types able to supply `requested_type`, by preference."""
    return list(DONORS_BY_RECIPIENT[_check(requested_type)])


def recipient_types(donor_type: str) -> list[str]:
    return list(RECIPIENTS_BY_DONOR[_check(donor_type)])
