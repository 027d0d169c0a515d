# raktsetu/titles.py
"""
Donor title progression.

Everything here is a pure function of the cumulative donation count, so the
same rules back the stored `Profile.title`, the rewards endpoint and the
token award response.
"""
from typing import NamedTuple, Optional

NEW_HERO = "New Hero"
RISING_HERO = "Rising Hero"
EXPERIENCED_HERO = "Experienced Hero"
LEGENDARY = "Legendary Life Saver"

# (lower bound inclusive, title); the next band's bound is the upper bound.
TITLE_BANDS = [
    (0, NEW_HERO),
    (5, RISING_HERO),
    (10, EXPERIENCED_HERO),
    (20, LEGENDARY),
]


class TitleProgress(NamedTuple):
    title: str
    next_title: Optional[str]
    progress_percent: float


def title_for(donations: int) -> TitleProgress:
    """
    Title, next title and percentage progress through the current band.
    The last band has no next title and always reports 100.
    """
    if donations < 0:
        raise ValueError("donations cannot be negative")

    for idx, (lower, title) in enumerate(TITLE_BANDS):
        if idx + 1 == len(TITLE_BANDS):
            return TitleProgress(title, None, 100.0)
        upper, next_title = TITLE_BANDS[idx + 1]
        if donations < upper:
            progress = (donations - lower) / (upper - lower) * 100
            return TitleProgress(title, next_title, progress)
    raise AssertionError("unreachable")


# -------------------- Unlock predicates --------------------
def first_drop_unlocked(donations: int) -> bool:
    return donations >= 1


def regular_hero_unlocked(donations: int) -> bool:
    return donations >= 5


def dedicated_hero_unlocked(donations: int) -> bool:
    return donations >= 10


def legendary_status_unlocked(donations: int) -> bool:
    return donations >= 20


ACHIEVEMENTS = [
    {"id": "first_donation", "name": "First Drop",
     "description": "Complete your first donation", "unlocked_by": first_drop_unlocked},
    {"id": "five_donations", "name": "Regular Hero",
     "description": "Complete 5 donations", "unlocked_by": regular_hero_unlocked},
    {"id": "ten_donations", "name": "Dedicated Hero",
     "description": "Complete 10 donations", "unlocked_by": dedicated_hero_unlocked},
    {"id": "twenty_donations", "name": "Legendary Status",
     "description": "Complete 20 donations", "unlocked_by": legendary_status_unlocked},
]

REWARD_CATALOG = [
    {"id": "certificate_1", "name": "Rookie Donor Certificate", "type": "certificate",
     "description": "For completing your first donation", "unlocked_by": first_drop_unlocked},
    {"id": "tshirt_1", "name": "Hero T-Shirt", "type": "tshirt",
     "description": "Unlock after 5 donations", "unlocked_by": regular_hero_unlocked,
     "comingSoon": True},
    {"id": "certificate_2", "name": "Experienced Donor Certificate", "type": "certificate",
     "description": "For completing 10 donations", "unlocked_by": dedicated_hero_unlocked},
    {"id": "tshirt_2", "name": "Legendary Hero T-Shirt", "type": "tshirt",
     "description": "Unlock after 20 donations", "unlocked_by": legendary_status_unlocked,
     "comingSoon": True},
]


def _evaluate(catalog, donations):
    rows = []
    for entry in catalog:
        row = {k: v for k, v in entry.items() if k != "unlocked_by"}
        row["unlocked"] = entry["unlocked_by"](donations)
        rows.append(row)
    return rows


def achievements_for(donations: int) -> list[dict]:
    return _evaluate(ACHIEVEMENTS, donations)


def rewards_for(donations: int) -> list[dict]:
    return _evaluate(REWARD_CATALOG, donations)
