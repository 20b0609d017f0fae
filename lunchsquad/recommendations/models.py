from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

CUISINE_TYPES: tuple[str, ...] = (
    "italian",
    "chinese",
    "japanese",
    "mexican",
    "indian",
    "american",
    "mediterranean",
)

DIETARY_RESTRICTIONS: tuple[str, ...] = (
    "vegetarian",
    "vegan",
    "halal",
    "kosher",
    "gluten_free",
)


def _normalize_values(values: list[str]) -> list[str]:
    """Trim, lower-case and de-duplicate while keeping first-seen order."""
    seen: list[str] = []
    for v in values:
        v = v.strip().lower()
        if v and v not in seen:
            seen.append(v)
    return seen


def _check_vocabulary(values: list[str], allowed: tuple[str, ...], label: str) -> list[str]:
    values = _normalize_values(values)
    unknown = [v for v in values if v not in allowed]
    if unknown:
        raise ValueError(f"Unknown {label}: {', '.join(unknown)}")
    return values


# ── Stored rows ──────────────────────────────────────────────────────────


class Profile(BaseModel):
    id: str
    name: str


class Attendee(BaseModel):
    user_id: str
    date: dt.date
    is_attending: bool = False
    has_rated: bool = False


class PreferenceType(str, Enum):
    cuisine = "cuisine"
    dietary = "dietary"


class Preference(BaseModel):
    user_id: str
    preference_type: PreferenceType
    preference_value: str


class Restaurant(BaseModel):
    id: str
    name: str
    description: str | None = None
    cuisine_types: list[str] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    rating: float | None = None
    image_url: str | None = None


class Favorite(BaseModel):
    user_id: str
    restaurant_id: str


class DailySelection(BaseModel):
    date: dt.date
    restaurant_id: str


class LunchContext(BaseModel):
    """Who is acting. Built from the session and passed to every operation."""

    model_config = ConfigDict(frozen=True)

    profile_id: str
    name: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# ── Request bodies ───────────────────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter your name")
        return v


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1)


class PreferencesRequest(BaseModel):
    cuisines: list[str] = Field(..., min_length=1, description="At least one cuisine type")
    dietary: list[str] = Field(default_factory=list)

    @field_validator("cuisines")
    @classmethod
    def _known_cuisines(cls, v: list[str]) -> list[str]:
        v = _check_vocabulary(v, CUISINE_TYPES, "cuisine")
        if not v:
            raise ValueError("Please select at least one cuisine type")
        return v

    @field_validator("dietary")
    @classmethod
    def _known_dietary(cls, v: list[str]) -> list[str]:
        return _check_vocabulary(v, DIETARY_RESTRICTIONS, "dietary restriction")


class RestaurantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    cuisine_types: list[str] | None = None
    dietary_restrictions: list[str] | None = None

    @field_validator("cuisine_types")
    @classmethod
    def _clean_cuisines(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_values(v) if v is not None else None

    @field_validator("dietary_restrictions")
    @classmethod
    def _known_dietary(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return _check_vocabulary(v, DIETARY_RESTRICTIONS, "dietary restriction")


class AttendanceRequest(BaseModel):
    attending: bool
    date: dt.date | None = None


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    date: dt.date | None = None


# ── Responses ────────────────────────────────────────────────────────────


class ResolutionStatus(str, Enum):
    selected = "selected"
    no_attendees = "no_attendees"
    no_match = "no_match"


class Resolution(BaseModel):
    status: ResolutionStatus
    date: dt.date
    restaurant: Restaurant | None = None
    score: float | None = None
    match_percent: int | None = None
    attendee_count: int = 0
    reused: bool = False


class AttendanceView(BaseModel):
    date: dt.date
    attending: bool
    has_rated: bool = False
    attendees: list[str]


class OnboardingStatus(BaseModel):
    next_step: str


class RatingResponse(BaseModel):
    restaurant_id: str
    rating: float
