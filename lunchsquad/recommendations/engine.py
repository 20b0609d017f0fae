"""
Daily recommendation engine.

Resolves the group's restaurant for a day key and applies the operations
that change it. Once a selection is stored for a date every viewer gets
that restaurant back until someone reshuffles.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import date

from ..analytics.activity import record_event
from ..realtime.feed import AttendanceFeed
from ..store.base import LunchStore
from .models import (
    Attendee,
    LunchContext,
    Preference,
    PreferenceType,
    Resolution,
    ResolutionStatus,
    Restaurant,
)

logger = logging.getLogger(__name__)


@dataclass
class _UserPreferences:
    cuisine: set[str] = field(default_factory=set)
    dietary: set[str] = field(default_factory=set)


@dataclass
class _Candidate:
    restaurant: Restaurant
    favorite_count: int = 0


def score_candidate(favorite_count: int, attendee_count: int, rating: float | None) -> float:
    """Share of attendees who favorited it (0-100) plus ten points per rating star."""
    return (favorite_count / attendee_count) * 100 + (rating or 0.0) * 10


def match_percent(score: float, attendee_count: int) -> int:
    return round(score / (attendee_count * 100 + 50) * 100)


def _partition_preferences(
    preferences: list[Preference], user_ids: list[str],
) -> dict[str, _UserPreferences]:
    by_user = {uid: _UserPreferences() for uid in user_ids}
    for p in preferences:
        prefs = by_user.get(p.user_id)
        if prefs is None:
            continue
        value = p.preference_value.strip().lower()
        if p.preference_type == PreferenceType.cuisine:
            prefs.cuisine.add(value)
        else:
            prefs.dietary.add(value)
    return by_user


def _satisfies_everyone(restaurant: Restaurant, preferences: dict[str, _UserPreferences]) -> bool:
    """Hard filter: each attendee's non-empty preference set must intersect the restaurant's."""
    cuisines = {c.lower() for c in restaurant.cuisine_types}
    dietary = {d.lower() for d in restaurant.dietary_restrictions}
    for prefs in preferences.values():
        if prefs.dietary and not prefs.dietary & dietary:
            return False
        if prefs.cuisine and not prefs.cuisine & cuisines:
            return False
    return True


def _favorite_restaurants(store: LunchStore, user_ids: list[str]) -> list[_Candidate]:
    """Attendees' favorites collapsed by id, in first-seen order, with counts."""
    favorites = store.get_favorites(user_ids)
    restaurants = {r.id: r for r in store.get_restaurants([f.restaurant_id for f in favorites])}

    candidates: dict[str, _Candidate] = {}
    counted: set[tuple[str, str]] = set()
    for fav in favorites:
        restaurant = restaurants.get(fav.restaurant_id)
        if restaurant is None:
            continue
        candidate = candidates.setdefault(restaurant.id, _Candidate(restaurant))
        # A user favoriting the same place twice still counts once
        if (fav.user_id, restaurant.id) not in counted:
            counted.add((fav.user_id, restaurant.id))
            candidate.favorite_count += 1
    return list(candidates.values())


def _record_resolution(resolution: Resolution, start_time: float, event_type: str = "resolve") -> None:
    record_event(event_type, {
        "date": resolution.date.isoformat(),
        "status": resolution.status.value,
        "reused": resolution.reused,
        "attendee_count": resolution.attendee_count,
        "restaurant_name": resolution.restaurant.name if resolution.restaurant else None,
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })


def resolve(store: LunchStore, day: date) -> Resolution:
    """Return the day's restaurant, computing and storing it if needed."""
    start_time = time.time()

    # --- Stored selection short-circuits everything ---
    selection = store.get_selection(day)
    if selection is not None:
        restaurant = store.get_restaurant(selection.restaurant_id)
        if restaurant is not None:
            resolution = Resolution(
                status=ResolutionStatus.selected,
                date=day,
                restaurant=restaurant,
                attendee_count=len(store.attending_user_ids(day)),
                reused=True,
            )
            _record_resolution(resolution, start_time)
            return resolution
        logger.warning(
            "Selection for %s points at missing restaurant %s, recomputing",
            day, selection.restaurant_id,
        )

    user_ids = store.attending_user_ids(day)
    if not user_ids:
        resolution = Resolution(status=ResolutionStatus.no_attendees, date=day)
        _record_resolution(resolution, start_time)
        return resolution

    attendee_count = len(user_ids)
    preferences = _partition_preferences(store.get_preferences(user_ids), user_ids)

    # --- Hard filter ---
    candidates = [
        c for c in _favorite_restaurants(store, user_ids)
        if _satisfies_everyone(c.restaurant, preferences)
    ]
    if not candidates:
        resolution = Resolution(
            status=ResolutionStatus.no_match, date=day, attendee_count=attendee_count,
        )
        _record_resolution(resolution, start_time)
        return resolution

    # --- Scoring ---
    # max() keeps the first of equal scores, so ties go to the first-seen favorite
    scored = [
        (score_candidate(c.favorite_count, attendee_count, c.restaurant.rating), c)
        for c in candidates
    ]
    best_score, best = max(scored, key=lambda item: item[0])

    store.upsert_selection(day, best.restaurant.id)
    logger.info(
        "Selected %s for %s (score %.1f, %d attendees)",
        best.restaurant.name, day, best_score, attendee_count,
    )

    resolution = Resolution(
        status=ResolutionStatus.selected,
        date=day,
        restaurant=best.restaurant,
        score=round(best_score, 2),
        match_percent=match_percent(best_score, attendee_count),
        attendee_count=attendee_count,
    )
    _record_resolution(resolution, start_time)
    return resolution


def reshuffle(store: LunchStore, day: date) -> Resolution:
    """Drop the day's selection and resolve again from scratch."""
    store.delete_selection(day)
    record_event("reshuffle", {"date": day.isoformat()})
    return resolve(store, day)


def choose_random(
    store: LunchStore, day: date, rng: random.Random | None = None,
) -> Resolution:
    """Pick any attendee favorite, ignoring preferences, and lock it in."""
    start_time = time.time()
    user_ids = store.attending_user_ids(day)
    if not user_ids:
        return Resolution(status=ResolutionStatus.no_attendees, date=day)

    candidates = _favorite_restaurants(store, user_ids)
    if not candidates:
        return Resolution(
            status=ResolutionStatus.no_match, date=day, attendee_count=len(user_ids),
        )

    picked = (rng or random).choice(candidates).restaurant
    store.upsert_selection(day, picked.id)
    logger.info("Random pick for %s: %s", day, picked.name)

    resolution = Resolution(
        status=ResolutionStatus.selected,
        date=day,
        restaurant=picked,
        attendee_count=len(user_ids),
    )
    _record_resolution(resolution, start_time, event_type="random_pick")
    return resolution


def toggle_attendance(
    store: LunchStore,
    context: LunchContext,
    day: date,
    attending: bool,
    feed: AttendanceFeed | None = None,
) -> Attendee:
    """Upsert the caller's attendance and notify viewers of *day*.

    The selection is not recomputed here; viewers re-resolve when notified.
    """
    current = store.get_attendance(context.profile_id, day)
    attendee = store.upsert_attendance(Attendee(
        user_id=context.profile_id,
        date=day,
        is_attending=attending,
        has_rated=current.has_rated if current else False,
    ))
    record_event("attendance", {"date": day.isoformat(), "is_attending": attending})

    if feed is not None:
        feed.publish(day, {
            "type": "attendance",
            "date": day.isoformat(),
            "user_id": context.profile_id,
            "is_attending": attending,
        })
    return attendee


def rate(
    store: LunchStore,
    context: LunchContext,
    restaurant_id: str,
    rating: int,
    day: date,
) -> Restaurant | None:
    """Fold a 1-5 rating into the restaurant as ``(old + new) / 2``.

    Two writes: the rating first, then the caller's ``has_rated`` flag. A
    failure on the second leaves the rating applied and the flag unset.
    Returns ``None`` when the restaurant does not exist.
    """
    if not 1 <= rating <= 5:
        raise ValueError("rating must be between 1 and 5")

    restaurant = store.get_restaurant(restaurant_id)
    if restaurant is None:
        return None

    new_rating = ((restaurant.rating or 0.0) + rating) / 2
    updated = store.update_restaurant(restaurant_id, {"rating": new_rating})

    attendance = store.get_attendance(context.profile_id, day)
    if attendance is not None and not attendance.has_rated:
        store.upsert_attendance(attendance.model_copy(update={"has_rated": True}))

    record_event("rating", {
        "date": day.isoformat(),
        "restaurant_name": restaurant.name,
        "rating": rating,
    })
    return updated
