from __future__ import annotations

import threading
import uuid
from datetime import date
from typing import Any

from ..recommendations.models import (
    Attendee,
    DailySelection,
    Favorite,
    Preference,
    Profile,
    Restaurant,
)
from .base import LunchStore


class MemoryStore(LunchStore):
    """In-process tables. Used for local development and the test suite.

    Sync endpoints run on a threadpool, so every table access holds the lock.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, Profile] = {}
        self._attendance: dict[tuple[str, date], Attendee] = {}
        self._preferences: list[Preference] = []
        self._restaurants: dict[str, Restaurant] = {}
        self._favorites: list[Favorite] = []
        self._selections: dict[date, DailySelection] = {}
        self._lock = threading.Lock()

    def create_profile(self, name: str) -> Profile:
        profile = Profile(id=str(uuid.uuid4()), name=name)
        with self._lock:
            self._profiles[profile.id] = profile
        return profile

    def get_profile(self, profile_id: str) -> Profile | None:
        with self._lock:
            return self._profiles.get(profile_id)

    def get_profiles(self, profile_ids: list[str]) -> list[Profile]:
        with self._lock:
            return [self._profiles[pid] for pid in profile_ids if pid in self._profiles]

    def upsert_attendance(self, attendee: Attendee) -> Attendee:
        with self._lock:
            self._attendance[(attendee.user_id, attendee.date)] = attendee.model_copy()
        return attendee

    def get_attendance(self, user_id: str, day: date) -> Attendee | None:
        with self._lock:
            row = self._attendance.get((user_id, day))
        return row.model_copy() if row else None

    def attending_user_ids(self, day: date) -> list[str]:
        with self._lock:
            return [
                a.user_id
                for (_, d), a in self._attendance.items()
                if d == day and a.is_attending
            ]

    def add_preferences(self, preferences: list[Preference]) -> None:
        with self._lock:
            self._preferences.extend(preferences)

    def get_preferences(self, user_ids: list[str]) -> list[Preference]:
        wanted = set(user_ids)
        with self._lock:
            return [p for p in self._preferences if p.user_id in wanted]

    def list_restaurants(self) -> list[Restaurant]:
        with self._lock:
            rows = [r.model_copy() for r in self._restaurants.values()]
        return sorted(rows, key=lambda r: r.name)

    def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        with self._lock:
            row = self._restaurants.get(restaurant_id)
        return row.model_copy() if row else None

    def get_restaurants(self, restaurant_ids: list[str]) -> list[Restaurant]:
        with self._lock:
            return [
                self._restaurants[rid].model_copy()
                for rid in dict.fromkeys(restaurant_ids)
                if rid in self._restaurants
            ]

    def upsert_restaurant(self, restaurant: Restaurant) -> Restaurant:
        with self._lock:
            self._restaurants[restaurant.id] = restaurant.model_copy()
        return restaurant

    def update_restaurant(self, restaurant_id: str, fields: dict[str, Any]) -> Restaurant | None:
        with self._lock:
            current = self._restaurants.get(restaurant_id)
            if current is None:
                return None
            updated = current.model_copy(update=fields)
            self._restaurants[restaurant_id] = updated
        return updated.model_copy()

    def add_favorite(self, user_id: str, restaurant_id: str) -> None:
        fav = Favorite(user_id=user_id, restaurant_id=restaurant_id)
        with self._lock:
            if fav not in self._favorites:
                self._favorites.append(fav)

    def remove_favorite(self, user_id: str, restaurant_id: str) -> None:
        with self._lock:
            self._favorites = [
                f for f in self._favorites
                if not (f.user_id == user_id and f.restaurant_id == restaurant_id)
            ]

    def get_favorites(self, user_ids: list[str]) -> list[Favorite]:
        wanted = set(user_ids)
        with self._lock:
            return [f for f in self._favorites if f.user_id in wanted]

    def get_selection(self, day: date) -> DailySelection | None:
        with self._lock:
            return self._selections.get(day)

    def upsert_selection(self, day: date, restaurant_id: str) -> DailySelection:
        selection = DailySelection(date=day, restaurant_id=restaurant_id)
        with self._lock:
            self._selections[day] = selection
        return selection

    def delete_selection(self, day: date) -> None:
        with self._lock:
            self._selections.pop(day, None)
