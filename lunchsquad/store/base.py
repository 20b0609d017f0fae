from __future__ import annotations

from abc import ABC, abstractmethod
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


class StoreError(Exception):
    """The lunch database could not complete a read or write."""


class LunchStore(ABC):
    """Every table the service reads or writes.

    Each write is a single insert, upsert or delete so a failed call never
    leaves partial state behind.
    """

    # profiles

    @abstractmethod
    def create_profile(self, name: str) -> Profile: ...

    @abstractmethod
    def get_profile(self, profile_id: str) -> Profile | None: ...

    @abstractmethod
    def get_profiles(self, profile_ids: list[str]) -> list[Profile]: ...

    # daily_attendance

    @abstractmethod
    def upsert_attendance(self, attendee: Attendee) -> Attendee: ...

    @abstractmethod
    def get_attendance(self, user_id: str, day: date) -> Attendee | None: ...

    @abstractmethod
    def attending_user_ids(self, day: date) -> list[str]: ...

    # user_preferences

    @abstractmethod
    def add_preferences(self, preferences: list[Preference]) -> None: ...

    @abstractmethod
    def get_preferences(self, user_ids: list[str]) -> list[Preference]: ...

    # restaurants

    @abstractmethod
    def list_restaurants(self) -> list[Restaurant]:
        """All restaurants ordered by name."""

    @abstractmethod
    def get_restaurant(self, restaurant_id: str) -> Restaurant | None: ...

    @abstractmethod
    def get_restaurants(self, restaurant_ids: list[str]) -> list[Restaurant]: ...

    @abstractmethod
    def upsert_restaurant(self, restaurant: Restaurant) -> Restaurant: ...

    @abstractmethod
    def update_restaurant(self, restaurant_id: str, fields: dict[str, Any]) -> Restaurant | None: ...

    # user_favorites

    @abstractmethod
    def add_favorite(self, user_id: str, restaurant_id: str) -> None: ...

    @abstractmethod
    def remove_favorite(self, user_id: str, restaurant_id: str) -> None: ...

    @abstractmethod
    def get_favorites(self, user_ids: list[str]) -> list[Favorite]:
        """Favorites of the given users in insertion order."""

    # daily_restaurant_selection

    @abstractmethod
    def get_selection(self, day: date) -> DailySelection | None: ...

    @abstractmethod
    def upsert_selection(self, day: date, restaurant_id: str) -> DailySelection: ...

    @abstractmethod
    def delete_selection(self, day: date) -> None: ...
