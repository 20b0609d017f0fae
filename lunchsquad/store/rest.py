"""
Hosted database backend.

Talks to the PostgREST endpoint of the hosted lunch database
(``{url}/rest/v1/<table>``). Upserts rely on the tables' unique keys via
``on_conflict`` plus ``Prefer: resolution=merge-duplicates``.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

import requests

from ..recommendations.models import (
    Attendee,
    DailySelection,
    Favorite,
    Preference,
    Profile,
    Restaurant,
)
from .base import LunchStore, StoreError

logger = logging.getLogger(__name__)

_RETURN_ROWS = "return=representation"
_MERGE = "resolution=merge-duplicates,return=representation"


def _eq(value: Any) -> str:
    return f"eq.{value}"


def _in(values: list[str]) -> str:
    return f"in.({','.join(values)})"


class RestStore(LunchStore):
    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not url or not key:
            raise StoreError("SUPABASE_URL and SUPABASE_KEY must be set for the rest store")
        self._base_url = url.rstrip("/") + "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        })

    def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        headers = {"Prefer": prefer} if prefer else {}
        try:
            response = self._session.request(
                method,
                f"{self._base_url}/{table}",
                params=params,
                json=json,
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            if not response.content:
                return []
            return response.json()
        except requests.RequestException as exc:
            logger.warning("Lunch database %s %s failed", method, table, exc_info=True)
            raise StoreError(f"Could not reach the lunch database ({table})") from exc

    # profiles

    def create_profile(self, name: str) -> Profile:
        rows = self._request(
            "POST", "profiles",
            json={"id": str(uuid.uuid4()), "name": name},
            prefer=_RETURN_ROWS,
        )
        return Profile(**rows[0])

    def get_profile(self, profile_id: str) -> Profile | None:
        rows = self._request("GET", "profiles", params={"select": "id,name", "id": _eq(profile_id)})
        return Profile(**rows[0]) if rows else None

    def get_profiles(self, profile_ids: list[str]) -> list[Profile]:
        if not profile_ids:
            return []
        rows = self._request("GET", "profiles", params={"select": "id,name", "id": _in(profile_ids)})
        by_id = {r["id"]: Profile(**r) for r in rows}
        return [by_id[pid] for pid in profile_ids if pid in by_id]

    # daily_attendance

    def upsert_attendance(self, attendee: Attendee) -> Attendee:
        rows = self._request(
            "POST", "daily_attendance",
            params={"on_conflict": "user_id,date"},
            json=attendee.model_dump(mode="json"),
            prefer=_MERGE,
        )
        return Attendee(**rows[0]) if rows else attendee

    def get_attendance(self, user_id: str, day: date) -> Attendee | None:
        rows = self._request("GET", "daily_attendance", params={
            "select": "user_id,date,is_attending,has_rated",
            "user_id": _eq(user_id),
            "date": _eq(day.isoformat()),
        })
        if not rows:
            return None
        row = rows[0]
        return Attendee(
            user_id=row["user_id"],
            date=row["date"],
            is_attending=bool(row.get("is_attending")),
            has_rated=bool(row.get("has_rated")),
        )

    def attending_user_ids(self, day: date) -> list[str]:
        rows = self._request("GET", "daily_attendance", params={
            "select": "user_id",
            "date": _eq(day.isoformat()),
            "is_attending": "is.true",
            "order": "created_at.asc",
        })
        return [r["user_id"] for r in rows]

    # user_preferences

    def add_preferences(self, preferences: list[Preference]) -> None:
        if not preferences:
            return
        self._request(
            "POST", "user_preferences",
            json=[p.model_dump(mode="json") for p in preferences],
        )

    def get_preferences(self, user_ids: list[str]) -> list[Preference]:
        if not user_ids:
            return []
        rows = self._request("GET", "user_preferences", params={
            "select": "user_id,preference_type,preference_value",
            "user_id": _in(user_ids),
        })
        return [Preference(**r) for r in rows]

    # restaurants

    @staticmethod
    def _restaurant(row: dict[str, Any]) -> Restaurant:
        row = dict(row)
        row["cuisine_types"] = row.get("cuisine_types") or []
        row["dietary_restrictions"] = row.get("dietary_restrictions") or []
        return Restaurant(**row)

    _RESTAURANT_COLUMNS = "id,name,description,cuisine_types,dietary_restrictions,rating,image_url"

    def list_restaurants(self) -> list[Restaurant]:
        rows = self._request("GET", "restaurants", params={
            "select": self._RESTAURANT_COLUMNS,
            "order": "name.asc",
        })
        return [self._restaurant(r) for r in rows]

    def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        rows = self._request("GET", "restaurants", params={
            "select": self._RESTAURANT_COLUMNS,
            "id": _eq(restaurant_id),
        })
        return self._restaurant(rows[0]) if rows else None

    def get_restaurants(self, restaurant_ids: list[str]) -> list[Restaurant]:
        ids = list(dict.fromkeys(restaurant_ids))
        if not ids:
            return []
        rows = self._request("GET", "restaurants", params={
            "select": self._RESTAURANT_COLUMNS,
            "id": _in(ids),
        })
        by_id = {r["id"]: self._restaurant(r) for r in rows}
        return [by_id[rid] for rid in ids if rid in by_id]

    def upsert_restaurant(self, restaurant: Restaurant) -> Restaurant:
        rows = self._request(
            "POST", "restaurants",
            params={"on_conflict": "id"},
            json=restaurant.model_dump(mode="json"),
            prefer=_MERGE,
        )
        return self._restaurant(rows[0]) if rows else restaurant

    def update_restaurant(self, restaurant_id: str, fields: dict[str, Any]) -> Restaurant | None:
        rows = self._request(
            "PATCH", "restaurants",
            params={"id": _eq(restaurant_id)},
            json=fields,
            prefer=_RETURN_ROWS,
        )
        return self._restaurant(rows[0]) if rows else None

    # user_favorites

    def add_favorite(self, user_id: str, restaurant_id: str) -> None:
        self._request(
            "POST", "user_favorites",
            params={"on_conflict": "user_id,restaurant_id"},
            json={"user_id": user_id, "restaurant_id": restaurant_id},
            prefer="resolution=ignore-duplicates",
        )

    def remove_favorite(self, user_id: str, restaurant_id: str) -> None:
        self._request("DELETE", "user_favorites", params={
            "user_id": _eq(user_id),
            "restaurant_id": _eq(restaurant_id),
        })

    def get_favorites(self, user_ids: list[str]) -> list[Favorite]:
        if not user_ids:
            return []
        rows = self._request("GET", "user_favorites", params={
            "select": "user_id,restaurant_id",
            "user_id": _in(user_ids),
            "order": "created_at.asc",
        })
        return [Favorite(**r) for r in rows]

    # daily_restaurant_selection

    def get_selection(self, day: date) -> DailySelection | None:
        rows = self._request("GET", "daily_restaurant_selection", params={
            "select": "date,restaurant_id",
            "date": _eq(day.isoformat()),
        })
        return DailySelection(**rows[0]) if rows else None

    def upsert_selection(self, day: date, restaurant_id: str) -> DailySelection:
        selection = DailySelection(date=day, restaurant_id=restaurant_id)
        self._request(
            "POST", "daily_restaurant_selection",
            params={"on_conflict": "date"},
            json=selection.model_dump(mode="json"),
            prefer=_MERGE,
        )
        return selection

    def delete_selection(self, day: date) -> None:
        self._request("DELETE", "daily_restaurant_selection", params={"date": _eq(day.isoformat())})
