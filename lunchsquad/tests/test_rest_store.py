from __future__ import annotations

import json
from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from lunchsquad.recommendations.models import Attendee, Preference, PreferenceType
from lunchsquad.store.base import StoreError
from lunchsquad.store.rest import RestStore

DAY = date(2026, 10, 19)
BASE = "https://lunch.example.co/rest/v1"


def _response(rows) -> MagicMock:
    response = MagicMock()
    response.content = json.dumps(rows).encode() if rows is not None else b""
    response.json.return_value = rows
    response.raise_for_status.return_value = None
    return response


def _store(rows=None) -> tuple[RestStore, MagicMock]:
    session = MagicMock()
    session.headers = {}
    session.request.return_value = _response(rows)
    return RestStore("https://lunch.example.co/", "anon-key", timeout=3.0, session=session), session


def _call(session: MagicMock):
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


def test_sets_auth_headers():
    _, session = _store()
    assert session.headers["apikey"] == "anon-key"
    assert session.headers["Authorization"] == "Bearer anon-key"


def test_requires_url_and_key():
    with pytest.raises(StoreError):
        RestStore("", "anon-key")


def test_attending_user_ids_filters_by_date():
    store, session = _store([{"user_id": "u1"}, {"user_id": "u2"}])

    assert store.attending_user_ids(DAY) == ["u1", "u2"]

    method, url, kwargs = _call(session)
    assert method == "GET"
    assert url == f"{BASE}/daily_attendance"
    assert kwargs["params"]["date"] == "eq.2026-10-19"
    assert kwargs["params"]["is_attending"] == "is.true"
    assert kwargs["timeout"] == 3.0


def test_get_selection_missing():
    store, _ = _store([])
    assert store.get_selection(DAY) is None


def test_get_selection():
    store, _ = _store([{"date": "2026-10-19", "restaurant_id": "r9"}])
    selection = store.get_selection(DAY)
    assert selection.date == DAY
    assert selection.restaurant_id == "r9"


def test_upsert_selection_merges_on_date():
    store, session = _store([{"date": "2026-10-19", "restaurant_id": "r1"}])

    store.upsert_selection(DAY, "r1")

    method, url, kwargs = _call(session)
    assert method == "POST"
    assert url == f"{BASE}/daily_restaurant_selection"
    assert kwargs["params"] == {"on_conflict": "date"}
    assert kwargs["json"] == {"date": "2026-10-19", "restaurant_id": "r1"}
    assert "resolution=merge-duplicates" in kwargs["headers"]["Prefer"]


def test_delete_selection():
    store, session = _store(None)

    store.delete_selection(DAY)

    method, url, kwargs = _call(session)
    assert method == "DELETE"
    assert kwargs["params"] == {"date": "eq.2026-10-19"}


def test_upsert_attendance():
    row = {"user_id": "u1", "date": "2026-10-19", "is_attending": True, "has_rated": False}
    store, session = _store([row])

    result = store.upsert_attendance(Attendee(user_id="u1", date=DAY, is_attending=True))

    assert result.is_attending is True
    _, url, kwargs = _call(session)
    assert url == f"{BASE}/daily_attendance"
    assert kwargs["params"] == {"on_conflict": "user_id,date"}
    assert kwargs["json"]["date"] == "2026-10-19"


def test_get_favorites_uses_in_filter():
    store, session = _store([
        {"user_id": "u1", "restaurant_id": "r1"},
        {"user_id": "u2", "restaurant_id": "r1"},
    ])

    favorites = store.get_favorites(["u1", "u2"])

    assert [f.user_id for f in favorites] == ["u1", "u2"]
    _, _, kwargs = _call(session)
    assert kwargs["params"]["user_id"] == "in.(u1,u2)"


def test_empty_id_lists_skip_the_request():
    store, session = _store([])

    assert store.get_favorites([]) == []
    assert store.get_preferences([]) == []
    assert store.get_restaurants([]) == []
    assert store.get_profiles([]) == []
    store.add_preferences([])
    session.request.assert_not_called()


def test_restaurants_tolerate_null_arrays():
    store, _ = _store([{
        "id": "r1", "name": "Deli", "description": None,
        "cuisine_types": None, "dietary_restrictions": None,
        "rating": 4.1, "image_url": None,
    }])

    restaurant = store.get_restaurant("r1")

    assert restaurant.cuisine_types == []
    assert restaurant.dietary_restrictions == []


def test_add_preferences_posts_rows():
    store, session = _store(None)

    store.add_preferences([
        Preference(user_id="u1", preference_type=PreferenceType.cuisine, preference_value="italian"),
    ])

    _, url, kwargs = _call(session)
    assert url == f"{BASE}/user_preferences"
    assert kwargs["json"] == [
        {"user_id": "u1", "preference_type": "cuisine", "preference_value": "italian"},
    ]


def test_network_failure_raises_store_error():
    store, session = _store()
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(StoreError, match="daily_restaurant_selection"):
        store.get_selection(DAY)


def test_http_error_raises_store_error():
    store, session = _store()
    session.request.return_value.raise_for_status.side_effect = requests.HTTPError("500")

    with pytest.raises(StoreError):
        store.attending_user_ids(DAY)


def test_unreadable_body_raises_store_error():
    store, session = _store()
    response = session.request.return_value
    response.content = b"<html>Bad gateway</html>"
    response.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>", 0)

    with pytest.raises(StoreError, match="restaurants"):
        store.list_restaurants()
