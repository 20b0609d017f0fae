from __future__ import annotations

import threading
from datetime import date

from lunchsquad.recommendations.models import Attendee, Favorite, Restaurant
from lunchsquad.store.memory import MemoryStore

DAY = date(2026, 10, 19)


def _run_alongside(store: MemoryStore, write, read, readers: int = 4) -> list[str]:
    """Run *write* on one thread while *readers* threads call *read*; collect errors."""
    errors: list[str] = []
    done = threading.Event()

    def writer():
        try:
            write()
        finally:
            done.set()

    def reader():
        while not done.is_set():
            try:
                read()
            except RuntimeError as exc:
                errors.append(repr(exc))
                return

    threads = [threading.Thread(target=writer)] + [
        threading.Thread(target=reader) for _ in range(readers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


def test_attendance_reads_survive_concurrent_toggles():
    store = MemoryStore()
    for i in range(2000):
        store.upsert_attendance(Attendee(user_id=f"seed-{i}", date=DAY, is_attending=True))

    def write():
        for i in range(2000):
            store.upsert_attendance(Attendee(user_id=f"new-{i}", date=DAY, is_attending=True))

    errors = _run_alongside(store, write, lambda: store.attending_user_ids(DAY))

    assert errors == []
    assert len(store.attending_user_ids(DAY)) == 4000


def test_restaurant_listing_survives_concurrent_upserts():
    store = MemoryStore()

    def write():
        for i in range(2000):
            store.upsert_restaurant(Restaurant(id=f"r{i}", name=f"Place {i}"))

    errors = _run_alongside(store, write, store.list_restaurants)

    assert errors == []
    assert len(store.list_restaurants()) == 2000


def test_favorites_are_deduplicated():
    store = MemoryStore()
    store.add_favorite("u1", "r1")
    store.add_favorite("u1", "r1")
    store.add_favorite("u2", "r1")

    assert store.get_favorites(["u1", "u2"]) == [
        Favorite(user_id="u1", restaurant_id="r1"),
        Favorite(user_id="u2", restaurant_id="r1"),
    ]

    store.remove_favorite("u1", "r1")
    assert store.get_favorites(["u1"]) == []


def test_rows_are_returned_as_copies():
    store = MemoryStore()
    store.upsert_restaurant(Restaurant(id="r1", name="Deli", rating=4.0))

    store.get_restaurant("r1").rating = 1.0

    assert store.get_restaurant("r1").rating == 4.0
