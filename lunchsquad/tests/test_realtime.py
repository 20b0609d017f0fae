from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient

from lunchsquad.app import app
from lunchsquad.realtime.feed import AttendanceFeed, get_feed
from lunchsquad.store import set_store
from lunchsquad.store.memory import MemoryStore

DAY = date(2026, 10, 19)


# ── Feed ─────────────────────────────────────────────────────────────────


class TestAttendanceFeed:
    def test_publish_reaches_subscribers_of_that_day(self):
        feed = AttendanceFeed()
        today, tomorrow = [], []
        feed.subscribe(DAY, today.append)
        feed.subscribe(date(2026, 10, 20), tomorrow.append)

        delivered = feed.publish(DAY, {"type": "attendance"})

        assert delivered == 1
        assert today == [{"type": "attendance"}]
        assert tomorrow == []

    def test_unsubscribe(self):
        feed = AttendanceFeed()
        received = []
        unsubscribe = feed.subscribe(DAY, received.append)
        unsubscribe()
        unsubscribe()

        assert feed.publish(DAY, {"type": "attendance"}) == 0
        assert received == []
        assert feed.subscriber_count(DAY) == 0

    def test_failing_subscriber_does_not_block_others(self):
        feed = AttendanceFeed()
        received = []

        def broken(event):
            raise RuntimeError("socket closed")

        feed.subscribe(DAY, broken)
        feed.subscribe(DAY, received.append)

        assert feed.publish(DAY, {"type": "attendance"}) == 1
        assert received == [{"type": "attendance"}]


# ── Websocket ────────────────────────────────────────────────────────────


def test_websocket_pushes_attendance_changes():
    set_store(MemoryStore())
    client = TestClient(app)
    me = client.post("/profiles", json={"name": "Ada"}).json()["user"]

    with client.websocket_connect(f"/ws/attendance/{DAY.isoformat()}") as ws:
        assert get_feed().subscriber_count(DAY) == 1
        client.put("/attendance", json={"attending": True, "date": DAY.isoformat()})
        message = ws.receive_json()

    assert message == {
        "type": "attendance",
        "date": "2026-10-19",
        "user_id": me["id"],
        "is_attending": True,
    }
