from __future__ import annotations

import time
from collections import Counter
from typing import Any

_events: list[dict[str, Any]] = []


def record_event(event_type: str, data: dict[str, Any]) -> None:
    _events.append({
        "type": event_type,
        "timestamp": time.time(),
        **data,
    })


def get_events() -> list[dict[str, Any]]:
    return _events


def clear_events() -> None:
    _events.clear()


def compute_activity(events: list[dict[str, Any]]) -> dict[str, Any]:
    type_counter: Counter[str] = Counter(e["type"] for e in events)

    resolves = [e for e in events if e["type"] == "resolve"]
    status_counter: Counter[str] = Counter(e.get("status", "unknown") for e in resolves)

    # Only fresh computations are timed; reused selections skip scoring
    times = [
        e["response_time_ms"] for e in resolves
        if "response_time_ms" in e and not e.get("reused")
    ]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    reused = sum(1 for e in resolves if e.get("reused"))

    # Last pick of each day wins, so a restaurant counts once per day
    per_day: dict[str, str] = {}
    for e in events:
        if e["type"] in ("resolve", "random_pick") and e.get("restaurant_name"):
            per_day[e["date"]] = e["restaurant_name"]
    selection_counter: Counter[str] = Counter(per_day.values())
    top_restaurants = [{"name": n, "count": c} for n, c in selection_counter.most_common(10)]

    ratings = [e["rating"] for e in events if e["type"] == "rating"]

    return {
        "total_events": len(events),
        "event_counts": dict(type_counter),
        "resolutions": {
            "total": len(resolves),
            "by_status": dict(status_counter),
            "reused": reused,
            "reuse_rate": round(reused / len(resolves) * 100, 1) if resolves else 0.0,
            "avg_response_time_ms": avg_time,
        },
        "top_restaurants": top_restaurants,
        "ratings": {
            "total": len(ratings),
            "average": round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
        },
    }
