from __future__ import annotations

import asyncio
import datetime as dt
import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request, WebSocket
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.activity import compute_activity, get_events
from .auth.admin import verify_admin
from .auth.dependencies import require_admin, require_user, start_session
from .config import DEFAULT_APP_CONFIG
from .realtime.feed import get_feed
from .recommendations import engine
from .recommendations.models import (
    CUISINE_TYPES,
    DIETARY_RESTRICTIONS,
    AdminLoginRequest,
    AttendanceRequest,
    AttendanceView,
    LunchContext,
    OnboardingStatus,
    Preference,
    PreferenceType,
    PreferencesRequest,
    RatingRequest,
    RatingResponse,
    RegisterRequest,
    Resolution,
    Restaurant,
    RestaurantUpdate,
)
from .store import LunchStore, StoreError, get_store

logger = logging.getLogger(__name__)

app = FastAPI(title="Lunch Squad API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=DEFAULT_APP_CONFIG.session_secret,
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.warning("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def _day(day: dt.date | None) -> dt.date:
    return day or DEFAULT_APP_CONFIG.today()


def _restaurant_or_404(store: LunchStore, restaurant_id: str) -> Restaurant:
    restaurant = store.get_restaurant(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "cuisines": list(CUISINE_TYPES),
        "dietary_restrictions": list(DIETARY_RESTRICTIONS),
    }


# ── Registration / session ───────────────────────────────────────────────


@app.post("/profiles")
def register(
    body: RegisterRequest,
    request: Request,
    store: LunchStore = Depends(get_store),
) -> dict:
    profile = store.create_profile(body.name)
    start_session(request, profile)
    logger.info("Registered %s", profile.id)
    return {"status": "ok", "user": profile.model_dump()}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: LunchContext = Depends(require_user)) -> dict:
    return {"id": user.profile_id, "name": user.name, "role": user.role}


@app.post("/auth/admin")
def admin_login(
    body: AdminLoginRequest,
    request: Request,
    user: LunchContext = Depends(require_user),
) -> dict:
    if not verify_admin(body.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = {**request.session["user"], "role": "admin"}
    return {"status": "ok", "role": "admin"}


# ── Onboarding ───────────────────────────────────────────────────────────


@app.get("/preferences")
def get_preferences(
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> dict:
    prefs = store.get_preferences([user.profile_id])
    return {
        "cuisines": [p.preference_value for p in prefs if p.preference_type == PreferenceType.cuisine],
        "dietary": [p.preference_value for p in prefs if p.preference_type == PreferenceType.dietary],
    }


@app.post("/preferences")
def save_preferences(
    body: PreferencesRequest,
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> dict:
    rows = [
        Preference(user_id=user.profile_id, preference_type=PreferenceType.cuisine, preference_value=c)
        for c in body.cuisines
    ] + [
        Preference(user_id=user.profile_id, preference_type=PreferenceType.dietary, preference_value=d)
        for d in body.dietary
    ]
    store.add_preferences(rows)
    return {"status": "saved", "count": len(rows)}


@app.get("/onboarding/status", response_model=OnboardingStatus)
def onboarding_status(
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> OnboardingStatus:
    if not store.get_preferences([user.profile_id]):
        return OnboardingStatus(next_step="preferences")
    if not store.get_favorites([user.profile_id]):
        return OnboardingStatus(next_step="favorites")
    return OnboardingStatus(next_step="done")


# ── Restaurants & favorites ──────────────────────────────────────────────


@app.get("/restaurants", response_model=list[Restaurant])
def list_restaurants(
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> list[Restaurant]:
    return store.list_restaurants()


@app.get("/restaurants/{restaurant_id}", response_model=Restaurant)
def get_restaurant(
    restaurant_id: str,
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> Restaurant:
    return _restaurant_or_404(store, restaurant_id)


@app.patch("/restaurants/{restaurant_id}", response_model=Restaurant)
def edit_restaurant(
    restaurant_id: str,
    body: RestaurantUpdate,
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> Restaurant:
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        return _restaurant_or_404(store, restaurant_id)
    updated = store.update_restaurant(restaurant_id, fields)
    if updated is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return updated


@app.post("/restaurants/{restaurant_id}/rating", response_model=RatingResponse)
def rate_restaurant(
    restaurant_id: str,
    body: RatingRequest,
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> RatingResponse:
    updated = engine.rate(store, user, restaurant_id, body.rating, _day(body.date))
    if updated is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return RatingResponse(restaurant_id=updated.id, rating=updated.rating or 0.0)


@app.get("/favorites")
def list_favorites(
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> dict:
    favorites = store.get_favorites([user.profile_id])
    return {"restaurant_ids": [f.restaurant_id for f in favorites]}


@app.put("/favorites/{restaurant_id}")
def add_favorite(
    restaurant_id: str,
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> dict:
    _restaurant_or_404(store, restaurant_id)
    store.add_favorite(user.profile_id, restaurant_id)
    return {"status": "added", "restaurant_id": restaurant_id}


@app.delete("/favorites/{restaurant_id}")
def remove_favorite(
    restaurant_id: str,
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> dict:
    store.remove_favorite(user.profile_id, restaurant_id)
    return {"status": "removed", "restaurant_id": restaurant_id}


# ── Attendance ───────────────────────────────────────────────────────────


def _attendance_view(store: LunchStore, user: LunchContext, day: dt.date) -> AttendanceView:
    own = store.get_attendance(user.profile_id, day)
    attendees = store.get_profiles(store.attending_user_ids(day))
    return AttendanceView(
        date=day,
        attending=own.is_attending if own else False,
        has_rated=own.has_rated if own else False,
        attendees=[p.name for p in attendees],
    )


@app.get("/attendance", response_model=AttendanceView)
def get_attendance(
    day: dt.date | None = Query(default=None, alias="date"),
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> AttendanceView:
    return _attendance_view(store, user, _day(day))


@app.put("/attendance", response_model=AttendanceView)
def set_attendance(
    body: AttendanceRequest,
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> AttendanceView:
    day = _day(body.date)
    engine.toggle_attendance(store, user, day, body.attending, feed=get_feed())
    return _attendance_view(store, user, day)


# ── Recommendation ───────────────────────────────────────────────────────


@app.get("/recommendation", response_model=Resolution)
def recommendation(
    day: dt.date | None = Query(default=None, alias="date"),
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> Resolution:
    return engine.resolve(store, _day(day))


@app.post("/recommendation/reshuffle", response_model=Resolution)
def reshuffle(
    day: dt.date | None = Query(default=None, alias="date"),
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> Resolution:
    return engine.reshuffle(store, _day(day))


@app.post("/recommendation/random", response_model=Resolution)
def choose_random(
    day: dt.date | None = Query(default=None, alias="date"),
    user: LunchContext = Depends(require_user),
    store: LunchStore = Depends(get_store),
) -> Resolution:
    return engine.choose_random(store, _day(day))


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: LunchContext = Depends(require_admin)) -> dict:
    return compute_activity(get_events())


# ── Realtime ─────────────────────────────────────────────────────────────


@app.websocket("/ws/attendance/{day}")
async def attendance_updates(websocket: WebSocket, day: dt.date) -> None:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[dict] = asyncio.Queue()

    # Publishers run on worker threads, so hand events over to this loop
    unsubscribe = get_feed().subscribe(
        day, lambda event: loop.call_soon_threadsafe(queue.put_nowait, event),
    )
    await websocket.accept()
    try:
        while True:
            incoming = asyncio.ensure_future(websocket.receive())
            outgoing = asyncio.ensure_future(queue.get())
            done, pending = await asyncio.wait(
                {incoming, outgoing}, return_when=asyncio.FIRST_COMPLETED,
            )
            for task in pending:
                task.cancel()
            if incoming in done and incoming.result()["type"] == "websocket.disconnect":
                break
            if outgoing in done:
                await websocket.send_json(outgoing.result())
    finally:
        unsubscribe()
