from __future__ import annotations

from fastapi import HTTPException, Request

from ..recommendations.models import LunchContext, Profile


def start_session(request: Request, profile: Profile) -> LunchContext:
    """Bind the session to *profile* as a regular member."""
    request.session["user"] = {"id": profile.id, "name": profile.name, "role": "user"}
    return get_current_user(request)


def get_current_user(request: Request) -> LunchContext | None:
    """Return the caller's context from the session, or ``None``."""
    user = request.session.get("user")
    if not user:
        return None
    return LunchContext(profile_id=user["id"], name=user["name"], role=user.get("role", "user"))


def require_user(request: Request) -> LunchContext:
    """Raise 401 if nobody has registered in this session."""
    context = get_current_user(request)
    if context is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return context


def require_admin(request: Request) -> LunchContext:
    """Raise 401 if not registered, 403 if not admin."""
    context = require_user(request)
    if not context.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return context
