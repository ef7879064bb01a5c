"""User profiles, preferences and current-course resolution."""
import logging
from datetime import datetime
from typing import Optional

from study_planner.context import PlannerContext
from study_planner.models import UserProfile, parse_ts, to_iso
from study_planner.store import get_document, set_document, update_document

logger = logging.getLogger(__name__)

DEFAULT_REVISION_INTERVALS = [1, 3, 7, 16, 35]
DEFAULT_DAILY_GOAL_MINUTES = 480


def _user_path(user_id: str) -> str:
    return f"users/{user_id}"


def _serialize(updates: dict) -> dict:
    return {k: to_iso(v) if isinstance(v, datetime) else v for k, v in updates.items()}


def create_user(ctx: PlannerContext, user_id: str, display_name: str = "", email: str = "",
                current_course_id: Optional[str] = None,
                preparation_start_date: Optional[datetime] = None,
                preferences: Optional[dict] = None) -> UserProfile:
    """Create (or overwrite) a user document with default preferences."""
    prefs = {
        "revision_intervals": list(DEFAULT_REVISION_INTERVALS),
        "daily_study_goal_minutes": DEFAULT_DAILY_GOAL_MINUTES,
    }
    prefs.update(preferences or {})
    profile = UserProfile(
        user_id=user_id,
        display_name=display_name,
        email=email,
        current_course_id=current_course_id,
        preparation_start_date=preparation_start_date,
        preferences=prefs,
    )
    set_document(ctx.db_path, _user_path(user_id), profile.to_dict())
    ctx.cache.invalidate("user", user_id)
    logger.info("Created user %s (course=%s)", user_id, current_course_id)
    return profile


def get_user(ctx: PlannerContext, user_id: str) -> UserProfile | None:
    cached = ctx.cache.get("user", user_id)
    if cached is not None:
        return cached
    doc = get_document(ctx.db_path, _user_path(user_id))
    if doc is None:
        logger.info("User not found: %s", user_id)
        return None
    doc["user_id"] = user_id
    profile = UserProfile.from_dict(doc)
    ctx.cache.set("user", user_id, profile)
    return profile


def update_user(ctx: PlannerContext, user_id: str, updates: dict) -> None:
    """Shallow-merge fields into the user document. Raises KeyError if the user is unknown."""
    if not update_document(ctx.db_path, _user_path(user_id), _serialize(updates)):
        raise KeyError(f"User {user_id} not found")
    ctx.cache.invalidate("user", user_id)
    logger.info("Updated user %s fields=%s", user_id, sorted(updates))


def set_preference(ctx: PlannerContext, user_id: str, key: str, value) -> None:
    user = get_user(ctx, user_id)
    if user is None:
        raise KeyError(f"User {user_id} not found")
    prefs = dict(user.preferences)
    prefs[key] = value
    update_user(ctx, user_id, {"preferences": prefs})


def get_revision_intervals(ctx: PlannerContext, user_id: str) -> list[int]:
    user = get_user(ctx, user_id)
    intervals = (user.preferences.get("revision_intervals") if user else None) or DEFAULT_REVISION_INTERVALS
    return list(intervals)


def get_preparation_start(ctx: PlannerContext, user_id: str) -> datetime | None:
    user = get_user(ctx, user_id)
    return parse_ts(user.preparation_start_date) if user else None


def resolve_course_id(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None) -> str | None:
    """The explicit course if given, else the user's current course, else None."""
    if course_id:
        return course_id
    user = get_user(ctx, user_id)
    return user.current_course_id if user else None
