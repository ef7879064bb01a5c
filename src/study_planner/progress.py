"""Per-topic progress records, course-scoped or on the legacy global path."""
import logging
from datetime import datetime
from typing import Optional

from study_planner.context import PlannerContext
from study_planner.models import TopicProgress, to_iso, utcnow
from study_planner.store import get_document, list_documents, resolve_path, set_document, update_document

logger = logging.getLogger(__name__)

# Document id of the unified stats record, which shares the legacy progress collection.
UNIFIED_DOC_ID = "unified"


def _serialize(updates: dict) -> dict:
    return {k: to_iso(v) if isinstance(v, datetime) else v for k, v in updates.items()}


def get_topic_progress(ctx: PlannerContext, user_id: str, topic_id: str,
                       course_id: Optional[str] = None) -> TopicProgress | None:
    doc = get_document(ctx.db_path, resolve_path(user_id, "progress", topic_id, course_id=course_id))
    if doc is None:
        return None
    return TopicProgress.from_dict({"topic_id": topic_id, **doc})


def update_topic_progress(ctx: PlannerContext, user_id: str, topic_id: str, updates: dict,
                          course_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
    """Merge ``updates`` into a topic's progress, creating the record with defaults if absent.

    The progress cache for (user, course) is dropped before returning.
    """
    path = resolve_path(user_id, "progress", topic_id, course_id=course_id)
    fields = _serialize(updates)
    try:
        if not update_document(ctx.db_path, path, fields):
            now = now or utcnow()
            record = TopicProgress(
                topic_id=topic_id,
                course_id=course_id,
                last_revised=now,
                next_revision=now,
            ).to_dict()
            record.update(fields)
            set_document(ctx.db_path, path, record)
    except Exception:
        logger.error("Failed to update topic progress: user=%s topic=%s course=%s",
                     user_id, topic_id, course_id or "global")
        raise
    ctx.cache.invalidate("progress", user_id, course_id)
    logger.info("Topic progress updated: user=%s topic=%s course=%s fields=%s",
                user_id, topic_id, course_id or "global", sorted(updates))


def get_all_progress(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None) -> list[TopicProgress]:
    """Every topic progress record for (user, course), unordered. Cached for two minutes."""
    cached = ctx.cache.get("progress", user_id, course_id)
    if cached is not None:
        return list(cached)
    docs = list_documents(ctx.db_path, resolve_path(user_id, "progress", course_id=course_id))
    records = [
        TopicProgress.from_dict({"topic_id": d["id"], **d})
        for d in docs
        if d["id"] != UNIFIED_DOC_ID
    ]
    ctx.cache.set("progress", user_id, records, course_id)
    logger.info("Progress fetched and cached: user=%s course=%s count=%d", user_id, course_id, len(records))
    return list(records)


def mark_question_solved(ctx: PlannerContext, user_id: str, topic_id: str, question_slug: str,
                         course_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
    """Record a practice question as solved; solving it again is a no-op."""
    current = get_topic_progress(ctx, user_id, topic_id, course_id)
    solved = list(current.solved_questions) if current else []
    if question_slug in solved:
        return
    update_topic_progress(ctx, user_id, topic_id, {
        "solved_questions": solved + [question_slug],
        "practice_count": (current.practice_count if current else 0) + 1,
        "last_practiced": now or utcnow(),
    }, course_id, now=now)


def toggle_question_solved(ctx: PlannerContext, user_id: str, topic_id: str, question_slug: str,
                           course_id: Optional[str] = None, now: Optional[datetime] = None) -> bool:
    """Flip a question's solved state. Returns True if it is now solved."""
    current = get_topic_progress(ctx, user_id, topic_id, course_id)
    solved = list(current.solved_questions) if current else []
    if question_slug in solved:
        update_topic_progress(ctx, user_id, topic_id, {
            "solved_questions": [s for s in solved if s != question_slug],
        }, course_id, now=now)
        return False
    update_topic_progress(ctx, user_id, topic_id, {
        "solved_questions": solved + [question_slug],
        "practice_count": (current.practice_count if current else 0) + 1,
        "last_practiced": now or utcnow(),
    }, course_id, now=now)
    return True


def record_study_time(ctx: PlannerContext, user_id: str, topic_id: str, minutes: int,
                      course_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
    if minutes < 0:
        raise ValueError("minutes must be non-negative")
    current = get_topic_progress(ctx, user_id, topic_id, course_id)
    total = (current.total_study_time if current else 0) + minutes
    update_topic_progress(ctx, user_id, topic_id, {"total_study_time": total}, course_id, now=now)


def flag_for_review(ctx: PlannerContext, user_id: str, topic_id: str,
                    course_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
    now = now or utcnow()
    update_topic_progress(ctx, user_id, topic_id, {
        "needs_review": True,
        "review_requested_at": now,
    }, course_id, now=now)
