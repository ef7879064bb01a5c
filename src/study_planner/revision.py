"""Spaced-repetition revision queue, review transitions and the review-page view.

Topics come due when their ``next_revision`` passes. Marking a topic
reviewed schedules the next revision using the user's configured interval
list, stepping one entry per review and staying on the last (longest)
interval once the list is exhausted.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from study_planner.context import PlannerContext
from study_planner.models import ReviewItem, RevisionItem, Subtopic, TopicProgress, parse_ts, to_iso, utcnow
from study_planner.progress import get_topic_progress, update_topic_progress
from study_planner.store import query_documents, resolve_path
from study_planner.syllabus import find_topic, get_syllabus
from study_planner.users import get_preparation_start, get_revision_intervals, resolve_course_id

logger = logging.getLogger(__name__)

QUEUE_LIMIT = 20
DEFAULT_ESTIMATED_MINUTES = 30
UNKNOWN_TIER = 3
MASTERED_THRESHOLD = 80


def elapsed_days(earlier: Optional[datetime], now: datetime) -> float:
    """Fractional days elapsed. A missing start counts as ``now``."""
    if earlier is None:
        return 0.0
    return (now - earlier).total_seconds() / 86400


def days_between(earlier: Optional[datetime], now: datetime) -> int:
    """Whole days elapsed, floored."""
    return math.floor(elapsed_days(earlier, now))


def classify_priority(days_since_last_revision: float) -> str:
    """Bucket an item by days since its last revision (fractional: 25 hours is past one day).

    Everything reaching here already has next_revision <= now, so
    "due_soon" marks items revised under a day ago that came due early.
    """
    if days_since_last_revision > 1:
        return "overdue"
    if days_since_last_revision == 1:
        return "due_today"
    return "due_soon"


def select_interval(intervals: list[int], revision_count: int) -> int:
    """Interval (days) for the next review after ``revision_count`` completed reviews."""
    if not intervals:
        raise ValueError("revision intervals must not be empty")
    return intervals[min(max(revision_count, 0), len(intervals) - 1)]


def get_revision_queue(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None,
                       now: Optional[datetime] = None) -> list[RevisionItem]:
    """Topics due for revision, oldest due first, at most 20."""
    now = parse_ts(now) if now else utcnow()
    docs = query_documents(
        ctx.db_path,
        resolve_path(user_id, "progress", course_id=course_id),
        field="next_revision", op="<=", value=to_iso(now),
        order_by="next_revision", limit=QUEUE_LIMIT,
    )
    syllabus = get_syllabus(ctx, user_id, course_id)

    items = []
    for doc in docs:
        progress = TopicProgress.from_dict({"topic_id": doc["id"], **doc})
        subject, topic = find_topic(syllabus, progress.topic_id)
        elapsed = elapsed_days(progress.last_revised, now)
        items.append(RevisionItem(
            topic_id=progress.topic_id,
            topic_name=topic.name if topic else "Unknown Topic",
            subject_name=subject.name if subject else "Unknown Subject",
            tier=subject.tier if subject else UNKNOWN_TIER,
            mastery_score=progress.mastery_score,
            days_since_last_revision=math.floor(elapsed),
            priority=classify_priority(elapsed),
            estimated_time=topic.estimated_hours * 60 if topic and topic.estimated_hours else DEFAULT_ESTIMATED_MINUTES,
            last_revised=progress.last_revised,
            next_revision=progress.next_revision,
            revision_count=progress.revision_count,
        ))
    logger.info("Revision queue built: user=%s course=%s items=%d", user_id, course_id, len(items))
    return items


def mark_reviewed(ctx: PlannerContext, user_id: str, topic_id: str, course_id: Optional[str] = None,
                  now: Optional[datetime] = None) -> TopicProgress:
    """Complete a review: clear the flag and schedule the next revision."""
    now = parse_ts(now) if now else utcnow()
    intervals = get_revision_intervals(ctx, user_id)
    current = get_topic_progress(ctx, user_id, topic_id, course_id)
    count = current.revision_count if current else 0
    days = select_interval(intervals, count)
    update_topic_progress(ctx, user_id, topic_id, {
        "needs_review": False,
        "last_revised": now,
        "next_revision": now + timedelta(days=days),
        "revision_count": count + 1,
    }, course_id, now=now)
    logger.info("Marked reviewed: user=%s topic=%s next in %d days (review #%d)",
                user_id, topic_id, days, count + 1)
    return get_topic_progress(ctx, user_id, topic_id, course_id)


def suppress_stale(progress: TopicProgress, preparation_start: Optional[datetime]) -> TopicProgress:
    """Return a view of ``progress`` with activity from before the preparation start removed.

    The argument is never modified.
    """
    view = progress.copy(solved_questions=list(progress.solved_questions), tags=list(progress.tags))
    if preparation_start is None:
        return view
    if view.last_revised is not None and view.last_revised < preparation_start:
        view.last_revised = None
        view.next_revision = None
        view.revision_count = 0
        view.status = "not_started"
    if view.review_requested_at is not None and view.review_requested_at < preparation_start:
        view.needs_review = False
    return view


def suppress_stale_subtopic(subtopic: Subtopic, preparation_start: Optional[datetime]) -> Subtopic:
    view = subtopic.copy()
    if preparation_start is not None and view.review_requested_at is not None \
            and view.review_requested_at < preparation_start:
        view.needs_review = False
    return view


def topic_status(progress: TopicProgress) -> str:
    if progress.status:
        return progress.status
    if progress.mastery_score >= MASTERED_THRESHOLD:
        return "mastered"
    if progress.mastery_score > 0:
        return "in_progress"
    return "not_started"


def build_review_items(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None,
                       now: Optional[datetime] = None) -> list[ReviewItem]:
    """Flagged or due topics and flagged subtopics, with pre-start activity hidden."""
    now = parse_ts(now) if now else utcnow()
    course_id = resolve_course_id(ctx, user_id, course_id)
    start = get_preparation_start(ctx, user_id)
    items: list[ReviewItem] = []

    for subject in get_syllabus(ctx, user_id, course_id):
        for topic in subject.topics:
            stored = get_topic_progress(ctx, user_id, topic.id, course_id)
            if stored is not None:
                view = suppress_stale(stored, start)
                due = view.next_revision is not None and view.next_revision <= now
                if view.needs_review or due:
                    items.append(ReviewItem(
                        type="topic",
                        id=topic.id,
                        name=topic.name,
                        subject_id=subject.id,
                        subject_name=subject.name,
                        status=topic_status(view),
                        needs_review=view.needs_review,
                        next_revision=view.next_revision,
                        last_revised=view.last_revised,
                        practice_count=view.practice_count,
                        revision_count=view.revision_count,
                    ))
            for subtopic in topic.subtopics:
                sub = suppress_stale_subtopic(subtopic, start)
                if sub.needs_review:
                    items.append(ReviewItem(
                        type="subtopic",
                        id=sub.id,
                        name=sub.name,
                        subject_id=subject.id,
                        subject_name=subject.name,
                        topic_id=topic.id,
                        topic_name=topic.name,
                        status=sub.status,
                        needs_review=True,
                        last_revised=sub.last_revised,
                        practice_count=sub.practice_count,
                        revision_count=sub.revision_count,
                    ))
    return items


def filter_review_items(items: list[ReviewItem], mode: str = "all", query: str = "",
                        now: Optional[datetime] = None) -> list[ReviewItem]:
    """Narrow review items by tab (all/flagged/due/overdue) and a name search."""
    now = parse_ts(now) if now else utcnow()
    if query.strip():
        q = query.strip().lower()
        items = [
            i for i in items
            if q in i.name.lower() or q in i.subject_name.lower() or q in (i.topic_name or "").lower()
        ]
    if mode == "flagged":
        return [i for i in items if i.needs_review]
    if mode == "due":
        return [i for i in items if i.next_revision and i.next_revision.date() == now.date()]
    if mode == "overdue":
        return [i for i in items if i.next_revision and i.next_revision < now
                and i.next_revision.date() != now.date()]
    if mode != "all":
        raise ValueError(f"Unknown review filter: {mode}")
    return list(items)
