"""Progress summary scoring and statistics."""
from datetime import datetime
from typing import Optional

from study_planner.context import PlannerContext
from study_planner.daily_log import get_unified_progress
from study_planner.models import parse_ts, utcnow
from study_planner.progress import get_all_progress
from study_planner.revision import MASTERED_THRESHOLD, classify_priority, elapsed_days


def get_mastery_label(score: float) -> str:
    if score >= 80:
        return "MASTERED"
    elif score >= 60:
        return "STRONG"
    elif score >= 30:
        return "DEVELOPING"
    return "NEW"


def get_mastery_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    elif score >= 30:
        return "dark_orange"
    return "red"


def get_progress_summary(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None,
                         now: Optional[datetime] = None) -> dict:
    now = parse_ts(now) if now else utcnow()
    records = get_all_progress(ctx, user_id, course_id)
    stats = get_unified_progress(ctx, user_id)

    due = [r for r in records if r.next_revision is not None and r.next_revision <= now]
    overdue = [r for r in due if classify_priority(elapsed_days(r.last_revised, now)) == "overdue"]
    avg = sum(r.mastery_score for r in records) / len(records) if records else 0.0
    return {
        "topics_tracked": len(records),
        "average_mastery": round(avg, 1),
        "mastered_topics": sum(1 for r in records if r.mastery_score >= MASTERED_THRESHOLD),
        "due_for_revision": len(due),
        "overdue": len(overdue),
        "total_study_minutes": sum(r.total_study_time for r in records),
        "total_revisions": sum(r.revision_count for r in records),
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
        "consistency_rating": stats.consistency_rating,
        "total_time_invested": stats.total_time_invested,
    }


def get_weakest_topics(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None,
                       limit: int = 5) -> list[dict]:
    """Tracked topics with the lowest mastery, worst first."""
    records = sorted(get_all_progress(ctx, user_id, course_id), key=lambda r: r.mastery_score)
    return [
        {"topic_id": r.topic_id, "mastery_score": r.mastery_score, "label": get_mastery_label(r.mastery_score)}
        for r in records[:limit]
    ]
