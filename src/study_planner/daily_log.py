"""Daily study logs and the running streak/consistency statistics they feed."""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from study_planner.context import PlannerContext
from study_planner.models import DailyLog, UnifiedProgress, utcnow
from study_planner.progress import UNIFIED_DOC_ID
from study_planner.store import get_document, query_documents, resolve_path, set_document

logger = logging.getLogger(__name__)

STREAK_TARGET_DAYS = 30
VOLUME_TARGET_LOGS = 100


def calc_consistency_rating(current_streak: int, total_missions: int) -> int:
    """0-100 blend: 60% streak toward 30 days, 40% volume toward 100 logs."""
    streak_score = min(current_streak / STREAK_TARGET_DAYS, 1)
    volume_score = min(total_missions / VOLUME_TARGET_LOGS, 1)
    return round(100 * (0.6 * streak_score + 0.4 * volume_score))


def fold_daily_log(stats: UnifiedProgress, log: DailyLog, now: datetime) -> UnifiedProgress:
    """Return ``stats`` advanced by one saved log.

    The streak moves by calendar date of the previous update: yesterday
    extends it, today leaves it alone, anything else restarts it at 1.
    Both dates are read in the timezone of ``now`` (naive means UTC).
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.date()
    last = stats.updated_at.astimezone(now.tzinfo).date() if stats.updated_at else None

    streak = stats.current_streak
    if last == today - timedelta(days=1):
        streak += 1
    elif last != today:
        streak = 1

    missions = stats.total_missions_completed + 1
    return UnifiedProgress(
        total_missions_completed=missions,
        total_time_invested=stats.total_time_invested + log.study_minutes,
        current_streak=streak,
        longest_streak=max(stats.longest_streak, streak),
        consistency_rating=calc_consistency_rating(streak, missions),
        updated_at=now,
    )


def _unified_path(user_id: str) -> str:
    return resolve_path(user_id, "progress", UNIFIED_DOC_ID)


def get_unified_progress(ctx: PlannerContext, user_id: str) -> UnifiedProgress:
    doc = get_document(ctx.db_path, _unified_path(user_id))
    return UnifiedProgress.from_dict(doc) if doc else UnifiedProgress()


def update_user_stats(ctx: PlannerContext, user_id: str, log: DailyLog, now: Optional[datetime] = None) -> None:
    """Fold a log into the user's unified stats. Failures are logged, never raised."""
    try:
        stats = fold_daily_log(get_unified_progress(ctx, user_id), log, now or utcnow())
        set_document(ctx.db_path, _unified_path(user_id), stats.to_dict())
        ctx.cache.invalidate("progress", user_id)
        logger.info("User stats updated from daily log: user=%s minutes=%d streak=%d total=%d",
                    user_id, log.study_minutes, stats.current_streak, stats.total_time_invested)
    except Exception:
        logger.exception("Failed to update user stats for %s", user_id)


def save_daily_log(ctx: PlannerContext, user_id: str, log: DailyLog, now: Optional[datetime] = None) -> None:
    """Store a day's log (overwriting that date) and fold it into the user's stats."""
    try:
        date.fromisoformat(log.date)
    except ValueError:
        raise ValueError(f"Daily log date must be YYYY-MM-DD, got {log.date!r}") from None
    try:
        set_document(ctx.db_path, resolve_path(user_id, "logs_daily", log.date), log.to_dict())
    except Exception:
        logger.error("Failed to save daily log: user=%s date=%s", user_id, log.date)
        raise
    update_user_stats(ctx, user_id, log, now=now)
    logger.info("Daily log saved: user=%s date=%s sessions=%d", user_id, log.date, len(log.studied_topics))


def get_daily_log(ctx: PlannerContext, user_id: str, log_date: str) -> DailyLog | None:
    doc = get_document(ctx.db_path, resolve_path(user_id, "logs_daily", log_date))
    return DailyLog.from_dict(doc) if doc else None


def get_recent_daily_logs(ctx: PlannerContext, user_id: str, days: int = 30) -> list[DailyLog]:
    """Most recent logs first."""
    docs = query_documents(
        ctx.db_path, resolve_path(user_id, "logs_daily"),
        order_by="date", descending=True, limit=days,
    )
    return [DailyLog.from_dict(d) for d in docs]
