# tests/test_daily_log.py
import logging
from datetime import datetime, timedelta, timezone

import pytest

from study_planner import daily_log
from study_planner.daily_log import (
    calc_consistency_rating, fold_daily_log, get_daily_log, get_recent_daily_logs, get_unified_progress,
    save_daily_log,
)
from study_planner.models import DailyLog, StudySession, UnifiedProgress


def _log(day, minutes=60):
    return DailyLog(date=day, studied_topics=[StudySession(topic_id="sorting", minutes=minutes)])


def test_consistency_rating():
    assert calc_consistency_rating(0, 0) == 0
    assert calc_consistency_rating(30, 100) == 100
    assert calc_consistency_rating(60, 500) == 100
    assert calc_consistency_rating(15, 50) == 50
    assert calc_consistency_rating(3, 3) == 7  # 0.6*0.1 + 0.4*0.03


def test_first_log_starts_streak(ctx, now):
    save_daily_log(ctx, "u1", _log("2024-03-15", 90), now=now)
    stats = get_unified_progress(ctx, "u1")
    assert stats.current_streak == 1
    assert stats.longest_streak == 1
    assert stats.total_missions_completed == 1
    assert stats.total_time_invested == 90
    assert stats.updated_at == now


def test_same_day_does_not_extend_streak(ctx, now):
    save_daily_log(ctx, "u1", _log("2024-03-15"), now=now)
    save_daily_log(ctx, "u1", _log("2024-03-15"), now=now + timedelta(hours=3))
    stats = get_unified_progress(ctx, "u1")
    assert stats.current_streak == 1
    assert stats.total_missions_completed == 2


def test_consecutive_days_extend_streak(ctx, now):
    for offset in range(3):
        day = now + timedelta(days=offset)
        save_daily_log(ctx, "u1", _log(day.date().isoformat()), now=day)
    stats = get_unified_progress(ctx, "u1")
    assert stats.current_streak == 3
    assert stats.longest_streak == 3
    assert stats.total_time_invested == 180


def test_gap_resets_streak_but_keeps_longest(ctx, now):
    for offset in (0, 1, 3):
        day = now + timedelta(days=offset)
        save_daily_log(ctx, "u1", _log(day.date().isoformat()), now=day)
    stats = get_unified_progress(ctx, "u1")
    assert stats.current_streak == 1
    assert stats.longest_streak == 2


def test_bad_date_rejected(ctx, now):
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        save_daily_log(ctx, "u1", _log("15/03/2024"), now=now)
    assert get_unified_progress(ctx, "u1").total_missions_completed == 0


def test_log_overwrites_same_date(ctx, now):
    save_daily_log(ctx, "u1", _log("2024-03-15", 30), now=now)
    save_daily_log(ctx, "u1", _log("2024-03-15", 45), now=now)
    assert get_daily_log(ctx, "u1", "2024-03-15").study_minutes == 45


def test_stats_failure_does_not_fail_the_save(ctx, now, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(daily_log, "fold_daily_log", broken)
    with caplog.at_level(logging.ERROR, logger="study_planner.daily_log"):
        save_daily_log(ctx, "u1", _log("2024-03-15"), now=now)
    assert get_daily_log(ctx, "u1", "2024-03-15") is not None
    assert get_unified_progress(ctx, "u1").total_missions_completed == 0
    assert "Failed to update user stats" in caplog.text


def test_recent_logs_newest_first(ctx, now):
    for day in ["2024-03-10", "2024-03-12", "2024-03-11"]:
        save_daily_log(ctx, "u1", _log(day), now=now)
    assert [l.date for l in get_recent_daily_logs(ctx, "u1")] == ["2024-03-12", "2024-03-11", "2024-03-10"]
    assert len(get_recent_daily_logs(ctx, "u1", days=2)) == 2


def test_missing_log_is_none(ctx):
    assert get_daily_log(ctx, "u1", "2024-01-01") is None


def test_same_local_day_does_not_extend_streak(ctx):
    ist = timezone(timedelta(hours=5, minutes=30))
    # 04:00 IST is still the 14th in UTC
    save_daily_log(ctx, "u1", _log("2024-03-15"), now=datetime(2024, 3, 15, 4, 0, tzinfo=ist))
    save_daily_log(ctx, "u1", _log("2024-03-15"), now=datetime(2024, 3, 15, 10, 0, tzinfo=ist))
    stats = get_unified_progress(ctx, "u1")
    assert stats.current_streak == 1
    assert stats.updated_at == datetime(2024, 3, 15, 4, 30, tzinfo=timezone.utc)


def test_fold_reads_dates_in_callers_timezone(now):
    ist = timezone(timedelta(hours=5, minutes=30))
    # previous update at 17:30 IST on the 15th, next at 01:00 IST on the 16th
    stats = UnifiedProgress(current_streak=4, longest_streak=4, total_missions_completed=4, updated_at=now)
    folded = fold_daily_log(stats, _log("2024-03-16"), datetime(2024, 3, 16, 1, 0, tzinfo=ist))
    assert folded.current_streak == 5
    naive = fold_daily_log(stats, _log("2024-03-15"), now.replace(tzinfo=None, hour=23))
    assert naive.current_streak == 4
