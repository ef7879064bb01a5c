# tests/test_models.py
from datetime import datetime, timedelta, timezone

from study_planner.models import (
    DailyLog, MockTestLog, StudySession, SyllabusSubject, SyllabusTopic, TopicProgress, parse_ts, to_iso,
)


def test_to_iso_is_utc_fixed_precision():
    dt = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert to_iso(dt) == "2024-01-01T21:34:05.000000+00:00"


def test_to_iso_treats_naive_as_utc():
    assert to_iso(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000000+00:00"
    assert to_iso(None) is None


def test_parse_ts_accepts_dates_and_datetimes():
    assert parse_ts("2024-01-02") == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert parse_ts(datetime(2024, 1, 2, 6)) == datetime(2024, 1, 2, 6, tzinfo=timezone.utc)
    assert parse_ts(None) is None
    assert parse_ts("") is None


def test_iso_strings_sort_chronologically():
    a = datetime(2024, 1, 1, 23, 59, 59, 999999, tzinfo=timezone.utc)
    b = datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert to_iso(a) < to_iso(b)


def test_topic_progress_defaults():
    p = TopicProgress(topic_id="t1")
    assert p.mastery_score == 0
    assert p.revision_count == 0
    assert p.solved_questions == []
    assert p.needs_review is False
    assert p.difficulty == 3 and p.importance == 3


def test_topic_progress_from_dict_ignores_unknown_fields():
    p = TopicProgress.from_dict({
        "topic_id": "t1", "mastery_score": 55, "next_revision": "2024-01-05T00:00:00+00:00", "legacy": True,
    })
    assert p.mastery_score == 55
    assert p.next_revision == datetime(2024, 1, 5, tzinfo=timezone.utc)


def test_topic_progress_to_dict_serializes_timestamps():
    p = TopicProgress(topic_id="t1", last_revised=datetime(2024, 1, 1, tzinfo=timezone.utc))
    data = p.to_dict()
    assert data["last_revised"] == "2024-01-01T00:00:00.000000+00:00"
    assert data["next_revision"] is None


def test_copy_leaves_source_untouched():
    p = TopicProgress(topic_id="t1", mastery_score=10)
    q = p.copy(mastery_score=20)
    assert p.mastery_score == 10
    assert q.mastery_score == 20


def test_syllabus_topic_string_subtopics():
    topic = SyllabusTopic.from_dict({"id": "graphs", "name": "Graphs", "subtopics": ["BFS", "DFS"]})
    assert [s.id for s in topic.subtopics] == ["graphs-0", "graphs-1"]
    assert topic.subtopics[1].name == "DFS"
    assert topic.subtopics[0].status == "not_started"


def test_syllabus_subject_defaults_tier_3():
    subject = SyllabusSubject.from_dict({"id": "s", "name": "S"})
    assert subject.tier == 3
    assert subject.topics == []


def test_daily_log_study_minutes():
    log = DailyLog(date="2024-01-01", studied_topics=[
        StudySession(topic_id="a", minutes=30), StudySession(topic_id="b", minutes=45),
    ])
    assert log.study_minutes == 75
    assert DailyLog.from_dict(log.to_dict()).study_minutes == 75


def test_mock_test_log_from_dict():
    test = MockTestLog.from_dict({
        "id": "m1", "date": "2024-02-01T10:00:00+00:00",
        "topic_performance": [{"topic_id": "sorting", "accuracy": 0.9}],
    })
    assert test.date.year == 2024
    assert test.topic_performance[0].accuracy == 0.9
