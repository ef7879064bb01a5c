import json
from datetime import datetime, timezone
from unittest.mock import patch

from study_planner import app
from study_planner.app import COMMANDS, cmd_course, cmd_log, cmd_mock, cmd_queue, cmd_syllabus, load_syllabus_file
from study_planner.context import open_context
from study_planner.daily_log import get_daily_log, get_unified_progress
from study_planner.mock_tests import get_mock_tests
from study_planner.progress import get_topic_progress, update_topic_progress
from study_planner.syllabus import get_syllabus
from study_planner.users import create_user, get_user


def test_load_syllabus_json_list(tmp_path):
    f = tmp_path / "syllabus.json"
    f.write_text(json.dumps([{"id": "math", "name": "Math", "tier": 1,
                              "topics": [{"id": "algebra", "name": "Algebra", "subtopics": ["Rings"]}]}]))
    subjects = load_syllabus_file(str(f))
    assert subjects[0].tier == 1
    assert subjects[0].topics[0].subtopics[0].id == "algebra-0"


def test_load_syllabus_yaml_mapping(tmp_path):
    f = tmp_path / "syllabus.yaml"
    f.write_text(
        "subjects:\n"
        "  - id: history\n"
        "    name: History\n"
        "    topics:\n"
        "      - id: ancient\n"
        "        name: Ancient India\n"
    )
    subjects = load_syllabus_file(str(f))
    assert [s.id for s in subjects] == ["history"]
    assert subjects[0].tier == 3


def test_cmd_syllabus_saves_to_current_course(tmp_path, ctx):
    create_user(ctx, "u1", current_course_id="custom")
    f = tmp_path / "syllabus.json"
    f.write_text(json.dumps({"subjects": [{"id": "math", "name": "Math"}]}))
    with patch("study_planner.app.Prompt.ask", return_value=str(f)):
        cmd_syllabus(ctx, "u1")
    assert [s.id for s in get_syllabus(ctx, "u1")] == ["math"]


def test_cmd_course_switches_course(ctx):
    create_user(ctx, "u1")
    with patch("study_planner.app.Prompt.ask", return_value="upsc-cse"):
        cmd_course(ctx, "u1")
    assert get_user(ctx, "u1").current_course_id == "upsc-cse"


def test_cmd_queue_with_nothing_due(ctx):
    create_user(ctx, "u1", current_course_id="gate-cse")
    with patch.object(app.console, "print") as printed:
        cmd_queue(ctx, "u1")
    assert "Nothing due" in printed.call_args[0][0]


def test_main_quits_and_creates_user(tmp_db):
    with patch("study_planner.app.Prompt.ask", return_value="quit"), \
            patch("study_planner.app.configure_logging"):
        app.main(["--db", tmp_db, "--user", "asha"])
    assert get_user(open_context(tmp_db), "asha") is not None


def test_every_menu_command_is_wired():
    assert set(COMMANDS) == {"queue", "review", "log", "progress", "mock", "syllabus", "import", "course"}


def test_cmd_mock_records_test_and_adjusts_mastery(ctx, now):
    create_user(ctx, "u1", current_course_id="gate-cse")
    update_topic_progress(ctx, "u1", "sorting", {"mastery_score": 50}, "gate-cse", now=now)
    with patch("study_planner.app.Prompt.ask", side_effect=["Full length 1", "testbook", "sorting", ""]), \
            patch("study_planner.app.IntPrompt.ask", side_effect=[90]):
        cmd_mock(ctx, "u1")
    tests = get_mock_tests(ctx, "u1", course_id="gate-cse")
    assert [t.test_name for t in tests] == ["Full length 1"]
    assert tests[0].topic_performance[0].accuracy == 0.9
    assert get_topic_progress(ctx, "u1", "sorting", "gate-cse").mastery_score == 60


def test_cmd_log_dates_log_and_streak_from_one_clock(ctx):
    create_user(ctx, "u1", current_course_id="gate-cse")
    late = datetime(2024, 3, 15, 23, 59, tzinfo=timezone.utc)
    with patch("study_planner.app.utcnow", return_value=late), \
            patch("study_planner.app.Prompt.ask", side_effect=["sorting", "practice", "", "good day"]), \
            patch("study_planner.app.IntPrompt.ask", side_effect=[45, 4, 7, 8]):
        cmd_log(ctx, "u1")
    log = get_daily_log(ctx, "u1", "2024-03-15")
    assert log.study_minutes == 45
    assert log.note == "good day"
    assert get_unified_progress(ctx, "u1").updated_at == late
    assert get_topic_progress(ctx, "u1", "sorting", "gate-cse").total_study_time == 45
