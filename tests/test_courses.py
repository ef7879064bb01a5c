# tests/test_courses.py
from study_planner.courses import default_syllabus, get_course, list_courses


def test_list_courses():
    ids = [c["id"] for c in list_courses()]
    assert ids == ["gate-cse", "upsc-cse"]


def test_get_unknown_course():
    assert get_course("nope") is None
    assert default_syllabus("nope") == []


def test_default_syllabus_is_ordered():
    subjects = default_syllabus("gate-cse")
    assert [s.order for s in subjects] == list(range(len(subjects)))
    assert subjects[0].id == "algorithms"
    assert subjects[0].tier == 1
    assert [t.id for t in subjects[0].topics] == ["sorting", "graph-algorithms", "dynamic-programming"]
    assert subjects[0].topics[0].subtopics[0].id == "sorting-0"


def test_default_syllabus_returns_fresh_objects():
    first = default_syllabus("gate-cse")
    first[0].name = "changed"
    assert default_syllabus("gate-cse")[0].name == "Algorithms"
