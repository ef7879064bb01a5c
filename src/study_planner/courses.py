"""Packaged course catalog with each course's default syllabus."""
import json
from functools import lru_cache
from pathlib import Path

from study_planner.models import SyllabusSubject

CONTENT_DIR = Path(__file__).parent / "content"


@lru_cache(maxsize=1)
def load_catalog() -> tuple[dict, ...]:
    """Read courses.json once per process."""
    data = json.loads((CONTENT_DIR / "courses.json").read_text())
    return tuple(data["courses"])


def list_courses() -> list[dict]:
    return [{"id": c["id"], "name": c["name"], "description": c.get("description", "")} for c in load_catalog()]


def get_course(course_id: str) -> dict | None:
    for course in load_catalog():
        if course["id"] == course_id:
            return course
    return None


def default_syllabus(course_id: str) -> list[SyllabusSubject]:
    """Default syllabus for a catalog course, ordered as listed. Empty for unknown courses."""
    course = get_course(course_id)
    if not course:
        return []
    subjects = []
    for i, raw in enumerate(course.get("default_syllabus", [])):
        subject = SyllabusSubject.from_dict(raw)
        subject.order = i
        for j, topic in enumerate(subject.topics):
            topic.order = j
        subjects.append(subject)
    return subjects
