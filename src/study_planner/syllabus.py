"""Tiered syllabus storage: subjects, topics and subtopics per course."""
import logging
from typing import Optional

from study_planner.context import PlannerContext
from study_planner.courses import default_syllabus
from study_planner.exceptions import CourseNotSelectedError, RecordNotFoundError
from study_planner.models import Subtopic, SyllabusSubject, SyllabusTopic
from study_planner.store import get_document, list_documents, replace_collection, resolve_path, set_document
from study_planner.users import resolve_course_id

logger = logging.getLogger(__name__)


def find_topic(subjects: list[SyllabusSubject], topic_id: str) -> tuple[SyllabusSubject | None, SyllabusTopic | None]:
    for subject in subjects:
        for topic in subject.topics:
            if topic.id == topic_id:
                return subject, topic
    return None, None


def save_syllabus_for_course(ctx: PlannerContext, user_id: str, course_id: str,
                             subjects: list[SyllabusSubject]) -> None:
    """Replace a course's whole syllabus in one batch."""
    docs = {}
    for i, subject in enumerate(subjects):
        subject.order = i
        for j, topic in enumerate(subject.topics):
            topic.order = j
        docs[subject.id] = subject.to_dict()
    replace_collection(ctx.db_path, resolve_path(user_id, "syllabus", course_id=course_id), docs)
    ctx.cache.invalidate("syllabus", user_id, course_id)
    logger.info(
        "Saved syllabus for user=%s course=%s subjects=%d tiers=%s",
        user_id, course_id, len(subjects),
        {t: sum(1 for s in subjects if s.tier == t) for t in (1, 2, 3)},
    )


def save_syllabus(ctx: PlannerContext, user_id: str, subjects: list[SyllabusSubject],
                  course_id: Optional[str] = None) -> str:
    """Save a syllabus to the given course or the user's current one. Returns the course id."""
    resolved = resolve_course_id(ctx, user_id, course_id)
    if not resolved:
        logger.error("Cannot save syllabus: no course for user %s", user_id)
        raise CourseNotSelectedError(user_id)
    save_syllabus_for_course(ctx, user_id, resolved, subjects)
    return resolved


def get_syllabus_for_course(ctx: PlannerContext, user_id: str, course_id: str) -> list[SyllabusSubject]:
    cached = ctx.cache.get("syllabus", user_id, course_id)
    if cached is not None:
        return cached
    docs = list_documents(ctx.db_path, resolve_path(user_id, "syllabus", course_id=course_id))
    subjects = sorted((SyllabusSubject.from_dict(d) for d in docs), key=lambda s: s.order)
    for subject in subjects:
        subject.topics.sort(key=lambda t: t.order)
    if not subjects:
        subjects = default_syllabus(course_id)
        if subjects:
            logger.info("No stored syllabus for course %s, using catalog default", course_id)
    ctx.cache.set("syllabus", user_id, subjects, course_id)
    return subjects


def get_syllabus(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None) -> list[SyllabusSubject]:
    """Syllabus for the given or current course; empty when no course can be resolved."""
    resolved = resolve_course_id(ctx, user_id, course_id)
    if not resolved:
        logger.info("No course for user %s, returning empty syllabus", user_id)
        return []
    return get_syllabus_for_course(ctx, user_id, resolved)


def update_subtopic(ctx: PlannerContext, user_id: str, subject_id: str, topic_id: str,
                    subtopic_id: str, updates: dict, course_id: Optional[str] = None) -> Subtopic:
    """Apply field updates to one subtopic, leaving the rest of the subject untouched.

    ``None`` values in ``updates`` are ignored. A course still running on the
    catalog default syllabus has that default written out first so the
    update has a stored subject to land on.
    """
    path = resolve_path(user_id, "syllabus", subject_id, course_id=course_id)
    doc = get_document(ctx.db_path, path)
    if doc is None and course_id:
        defaults = default_syllabus(course_id)
        stored = list_documents(ctx.db_path, resolve_path(user_id, "syllabus", course_id=course_id))
        if not stored and any(s.id == subject_id for s in defaults):
            save_syllabus_for_course(ctx, user_id, course_id, defaults)
            doc = get_document(ctx.db_path, path)
    if doc is None:
        raise RecordNotFoundError("subject", subject_id)

    subject = SyllabusSubject.from_dict(doc)
    topic = next((t for t in subject.topics if t.id == topic_id), None)
    if topic is None:
        raise RecordNotFoundError("topic", topic_id)
    index = next((i for i, s in enumerate(topic.subtopics) if s.id == subtopic_id), None)
    if index is None:
        raise RecordNotFoundError("subtopic", subtopic_id)

    changes = {k: v for k, v in updates.items() if v is not None}
    topic.subtopics[index] = topic.subtopics[index].copy(**changes)

    set_document(ctx.db_path, path, subject.to_dict())
    ctx.cache.invalidate("syllabus", user_id, course_id)
    logger.info("Updated subtopic %s (topic=%s user=%s)", subtopic_id, topic_id, user_id)
    return topic.subtopics[index]
