"""Study notes imported from local files, matched to syllabus topics."""
import json
import logging
import re
import uuid
from pathlib import Path
from typing import Optional

import yaml
from bs4 import BeautifulSoup
from docx import Document
from PyPDF2 import PdfReader

from study_planner.context import PlannerContext
from study_planner.models import Note, SyllabusSubject, utcnow
from study_planner.store import delete_document, list_documents, resolve_path, set_document
from study_planner.syllabus import get_syllabus

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 4


NOTE_SUFFIXES = (".txt", ".md", ".json", ".yaml", ".yml", ".pdf", ".docx", ".html", ".htm")


def _structured_text(data) -> str:
    # Study notes kept as JSON/YAML are usually nested outlines; flatten them line by line.
    if isinstance(data, dict):
        return "\n".join(f"{key}: {_structured_text(value)}" for key, value in data.items())
    if isinstance(data, list):
        return "\n".join(_structured_text(item) for item in data)
    return "" if data is None else str(data)


def read_file_content(file_path: str) -> str:
    """Extract the text of a note file.

    Raises ValueError for file types that cannot be read as notes.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix not in NOTE_SUFFIXES:
        raise ValueError(f"Unsupported note file type {suffix or '(none)'}: {path.name}")

    if suffix in (".txt", ".md"):
        return path.read_text()
    if suffix == ".json":
        return _structured_text(json.loads(path.read_text()))
    if suffix in (".yaml", ".yml"):
        return _structured_text(yaml.safe_load(path.read_text()))
    if suffix == ".pdf":
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    if suffix == ".docx":
        return "\n".join(p.text for p in Document(file_path).paragraphs)
    return BeautifulSoup(path.read_text(), "html.parser").get_text(separator="\n")


def _keywords(text: str) -> set[str]:
    return {w for w in re.findall(r"[a-z0-9']+", text.lower()) if len(w) >= MIN_KEYWORD_LENGTH}


def categorize_content(text: str, subjects: list[SyllabusSubject]) -> str | None:
    """Pick the topic whose name and subtopic names share the most words with the text."""
    words = _keywords(text)
    scores = {}
    for subject in subjects:
        for topic in subject.topics:
            vocab = _keywords(topic.name)
            for sub in topic.subtopics:
                vocab |= _keywords(sub.name)
            scores[topic.id] = len(vocab & words)
    if not scores:
        return None
    best = max(scores, key=scores.get)
    return best if scores[best] > 0 else None


def import_note(ctx: PlannerContext, user_id: str, file_path: str, course_id: Optional[str] = None,
                topic_id: Optional[str] = None) -> Note:
    """Read a file into a note. Auto-assigns a topic if topic_id not provided."""
    content = read_file_content(file_path)
    if topic_id is None:
        topic_id = categorize_content(content, get_syllabus(ctx, user_id, course_id))
    note = Note(
        id=uuid.uuid4().hex,
        filename=Path(file_path).name,
        course_id=course_id,
        topic_id=topic_id,
        content_text=content,
        length=len(content),
        imported_at=utcnow(),
    )
    set_document(ctx.db_path, resolve_path(user_id, "notes", note.id, course_id=course_id), note.to_dict())
    ctx.cache.invalidate("notes", user_id, course_id)
    logger.info("Imported note %s (%d chars) for user=%s topic=%s", note.filename, note.length, user_id, topic_id)
    return note


def list_notes(ctx: PlannerContext, user_id: str, course_id: Optional[str] = None,
               topic_id: Optional[str] = None) -> list[Note]:
    """Notes for (user, course), newest first, optionally for one topic. Cached for five minutes."""
    notes = ctx.cache.get("notes", user_id, course_id)
    if notes is None:
        docs = list_documents(ctx.db_path, resolve_path(user_id, "notes", course_id=course_id))
        notes = sorted((Note.from_dict(d) for d in docs), key=lambda n: n.imported_at, reverse=True)
        ctx.cache.set("notes", user_id, notes, course_id)
    if topic_id is not None:
        return [n for n in notes if n.topic_id == topic_id]
    return list(notes)


def delete_note(ctx: PlannerContext, user_id: str, note_id: str, course_id: Optional[str] = None) -> None:
    delete_document(ctx.db_path, resolve_path(user_id, "notes", note_id, course_id=course_id))
    ctx.cache.invalidate("notes", user_id, course_id)
    logger.info("Deleted note %s for user=%s", note_id, user_id)
