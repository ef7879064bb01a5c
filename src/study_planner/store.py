"""Document store on top of SQLite.

Every record lives at a slash-separated path such as
``users/u1/courses/c1/progress/t1`` and holds a JSON object. The functions
here are the only code that talks SQL; everything above them speaks in
documents and collections.
"""
import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

from study_planner.db import get_connection

logger = logging.getLogger(__name__)

QUERY_OPERATORS = {"<=": "<=", "<": "<", ">=": ">=", ">": ">", "==": "="}


def resolve_path(user_id: str, collection: str, doc_id: Optional[str] = None,
                 course_id: Optional[str] = None) -> str:
    """Map a (user, course, collection, document) address to its storage path.

    A ``course_id`` of None selects the legacy location that predates
    multi-course support. Callers never build paths themselves.
    """
    parts = ["users", user_id]
    if course_id:
        parts += ["courses", course_id]
    parts.append(collection)
    if doc_id is not None:
        parts.append(doc_id)
    return "/".join(parts)


def _split(path: str) -> tuple[str, str]:
    collection, _, doc_id = path.rpartition("/")
    if not collection or not doc_id:
        raise ValueError(f"Not a document path: {path}")
    return collection, doc_id


def _row_to_doc(row) -> dict:
    _, doc_id = _split(row["path"])
    return {"id": doc_id, **json.loads(row["data"])}


def _stamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def get_document(db_path: str, path: str) -> dict | None:
    conn = get_connection(db_path)
    try:
        row = conn.execute("SELECT path, data FROM documents WHERE path = ?", (path,)).fetchone()
    except sqlite3.Error:
        logger.exception("Failed to read document %s", path)
        raise
    finally:
        conn.close()
    return _row_to_doc(row) if row else None


def set_document(db_path: str, path: str, data: dict) -> None:
    """Write a document, replacing any existing content at the path."""
    collection, _ = _split(path)
    payload = {k: v for k, v in data.items() if k != "id"}
    conn = get_connection(db_path)
    try:
        conn.execute(
            """INSERT INTO documents (path, collection, data, updated_at) VALUES (?, ?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET data=excluded.data, updated_at=excluded.updated_at""",
            (path, collection, json.dumps(payload), _stamp()),
        )
        conn.commit()
    except sqlite3.Error:
        logger.exception("Failed to write document %s", path)
        raise
    finally:
        conn.close()


def update_document(db_path: str, path: str, updates: dict) -> bool:
    """Shallow-merge ``updates`` into an existing document.

    Returns False without writing anything when the document does not exist.
    """
    conn = get_connection(db_path)
    try:
        row = conn.execute("SELECT data FROM documents WHERE path = ?", (path,)).fetchone()
        if row is None:
            return False
        merged = json.loads(row["data"])
        merged.update({k: v for k, v in updates.items() if k != "id"})
        conn.execute(
            "UPDATE documents SET data = ?, updated_at = ? WHERE path = ?",
            (json.dumps(merged), _stamp(), path),
        )
        conn.commit()
    except sqlite3.Error:
        logger.exception("Failed to update document %s", path)
        raise
    finally:
        conn.close()
    return True


def delete_document(db_path: str, path: str) -> None:
    conn = get_connection(db_path)
    try:
        conn.execute("DELETE FROM documents WHERE path = ?", (path,))
        conn.commit()
    except sqlite3.Error:
        logger.exception("Failed to delete document %s", path)
        raise
    finally:
        conn.close()


def list_documents(db_path: str, collection: str) -> list[dict]:
    """All documents directly under a collection path, in no particular order."""
    conn = get_connection(db_path)
    try:
        rows = conn.execute(
            "SELECT path, data FROM documents WHERE collection = ?", (collection,)
        ).fetchall()
    except sqlite3.Error:
        logger.exception("Failed to list collection %s", collection)
        raise
    finally:
        conn.close()
    return [_row_to_doc(r) for r in rows]


def query_documents(
    db_path: str,
    collection: str,
    field: Optional[str] = None,
    op: str = "==",
    value: Any = None,
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> list[dict]:
    """Filter a collection on one field, optionally sorted and capped.

    Documents missing the filter field never match, and timestamps compare
    correctly because they are stored as fixed-precision UTC ISO strings.
    """
    sql = "SELECT path, data FROM documents WHERE collection = ?"
    params: list = [collection]
    if field is not None:
        if op not in QUERY_OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        sql += f" AND json_extract(data, ?) {QUERY_OPERATORS[op]} ?"
        params += [f"$.{field}", value]
    if order_by is not None:
        sql += f" ORDER BY json_extract(data, ?) {'DESC' if descending else 'ASC'}"
        params.append(f"$.{order_by}")
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    conn = get_connection(db_path)
    try:
        rows = conn.execute(sql, params).fetchall()
    except sqlite3.Error:
        logger.exception("Failed to query collection %s", collection)
        raise
    finally:
        conn.close()
    return [_row_to_doc(r) for r in rows]


def replace_collection(db_path: str, collection: str, docs: dict[str, dict]) -> None:
    """Delete every document in a collection and write ``docs`` in one transaction."""
    stamp = _stamp()
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute("DELETE FROM documents WHERE collection = ?", (collection,))
            conn.executemany(
                "INSERT INTO documents (path, collection, data, updated_at) VALUES (?, ?, ?, ?)",
                [
                    (f"{collection}/{doc_id}", collection,
                     json.dumps({k: v for k, v in data.items() if k != "id"}), stamp)
                    for doc_id, data in docs.items()
                ],
            )
    except sqlite3.Error:
        logger.exception("Failed to replace collection %s", collection)
        raise
    finally:
        conn.close()
