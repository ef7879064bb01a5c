"""Planner context: the database location plus the read cache that fronts it."""
from dataclasses import dataclass, field

from study_planner.cache import ReadCache
from study_planner.db import DEFAULT_DB_PATH, init_db


@dataclass
class PlannerContext:
    db_path: str = DEFAULT_DB_PATH
    cache: ReadCache = field(default_factory=ReadCache)


def open_context(db_path: str = DEFAULT_DB_PATH, cache: ReadCache | None = None) -> PlannerContext:
    """Initialize the database and return a context with a fresh cache."""
    init_db(db_path)
    return PlannerContext(db_path=db_path, cache=cache if cache is not None else ReadCache())
