# tests/test_context.py
from study_planner.cache import ReadCache
from study_planner.context import open_context
from study_planner.store import get_document, set_document


def test_open_context_keeps_injected_cache(tmp_db, clock):
    cache = ReadCache(clock=clock)
    assert len(cache) == 0
    ctx = open_context(tmp_db, cache=cache)
    assert ctx.cache is cache


def test_open_context_builds_a_cache_when_none_given(tmp_db):
    ctx = open_context(tmp_db)
    assert isinstance(ctx.cache, ReadCache)
    assert open_context(tmp_db).cache is not ctx.cache


def test_open_context_initializes_database(tmp_db):
    ctx = open_context(tmp_db)
    set_document(ctx.db_path, "users/u1", {"display_name": "Asha"})
    assert get_document(ctx.db_path, "users/u1")["display_name"] == "Asha"
