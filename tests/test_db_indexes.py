# File: /tests/test_db_indexes.py | Version: 1.2 | Path: /tests/test_db_indexes.py
from sqlalchemy import inspect
from sqlalchemy.engine import Engine


def _idx_names(engine: Engine, table_name: str) -> set[str]:
    insp = inspect(engine)
    return {i["name"] for i in insp.get_indexes(table_name)}


def test_expected_indexes_exist(db_session):
    engine = db_session.get_bind()

    # single-column indexes come from index=True on columns
    assert "ix_todos_list_id" in _idx_names(engine, "todos")
    assert "ix_list_shares_shared_with_email" in _idx_names(engine, "list_shares")

    # composite ordering indexes added explicitly
    assert "ix_lists_user_position" in _idx_names(engine, "lists")
    assert "ix_todos_list_position" in _idx_names(engine, "todos")
    assert "ix_notifications_user_created_at" in _idx_names(engine, "notifications")


def test_presence_is_unique_per_list_and_user(db_session):
    insp = inspect(db_session.get_bind())
    uniques = {tuple(u["column_names"]) for u in insp.get_unique_constraints("list_presence")}
    assert ("list_id", "user_id") in uniques
