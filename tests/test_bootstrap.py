from __future__ import annotations

import logging

from sqlalchemy import create_engine, inspect

from contact_server.bootstrap import create_tables


def test_create_tables_twice_is_idempotent(engine) -> None:
    assert create_tables(engine) is True
    assert create_tables(engine) is True

    assert inspect(engine).get_table_names() == ["contacts"]


def test_create_tables_creates_expected_columns(engine) -> None:
    create_tables(engine)

    columns = {column['name']: column for column in inspect(engine).get_columns("contacts")}
    assert set(columns) == {"id", "name", "email", "message", "phone", "company", "purpose", "created_at"}
    assert columns["name"]["nullable"] is False
    assert columns["phone"]["nullable"] is True


def test_create_tables_logs_and_returns_false_when_unreachable(unreachable_engine, caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="bootstrap"):
        assert create_tables(unreachable_engine) is False

    assert any("Database initialization error" in record.getMessage() for record in caplog.records)


def test_create_tables_contains_non_database_errors(caplog) -> None:
    def creator():
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    engine = create_engine("sqlite://", creator=creator)

    with caplog.at_level(logging.ERROR, logger="bootstrap"):
        assert create_tables(engine) is False

    assert any(record.exc_info for record in caplog.records if record.name == "bootstrap")
    engine.dispose()
