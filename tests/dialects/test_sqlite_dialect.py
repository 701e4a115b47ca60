import pytest

from blogstore.dialects import SQLiteDialect, StandardDialect


def test_sqlite_identifier_quoting():
    dialect = SQLiteDialect()
    assert dialect.quote_identifier("board_tb") == '"board_tb"'
    assert dialect.quote_identifier('bad"name') == '"bad""name"'
    assert dialect.format_table("user_tb") == '"user_tb"'


def test_sqlite_limit_and_placeholder():
    dialect = SQLiteDialect()
    assert dialect.limit_clause(2) == "LIMIT 2"
    assert dialect.placeholder == "?"


def test_sqlite_column_definitions():
    dialect = SQLiteDialect()
    assert dialect.render_column_definition("title", "TEXT", nullable=False) == '"title" TEXT NOT NULL'
    assert dialect.render_column_definition("email", "TEXT", nullable=True) == '"email" TEXT'
    assert dialect.render_auto_increment_column("id") == '"id" INTEGER PRIMARY KEY AUTOINCREMENT'
    assert dialect.capabilities.supports_returning is False


def test_standard_dialect_has_no_auto_increment():
    with pytest.raises(NotImplementedError):
        StandardDialect().render_auto_increment_column("id")
