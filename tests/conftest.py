import pytest

from blogstore.adapters import ConnectionConfig, SQLiteAdapter
from blogstore.blog import Post, User
from blogstore.persistence import Session
from blogstore.schema import SchemaBuilder

WRITE_VERBS = ("INSERT", "UPDATE", "DELETE")


class RecordingAdapter(SQLiteAdapter):
    """SQLite adapter that remembers every statement it runs."""

    def __init__(self):
        super().__init__(slow_query_ms=10_000)
        self.statements = []

    def execute(self, sql, params=None):
        self.statements.append((sql, tuple(params or ())))
        return super().execute(sql, params)

    def writes(self):
        return [(sql, params) for sql, params in self.statements if sql.startswith(WRITE_VERBS)]

    def reset(self):
        self.statements.clear()


@pytest.fixture
def count_rows():
    def _count(session, table):
        return session.execute(f'SELECT COUNT(*) FROM "{table}"').fetchall()[0][0]

    return _count


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'blog.db'}"


@pytest.fixture
def adapter():
    return RecordingAdapter()


@pytest.fixture
def session(adapter, db_url):
    session = Session(adapter, connection_config=ConnectionConfig(url=db_url))
    SchemaBuilder(session.dialect).create_all(session, (User, Post))
    adapter.reset()
    yield session
    session.close()


@pytest.fixture
def open_session(db_url):
    """Open further sessions against the same database file."""
    opened = []

    def _open():
        extra = Session(RecordingAdapter(), connection_config=ConnectionConfig(url=db_url))
        opened.append(extra)
        return extra

    yield _open
    for extra in opened:
        extra.close()
