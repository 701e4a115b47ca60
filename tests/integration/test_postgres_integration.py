import os
import uuid

import pytest

from blogstore.adapters import ConnectionConfig
from blogstore.adapters.postgres import PostgresAdapter
from blogstore.core import Model, StringField
from blogstore.errors import IntegrityError
from blogstore.persistence import Session
from blogstore.schema import SchemaBuilder


def _require_postgres_dsn():
    try:
        import psycopg  # noqa: F401
    except ImportError:
        pytest.skip("psycopg driver not installed")
    dsn = os.getenv("BLOGSTORE_POSTGRES_DSN")
    if not dsn:
        pytest.skip("BLOGSTORE_POSTGRES_DSN not set; skipping Postgres integration test")
    return dsn


def _scratch_model():
    suffix = uuid.uuid4().hex[:8]

    class Note(Model):
        author = StringField(nullable=False, unique=True)
        body = StringField(max_length=None)

        class Meta:
            table = f"blogstore_it_{suffix}"

    return Note


def test_postgres_session_round_trip():
    dsn = _require_postgres_dsn()
    Note = _scratch_model()
    adapter = PostgresAdapter()
    try:
        adapter.connect(ConnectionConfig.from_dsn(dsn))
    except Exception as exc:  # pragma: no cover - environment dependent
        pytest.skip(f"Cannot connect to Postgres for integration test: {exc}")
    adapter.close()

    session = Session(PostgresAdapter(), dsn=dsn)
    try:
        with session.transaction():
            SchemaBuilder(session.dialect).create_all(session, (Note,))
            note = session.save(Note(author="bob", body="hello"))
            assert note.id is not None

        note.body = "edited"
        session.commit()
        assert session.list(Note) == [note]

        with pytest.raises(IntegrityError):
            with session.transaction():
                session.save(Note(author="bob", body="again"))

        session.delete_by_id(Note, note.id)
        session.commit()
        assert session.find_by_id(Note, note.id) is None
    finally:
        session.execute(f'DROP TABLE IF EXISTS "{Note._meta.table_name}"')
        session.adapter.commit()
        session.close()
