from datetime import datetime, timezone

import pytest

from blogstore.adapters import SQLiteAdapter
from blogstore.blog import Post, User
from blogstore.errors import EntityStateError, IntegrityError, NotFoundError
from blogstore.persistence import EntityState, Session
from blogstore.schema import SchemaBuilder


def make_post(**overrides):
    values = {"title": "A", "content": "B", "username": "bob"}
    values.update(overrides)
    return Post(**values)


def test_save_assigns_key_and_created_at(session):
    post = session.save(make_post())
    assert post.id is not None
    assert post.created_at is not None
    assert session.state_of(post) is EntityState.MANAGED


def test_save_then_find_returns_same_instance(session, adapter):
    post = session.save(make_post())
    adapter.reset()
    assert session.find_by_id(Post, post.id) is post
    assert adapter.statements == []


def test_loading_twice_returns_same_instance(session, open_session):
    with session.transaction():
        saved = session.save(make_post())

    other = open_session()
    first = other.find_by_id(Post, saved.id)
    second = other.find_by_id(Post, saved.id)
    listed = other.list(Post)
    assert first is second
    assert listed[0] is first
    assert first is not saved


def test_find_by_id_accepts_string_keys(session):
    post = session.save(make_post())
    assert session.find_by_id(Post, str(post.id)) is post


def test_find_by_id_missing_returns_none(session):
    assert session.find_by_id(Post, 999) is None


def test_find_by_id_with_malformed_key_returns_none(session):
    session.save(make_post())
    assert session.find_by_id(Post, "abc") is None
    assert session.find_by_id(Post, None) is None


def test_list_orders_by_primary_key_descending(session):
    older = session.save(make_post(title="older"))
    newer = session.save(make_post(title="newer"))
    assert session.list(Post) == [newer, older]


def test_list_accepts_explicit_ordering_and_filters(session):
    session.save(make_post(title="b", username="ann"))
    session.save(make_post(title="a", username="bob"))
    session.save(make_post(title="c", username="bob"))
    assert [p.title for p in session.list(Post, "title")] == ["a", "b", "c"]
    assert [p.title for p in session.list(Post, username="bob")] == ["c", "a"]


def test_flush_updates_only_changed_fields(session, adapter):
    post = session.save(make_post())
    adapter.reset()

    post.title = "C"
    assert session.dirty_fields(post) == {"title"}
    session.flush()

    writes = adapter.writes()
    assert writes == [('UPDATE "board_tb" SET "title" = ? WHERE "id" = ?', ("C", post.id))]


def test_second_flush_without_changes_is_a_no_op(session, adapter):
    post = session.save(make_post())
    post.title = "C"
    session.flush()
    adapter.reset()

    session.flush()
    assert adapter.writes() == []
    assert not session.is_dirty(post)


def test_assigning_the_same_value_is_not_dirty(session, adapter):
    post = session.save(make_post())
    adapter.reset()
    post.title = "A"
    session.commit()
    assert adapter.writes() == []


def test_update_applies_changes_and_defers_the_write(session, adapter):
    post = session.save(make_post())
    adapter.reset()

    updated = session.update(Post, post.id, {"title": "C"})
    assert updated is post
    assert adapter.writes() == []

    session.commit()
    row = session.execute('SELECT title, content FROM "board_tb" WHERE id = ?', (post.id,)).fetchall()[0]
    assert (row["title"], row["content"]) == ("C", "B")


def test_update_missing_key_raises_not_found(session):
    with pytest.raises(NotFoundError) as excinfo:
        session.update(Post, 404, {"title": "C"})
    assert excinfo.value.pk == 404


def test_update_rejects_unknown_fields(session):
    post = session.save(make_post())
    with pytest.raises(KeyError):
        session.update(Post, post.id, {"headline": "C"})


def test_delete_by_id_hides_entity_before_and_after_flush(session):
    post = session.save(make_post())
    session.delete_by_id(Post, post.id)
    assert session.find_by_id(Post, post.id) is None
    assert post not in session.list(Post)
    assert session.state_of(post) is EntityState.REMOVED

    session.flush()
    assert session.find_by_id(Post, post.id) is None
    assert session.state_of(post) is EntityState.DETACHED


def test_delete_by_id_missing_raises_not_found(session):
    with pytest.raises(NotFoundError):
        session.delete_by_id(Post, 12345)


def test_mutated_then_deleted_issues_only_delete(session, adapter):
    with session.transaction():
        post = session.save(make_post())
    adapter.reset()

    post.title = "changed"
    session.delete(post)
    session.commit()

    assert [sql.split(" ", 1)[0] for sql, _ in adapter.writes()] == ["DELETE"]


def test_save_then_delete_runs_insert_then_delete(session, adapter, count_rows):
    post = session.save(make_post())
    session.delete(post)
    session.commit()

    assert [sql.split(" ", 1)[0] for sql, _ in adapter.writes()] == ["INSERT", "DELETE"]
    assert count_rows(session, "board_tb") == 0


def test_save_then_delete_then_rollback_leaves_nothing(session, count_rows):
    post = session.save(make_post())
    session.delete(post)
    session.rollback()
    assert count_rows(session, "board_tb") == 0
    assert session.state_of(post) is EntityState.DETACHED


def test_save_rejects_managed_entities(session):
    post = session.save(make_post())
    with pytest.raises(EntityStateError):
        session.save(post)


def test_duplicate_username_surfaces_integrity_error(session):
    session.save(User(username="bob", password="pw"))
    with pytest.raises(IntegrityError):
        session.save(User(username="bob", password="other"))


def test_rejected_insert_keeps_the_transaction_usable(session, adapter, open_session):
    session.save(User(username="bob", password="pw"))
    with pytest.raises(IntegrityError):
        session.save(User(username="bob", password="other"))
    ann = session.save(User(username="ann", password="pw"))
    session.commit()

    assert any(sql.startswith("ROLLBACK TO SAVEPOINT") for sql, _ in adapter.statements)
    other = open_session()
    assert other.find_by_id(User, ann.id).username == "ann"
    assert [u.username for u in other.list(User, "username")] == ["ann", "bob"]


def test_save_stamps_created_at_even_when_preset(session):
    preset = datetime(2001, 1, 1, tzinfo=timezone.utc)
    post = session.save(make_post(created_at=preset))
    assert post.created_at > preset


def test_created_at_cannot_change_after_insert(session, adapter, open_session):
    post = session.save(make_post())
    stamped = post.created_at
    adapter.reset()

    with pytest.raises(ValueError):
        session.update(Post, post.id, {"created_at": datetime(2000, 1, 1, tzinfo=timezone.utc)})
    assert post.created_at == stamped
    session.commit()

    assert adapter.writes() == []
    assert open_session().find_by_id(Post, post.id).created_at == stamped


def test_missing_required_field_surfaces_integrity_error(session):
    post = Post(title="A", username="bob")
    with pytest.raises(IntegrityError):
        session.save(post)
    assert post.id is None
    assert post.created_at is None
    assert session.state_of(post) is EntityState.TRANSIENT


def test_find_one_by_returns_none_when_nothing_matches(session):
    session.save(User(username="bob", password="secret"))
    assert session.find_one_by(User, username="bob", password="wrong") is None


def test_context_manager_commits_on_success(adapter, db_url, open_session):
    with Session(adapter, dsn=db_url) as scoped:
        SchemaBuilder(scoped.dialect).create_all(scoped, (User, Post))
        post = scoped.save(make_post())
        post.title = "C"

    other = open_session()
    assert other.find_by_id(Post, post.id).title == "C"
    assert post not in other


def test_context_manager_rolls_back_on_error(session, db_url, open_session, count_rows):
    with pytest.raises(RuntimeError):
        with Session(SQLiteAdapter(), dsn=db_url) as scoped:
            scoped.save(make_post())
            raise RuntimeError("boom")

    assert count_rows(open_session(), "board_tb") == 0


def test_close_detaches_everything(session):
    post = session.save(make_post())
    session.close()
    assert session.state_of(post) is EntityState.DETACHED
    assert len(session.identity_map) == 0


def test_list_keeps_in_memory_changes(session):
    post = session.save(make_post())
    post.title = "unsaved"
    assert session.list(Post)[0].title == "unsaved"
    assert session.is_dirty(post)


def test_blog_round_trip(session):
    first = session.save(make_post(title="first"))
    post = session.save(make_post())
    assert post.id is not None and post.created_at is not None
    assert session.find_by_id(Post, post.id).title == "A"
    assert session.list(Post)[:2] == [post, first]

    session.update(Post, post.id, {"title": "C"})
    session.flush()
    found = session.find_by_id(Post, post.id)
    assert (found.title, found.content) == ("C", "B")

    session.delete_by_id(Post, post.id)
    assert session.find_by_id(Post, post.id) is None
