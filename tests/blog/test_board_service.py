import pytest

from blogstore.blog import (
    AuthenticationRequired,
    BoardService,
    PermissionDenied,
    Post,
    UserService,
)
from blogstore.errors import IntegrityError, NotFoundError


@pytest.fixture
def members(session):
    users = UserService(session)
    with session.transaction():
        users.join({"username": "bob", "password": "1234", "email": "bob@example.com"})
        users.join({"username": "ann", "password": "abcd"})
    return users.login("bob", "1234"), users.login("ann", "abcd")


@pytest.fixture
def board(session):
    return BoardService(session)


def test_join_rejects_taken_username(session, members):
    with pytest.raises(IntegrityError):
        UserService(session).join({"username": "bob", "password": "other"})


def test_login_with_wrong_password_returns_none(session, members):
    assert UserService(session).login("bob", "wrong") is None


def test_create_post_records_the_caller_as_author(board, members):
    bob, _ = members
    post = board.create_post(bob, {"title": "A", "content": "B", "username": "mallory", "id": 99})
    assert post.username == "bob"
    assert post.id != 99
    assert board.list_posts() == [post]


def test_create_post_requires_a_caller(board):
    with pytest.raises(AuthenticationRequired):
        board.create_post(None, {"title": "A", "content": "B"})


def test_post_detail_missing_raises_not_found(board):
    with pytest.raises(NotFoundError):
        board.post_detail(404)


def test_author_can_update_post(session, board, members):
    bob, _ = members
    post = board.create_post(bob, {"title": "A", "content": "B"})
    board.update_post(bob, post.id, {"title": "C", "username": "ann"})
    session.commit()

    assert board.post_detail(post.id).title == "C"
    assert post.username == "bob"


def test_other_users_cannot_update_or_delete(board, members):
    bob, ann = members
    post = board.create_post(bob, {"title": "A", "content": "B"})
    with pytest.raises(PermissionDenied):
        board.update_post(ann, post.id, {"title": "hijacked"})
    with pytest.raises(PermissionDenied):
        board.delete_post(ann, post.id)
    assert post.title == "A"
    assert board.post_detail(post.id) is post


def test_anonymous_callers_cannot_delete(board, members):
    bob, _ = members
    post = board.create_post(bob, {"title": "A", "content": "B"})
    with pytest.raises(AuthenticationRequired):
        board.delete_post(None, post.id)


def test_author_can_delete_post(session, board, members):
    bob, _ = members
    post = board.create_post(bob, {"title": "A", "content": "B"})
    board.delete_post(bob, post.id)
    with pytest.raises(NotFoundError):
        board.post_detail(post.id)

    session.commit()
    assert session.find_by_id(Post, post.id) is None
    with pytest.raises(NotFoundError):
        board.delete_post(bob, post.id)
