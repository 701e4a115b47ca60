"""
Utility helpers for running the blog example end-to-end.
"""

from __future__ import annotations

from typing import Any, Dict, List

from blogstore.adapters import SQLiteAdapter
from blogstore.blog import BoardService, Post, User, UserService
from blogstore.persistence import Session
from blogstore.schema import SchemaBuilder


def bootstrap_session(dsn: str = "sqlite:///:memory:") -> Session:
    """
    Create a SQLite-backed session and ensure the blog tables exist.
    """

    adapter = SQLiteAdapter()
    session = Session(adapter, dsn=dsn)
    SchemaBuilder(session.dialect).create_all(session, (User, Post))
    return session


def seed_sample_data(session: Session) -> Dict[str, List[Dict[str, Any]]]:
    """
    Register two members and let each of them write a post.
    """

    users = UserService(session)
    board = BoardService(session)

    with session.transaction():
        users.join({"username": "ssar", "password": "1234", "email": "ssar@nate.com"})
        users.join({"username": "cos", "password": "1234", "email": "cos@nate.com"})

    ssar = users.login("ssar", "1234")
    cos = users.login("cos", "1234")
    with session.transaction():
        posts = [
            board.create_post(ssar, {"title": "First post", "content": "Hello from ssar."}),
            board.create_post(cos, {"title": "Second post", "content": "Hello from cos."}),
        ]

    return {
        "users": [{"id": caller.id, "username": caller.username} for caller in (ssar, cos)],
        "posts": [post.to_dict() for post in posts],
    }


def fetch_recent_posts(session: Session, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Render the board's newest posts.
    """

    return [
        {"id": post.id, "title": post.title, "username": post.username, "time": post.time}
        for post in BoardService(session).list_posts()[:limit]
    ]


def run_demo(dsn: str = "sqlite:///:memory:") -> List[Dict[str, Any]]:
    """
    Bootstrap the database, seed data, and return a rendered feed.
    """

    session = bootstrap_session(dsn=dsn)
    try:
        seed_sample_data(session)
        return fetch_recent_posts(session)
    finally:
        session.close()


if __name__ == "__main__":
    feed = run_demo("sqlite:///blog_demo.db")
    for entry in feed:
        print(f"#{entry['id']} {entry['title']} by {entry['username']} ({entry['time']})")
