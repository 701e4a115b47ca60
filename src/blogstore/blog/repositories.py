"""
Repositories exposing the blog's persistence operations over a session.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..persistence import Session

from .models import Post, User

POST_UPDATABLE_FIELDS = ("title", "content", "username")


class PostRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, post: Post) -> Post:
        return self.session.save(post)

    def find_by_id(self, post_id: Any) -> Optional[Post]:
        return self.session.find_by_id(Post, post_id)

    def find_all(self) -> List[Post]:
        """All posts, newest first."""
        return self.session.list(Post)

    def update(self, post_id: Any, changes: Mapping[str, Any]) -> Post:
        """
        Copy the editable fields present in ``changes`` onto the post.

        Keys outside :data:`POST_UPDATABLE_FIELDS` are ignored; the write itself
        happens when the session flushes.
        """
        accepted = {name: changes[name] for name in POST_UPDATABLE_FIELDS if name in changes}
        return self.session.update(Post, post_id, accepted)

    def delete_by_id(self, post_id: Any) -> None:
        self.session.delete_by_id(Post, post_id)


class UserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, user: User) -> User:
        return self.session.save(user)

    def find_by_id(self, user_id: Any) -> Optional[User]:
        return self.session.find_by_id(User, user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        return self.session.find_one_by(User, username=username)

    def find_by_username_and_password(self, username: str, password: str) -> Optional[User]:
        # Passwords are compared as stored; hashing belongs to the caller.
        return self.session.find_one_by(User, username=username, password=password)
