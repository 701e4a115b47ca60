"""
Board and membership services enforcing authentication and ownership.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..errors import IntegrityError, NotFoundError
from ..persistence import Session
from ..utils import get_logger

from .models import Post, User
from .ownership import CallerIdentity, is_owner
from .repositories import PostRepository, UserRepository

logger = get_logger("blog.service")


class ServiceError(Exception):
    """Base class for authorization failures raised by the blog services."""


class AuthenticationRequired(ServiceError):
    """Raised when an operation needs a caller and none was given."""


class PermissionDenied(ServiceError):
    """Raised when the caller does not own the entity it tries to change."""


def _require_caller(caller: Optional[CallerIdentity]) -> CallerIdentity:
    if caller is None:
        raise AuthenticationRequired("Sign in to continue.")
    return caller


class BoardService:
    """
    Post operations. Writes are left pending in the session until it commits.
    """

    def __init__(self, session: Session) -> None:
        self.posts = PostRepository(session)

    def list_posts(self) -> List[Post]:
        return self.posts.find_all()

    def post_detail(self, post_id: Any) -> Post:
        post = self.posts.find_by_id(post_id)
        if post is None:
            raise NotFoundError(Post, post_id)
        return post

    def create_post(self, caller: Optional[CallerIdentity], fields: Mapping[str, Any]) -> Post:
        caller = _require_caller(caller)
        post = Post.from_fields(fields)
        post.username = caller.username
        return self.posts.save(post)

    def update_post(
        self, caller: Optional[CallerIdentity], post_id: Any, fields: Mapping[str, Any]
    ) -> Post:
        caller = _require_caller(caller)
        post = self.post_detail(post_id)
        if not is_owner(post, caller):
            logger.info("User %r may not edit post %r", caller.username, post_id)
            raise PermissionDenied("Only the author can edit this post.")
        # Authorship stays with the original poster.
        changes = {name: value for name, value in fields.items() if name != "username"}
        return self.posts.update(post_id, changes)

    def delete_post(self, caller: Optional[CallerIdentity], post_id: Any) -> None:
        caller = _require_caller(caller)
        post = self.post_detail(post_id)
        if not is_owner(post, caller):
            logger.info("User %r may not delete post %r", caller.username, post_id)
            raise PermissionDenied("Only the author can delete this post.")
        self.posts.delete_by_id(post_id)


class UserService:
    def __init__(self, session: Session) -> None:
        self.users = UserRepository(session)

    def join(self, fields: Mapping[str, Any]) -> User:
        """Register a new user; usernames are unique."""
        user = User.from_fields(fields)
        if user.username is not None and self.users.find_by_username(user.username) is not None:
            raise IntegrityError(f"Username {user.username!r} is already taken.")
        return self.users.save(user)

    def login(self, username: str, password: str) -> Optional[CallerIdentity]:
        user = self.users.find_by_username_and_password(username, password)
        if user is None:
            return None
        return CallerIdentity.of(user)
