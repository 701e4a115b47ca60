"""
Blog domain: posts, users and the services that operate on them.
"""

from .models import Post, User
from .ownership import CallerIdentity, is_owner
from .repositories import PostRepository, UserRepository
from .service import (
    AuthenticationRequired,
    BoardService,
    PermissionDenied,
    ServiceError,
    UserService,
)

__all__ = [
    "AuthenticationRequired",
    "BoardService",
    "CallerIdentity",
    "PermissionDenied",
    "Post",
    "PostRepository",
    "ServiceError",
    "User",
    "UserRepository",
    "UserService",
    "is_owner",
]
