"""
Ownership predicate consumed by the authorization layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core import Model

from .models import Post, User


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated caller, passed explicitly into operations that need it."""

    id: int
    username: str

    @classmethod
    def of(cls, user: User) -> "CallerIdentity":
        if user.pk is None:
            raise ValueError("Only persisted users can act as callers.")
        return cls(id=user.pk, username=user.username)


def is_owner(entity: Model, caller: Optional[CallerIdentity]) -> bool:
    """
    Answer whether ``caller`` owns ``entity``. Anonymous callers own nothing.

    Posts belong to the user whose username they carry; user records belong to
    themselves.
    """

    if caller is None:
        return False
    if isinstance(entity, Post):
        return entity.username == caller.username
    if isinstance(entity, User):
        return entity.pk is not None and entity.pk == caller.id
    raise TypeError(f"Ownership is not defined for {type(entity).__name__}.")
