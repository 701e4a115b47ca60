"""
Blog entities and their table mapping.
"""

from __future__ import annotations

from ..core import DateTimeField, Model, StringField

TIME_FORMAT = "%Y-%m-%d %H:%M"


class User(Model):
    username = StringField(nullable=False, unique=True, max_length=50)
    password = StringField(nullable=False, sensitive=True)
    email = StringField(nullable=True)

    class Meta:
        table = "user_tb"


class Post(Model):
    title = StringField(nullable=False)
    content = StringField(nullable=False, max_length=None)
    username = StringField(nullable=False, max_length=50)
    created_at = DateTimeField(auto_now_add=True, nullable=False)

    class Meta:
        table = "board_tb"

    @property
    def time(self) -> str:
        """Creation time for display, empty until the post is saved."""
        if self.created_at is None:
            return ""
        return self.created_at.strftime(TIME_FORMAT)
