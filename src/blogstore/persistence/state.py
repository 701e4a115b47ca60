"""
Entity lifecycle states relative to a session.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from ..core.model import Model


class EntityState(enum.Enum):
    TRANSIENT = "transient"
    MANAGED = "managed"
    REMOVED = "removed"
    DETACHED = "detached"


@dataclass
class ManagedRecord:
    """
    An entity paired with its last-known-persisted field values.
    """

    entity: "Model"
    snapshot: Dict[str, Any] = field(default_factory=dict)
    state: EntityState = EntityState.MANAGED

    @property
    def key(self) -> tuple[type, Any]:
        return (type(self.entity), self.entity.pk)
