"""
Persistence layer components: session, identity map, change tracker.
"""

from .change_tracker import ChangeTracker
from .factory import SessionFactory
from .identity_map import IdentityMap
from .session import Session
from .state import EntityState, ManagedRecord
from .transaction import TransactionManager

__all__ = [
    "ChangeTracker",
    "EntityState",
    "IdentityMap",
    "ManagedRecord",
    "Session",
    "SessionFactory",
    "TransactionManager",
]
