"""
Identity map ensuring a single in-memory instance per row.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Dict, Optional, Tuple, Type

from ..core.model import Model


class IdentityMap:
    """
    Stores model instances keyed by (model, primary key).

    Lives exactly as long as the owning session; there is no expiry.
    """

    def __init__(self) -> None:
        self._store: Dict[Tuple[Type[Model], Any], Model] = {}
        self._lock = RLock()

    def get(self, model: Type[Model], pk: Any) -> Optional[Model]:
        with self._lock:
            return self._store.get((model, pk))

    def put(self, model: Type[Model], pk: Any, instance: Model) -> None:
        if pk is None:
            raise ValueError("Cannot map an instance without a primary key.")
        with self._lock:
            existing = self._store.get((model, pk))
            if existing is not None and existing is not instance:
                raise ValueError(f"{model.__name__} {pk!r} is already mapped to another instance.")
            self._store[(model, pk)] = instance

    def evict(self, model: Type[Model], pk: Any) -> Optional[Model]:
        with self._lock:
            return self._store.pop((model, pk), None)

    def add(self, instance: Model) -> None:
        self.put(type(instance), instance.pk, instance)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, instance: Model) -> bool:
        pk = instance.pk
        if pk is None:
            return False
        with self._lock:
            return self._store.get((type(instance), pk)) is instance

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
