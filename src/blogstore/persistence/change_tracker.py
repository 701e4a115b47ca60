"""
Snapshot-based change tracking for managed entities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Tuple

from ..core.model import Model
from ..errors import EntityStateError
from .state import EntityState, ManagedRecord


@dataclass
class TrackerCheckpoint:
    """Tracker contents captured when a savepoint opens."""

    managed: Dict[int, Tuple[ManagedRecord, Dict[str, Any], Dict[str, Any]]] = field(default_factory=dict)
    removed: Dict[int, Tuple[ManagedRecord, Dict[str, Any], Dict[str, Any]]] = field(default_factory=dict)


class ChangeTracker:
    """
    Holds the last-persisted snapshot of every managed entity and the set of
    entities scheduled for deletion.

    Dirty checking is a plain field-by-field comparison between the entity's
    current values and its snapshot; nothing is intercepted at assignment time.
    """

    def __init__(self) -> None:
        self._managed: Dict[int, ManagedRecord] = {}
        self._removed: Dict[int, ManagedRecord] = {}

    # Snapshots -----------------------------------------------------------
    def snapshot(self, entity: Model) -> ManagedRecord:
        if entity.pk is None:
            raise EntityStateError(f"Cannot track {entity!r} before it has a primary key.")
        record = self._managed.get(id(entity))
        if record is None:
            record = ManagedRecord(entity)
            self._managed[id(entity)] = record
        record.snapshot = entity.to_dict()
        record.state = EntityState.MANAGED
        return record

    def record_for(self, entity: Model) -> ManagedRecord | None:
        return self._managed.get(id(entity)) or self._removed.get(id(entity))

    def is_dirty(self, entity: Model) -> bool:
        return bool(self.dirty_fields(entity))

    def dirty_fields(self, entity: Model) -> Set[str]:
        record = self._managed.get(id(entity))
        if record is None:
            raise EntityStateError(f"{entity!r} is not managed by this session.")
        fixed = {f.require_name() for f in entity._meta.get_fields() if f.write_once}
        current = entity.to_dict()
        return {
            name
            for name, value in current.items()
            if name not in fixed and value != record.snapshot.get(name)
        }

    # Lifecycle -----------------------------------------------------------
    def state_of(self, entity: Model) -> EntityState:
        record = self.record_for(entity)
        if record is not None:
            return record.state
        if entity.pk is None:
            return EntityState.TRANSIENT
        return EntityState.DETACHED

    def managed(self) -> List[ManagedRecord]:
        return list(self._managed.values())

    def mark_removed(self, entity: Model) -> ManagedRecord:
        record = self._managed.pop(id(entity), None)
        if record is None:
            raise EntityStateError(
                f"Only managed entities can be removed; {entity!r} is {self.state_of(entity).value}."
            )
        record.state = EntityState.REMOVED
        self._removed[id(entity)] = record
        return record

    def removed(self) -> List[Model]:
        return [record.entity for record in self._removed.values()]

    def is_removed_key(self, model: type, pk: Any) -> bool:
        return any(record.key == (model, pk) for record in self._removed.values())

    def clear_removed(self) -> None:
        for record in self._removed.values():
            record.state = EntityState.DETACHED
        self._removed.clear()

    def detach(self, entity: Model) -> None:
        record = self._managed.pop(id(entity), None) or self._removed.pop(id(entity), None)
        if record is not None:
            record.state = EntityState.DETACHED

    def detach_all(self) -> List[Model]:
        entities = [record.entity for record in self._managed.values()]
        entities.extend(record.entity for record in self._removed.values())
        for record in list(self._managed.values()) + list(self._removed.values()):
            record.state = EntityState.DETACHED
        self._managed.clear()
        self._removed.clear()
        return entities

    # Savepoints ----------------------------------------------------------
    def checkpoint(self) -> TrackerCheckpoint:
        def capture(records: Dict[int, ManagedRecord]):
            return {
                key: (record, dict(record.snapshot), dict(record.entity._field_values))
                for key, record in records.items()
            }

        return TrackerCheckpoint(managed=capture(self._managed), removed=capture(self._removed))

    def restore(self, checkpoint: TrackerCheckpoint) -> Tuple[List[Model], List[Model]]:
        """
        Return the tracker to a checkpoint.

        Entities tracked at the checkpoint get back their snapshot, their in-memory
        values and their state. Entities first tracked after it are detached.
        Returns ``(managed, detached)`` so the caller can fix its identity map.
        """

        known = set(checkpoint.managed) | set(checkpoint.removed)
        detached = [
            record.entity
            for key, record in list(self._managed.items()) + list(self._removed.items())
            if key not in known
        ]
        for entity in detached:
            self.detach(entity)

        self._managed.clear()
        self._removed.clear()
        for target, state, captured in (
            (self._managed, EntityState.MANAGED, checkpoint.managed),
            (self._removed, EntityState.REMOVED, checkpoint.removed),
        ):
            for key, (record, snapshot, values) in captured.items():
                record.snapshot = dict(snapshot)
                record.entity._field_values = dict(values)
                record.state = state
                target[key] = record

        return [record.entity for record in self._managed.values()], detached
