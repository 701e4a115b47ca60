"""
Session management coordinating the adapter, identity map and change tracker.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Set, Type, TypeVar

from ..adapters.base import ConnectionConfig, DatabaseAdapter
from ..core.model import Model
from ..errors import EntityStateError, NotFoundError, TransactionError
from ..query import QueryExecutor, SQLCompiler, Statement
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from .change_tracker import ChangeTracker, TrackerCheckpoint
from .identity_map import IdentityMap
from .state import EntityState
from .transaction import TransactionManager

TModel = TypeVar("TModel", bound=Model)


class Session:
    """
    Unit of persistence for one request or transaction.

    Inserts happen eagerly in :meth:`save`; updates are derived from snapshot
    diffs and, together with deletes, are written by :meth:`flush`, which runs
    automatically on :meth:`commit`. Loaded rows are coalesced through the
    identity map so each row has exactly one instance per session.

    Typical use::

        with Session(SQLiteAdapter(), dsn="sqlite:///blog.db") as session:
            post = session.save(Post(title="A", content="B", username="bob"))
            post.title = "C"
        # committed: INSERT at save(), UPDATE of "title" at commit
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        *,
        connection_config: Optional[ConnectionConfig] = None,
        dsn: Optional[str] = None,
        identity_map: Optional[IdentityMap] = None,
        change_tracker: Optional[ChangeTracker] = None,
    ) -> None:
        if connection_config is not None and dsn is not None:
            raise ValueError("Pass either connection_config or dsn, not both.")
        if dsn is not None:
            connection_config = ConnectionConfig.from_dsn(dsn)
        self.adapter = adapter
        self.dialect = adapter.dialect
        self.connection_config = connection_config or ConnectionConfig(url="sqlite:///:memory:")
        self.identity_map = identity_map if identity_map is not None else IdentityMap()
        self.change_tracker = change_tracker if change_tracker is not None else ChangeTracker()
        self.transaction_manager = TransactionManager(adapter, self.dialect)
        self.queries = QueryExecutor(self._run, self.dialect, self._materialize)
        self._checkpoints: List[Optional[TrackerCheckpoint]] = []
        self.logger = get_logger("persistence.session")
        self.adapter.connect(self.connection_config)

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "Session":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type:
                if self.transaction_manager.active:
                    self.rollback()
            else:
                self.commit()
        finally:
            self.close()

    def __contains__(self, instance: Model) -> bool:
        return instance in self.identity_map

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        self.transaction_manager.begin()
        nested = self.transaction_manager.depth > 1
        self._checkpoints.append(self.change_tracker.checkpoint() if nested else None)

    def commit(self) -> None:
        if not self.transaction_manager.active:
            self.begin()
        self.flush()
        try:
            self.transaction_manager.commit()
        except TransactionError as exc:
            self._abort(exc)
            raise
        self._checkpoints.pop()

    def rollback(self) -> None:
        if not self.transaction_manager.active:
            raise TransactionError("No active transaction to roll back.")
        checkpoint = self._checkpoints[-1]
        try:
            self.transaction_manager.rollback()
        except TransactionError:
            self._detach_all()
            raise
        self._checkpoints.pop()
        if checkpoint is None:
            self._detach_all()
            return
        managed, detached = self.change_tracker.restore(checkpoint)
        for entity in detached:
            if self.identity_map.get(type(entity), entity.pk) is entity:
                self.identity_map.evict(type(entity), entity.pk)
        for entity in managed:
            if entity not in self.identity_map:
                self.identity_map.add(entity)

    @contextmanager
    def transaction(self) -> Iterator["Session"]:
        """
        Transaction scope; nested scopes become savepoints.
        """

        self.begin()
        try:
            yield self
        except Exception:
            if self.transaction_manager.active:
                self.rollback()
            raise
        else:
            self.commit()

    def close(self) -> None:
        try:
            if self.transaction_manager.active:
                self.logger.warning(
                    "Closing session with %d open transaction scope(s); rolling back.",
                    self.transaction_manager.depth,
                )
                self.transaction_manager.rollback_all()
        finally:
            self._detach_all()
            self.adapter.close()

    # ------------------------------------------------------------------ #
    # Entity operations
    # ------------------------------------------------------------------ #
    def save(self, entity: TModel) -> TModel:
        """
        Insert a transient entity and start managing it.

        The INSERT runs immediately, inside its own savepoint, so the
        storage-generated key is available on return and a rejected row leaves
        the enclosing transaction usable. ``auto_now_add`` timestamps are stamped
        just before the INSERT and reverted if the store rejects it.
        """

        state = self.change_tracker.state_of(entity)
        if state is not EntityState.TRANSIENT:
            raise EntityStateError(f"save() requires a transient entity; {entity!r} is {state.value}.")
        if not self.transaction_manager.active:
            self.begin()

        model = type(entity)
        self.transaction_manager.begin()
        previous = dict(entity._field_values)
        stamped = [f.require_name() for f in model._meta.get_fields() if f.pre_insert(entity)]
        try:
            cursor = self._run(SQLCompiler(model, self.dialect).insert(entity))
            generated = None
            if entity.pk is None:
                pk_field = model._meta.primary_key
                generated = self.adapter.last_insert_id(
                    cursor, model._meta.table_name, pk_field.column_name()
                )
        except Exception as exc:
            for name in stamped:
                if name in previous:
                    entity._field_values[name] = previous[name]
                else:
                    entity._field_values.pop(name, None)
            try:
                self.transaction_manager.rollback()
            except TransactionError:
                self._abort(exc)
            raise

        try:
            self.transaction_manager.commit()
        except TransactionError as exc:
            self._abort(exc)
            raise
        if generated is not None:
            setattr(entity, model._meta.pk_name, generated)

        self.identity_map.put(model, entity.pk, entity)
        self.change_tracker.snapshot(entity)
        self.logger.debug("Inserted %s %r", model.__name__, entity.pk)
        return entity

    def find_by_id(self, model: Type[TModel], pk: Any) -> Optional[TModel]:
        """
        Return the row with primary key ``pk``, or ``None``.

        A key that cannot be coerced to the primary key type matches no row.
        """
        try:
            pk = model._meta.primary_key.to_python(pk)
        except ValueError:
            return None
        if self.change_tracker.is_removed_key(model, pk):
            return None
        cached = self.identity_map.get(model, pk)
        if cached is not None:
            return cached
        return self.queries.fetch_by_pk(model, pk)

    def find_one_by(self, model: Type[TModel], **filters: Any) -> Optional[TModel]:
        """
        Look up a row by field(s) assumed unique.

        Returns ``None`` when nothing matches and raises
        :class:`~blogstore.errors.MultipleResultsError` when several rows do.
        """
        return self.queries.fetch_unique(model, filters)

    def list(self, model: Type[TModel], *ordering: str, **filters: Any) -> List[TModel]:
        """
        Query all rows of ``model``, newest primary key first unless ``ordering``
        says otherwise (``"title"``, ``"-created_at"``, ...).
        """
        return self.queries.fetch_all(model, ordering, filters)

    def update(self, model: Type[TModel], pk: Any, changes: Mapping[str, Any]) -> TModel:
        """
        Apply ``changes`` to the managed instance; the UPDATE is left to flush.
        """

        entity = self.find_by_id(model, pk)
        if entity is None:
            raise NotFoundError(model, pk)
        for name, value in changes.items():
            model._meta.get_field(name)
            setattr(entity, name, value)
        return entity

    def delete(self, entity: Model) -> None:
        self.change_tracker.mark_removed(entity)
        self.identity_map.evict(type(entity), entity.pk)
        self.logger.debug("Scheduled %s %r for deletion", type(entity).__name__, entity.pk)

    def delete_by_id(self, model: Type[Model], pk: Any) -> None:
        entity = self.find_by_id(model, pk)
        if entity is None:
            raise NotFoundError(model, pk)
        self.delete(entity)

    # ------------------------------------------------------------------ #
    # Change tracking
    # ------------------------------------------------------------------ #
    def is_dirty(self, entity: Model) -> bool:
        return self.change_tracker.is_dirty(entity)

    def dirty_fields(self, entity: Model) -> Set[str]:
        return self.change_tracker.dirty_fields(entity)

    def state_of(self, entity: Model) -> EntityState:
        return self.change_tracker.state_of(entity)

    def flush(self) -> None:
        """
        Write pending updates and deletes.

        Each dirty entity gets one UPDATE restricted to its changed columns;
        each removed entity gets one DELETE. Any failure rolls back the whole
        transaction and detaches every entity before the error propagates.
        """

        pending_updates = []
        for record in self.change_tracker.managed():
            changed = self.change_tracker.dirty_fields(record.entity)
            if changed:
                pending_updates.append((record.entity, changed))
        pending_deletes = self.change_tracker.removed()
        if not pending_updates and not pending_deletes:
            return

        if not self.transaction_manager.active:
            self.begin()
        try:
            for entity, changed in pending_updates:
                self._run(SQLCompiler(type(entity), self.dialect).update(entity, changed))
            for entity in pending_deletes:
                self._run(SQLCompiler(type(entity), self.dialect).delete(entity.pk))
        except Exception as exc:
            self._abort(exc)
            raise

        for record in self.change_tracker.managed():
            self.change_tracker.snapshot(record.entity)
        self.change_tracker.clear_removed()
        self.logger.debug(
            "Flushed %d update(s) and %d delete(s)", len(pending_updates), len(pending_deletes)
        )

    # ------------------------------------------------------------------ #
    # Raw execution
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Iterable[Any] | None = None):
        return self._run(Statement(sql, tuple(params or ())))

    def _run(self, statement: Statement):
        params = list(statement.params)
        with time_call(
            "session.execute",
            self.logger,
            sql=statement.sql,
            params=redact_params(params, masked_positions=statement.masked),
            threshold_ms=getattr(self.adapter, "slow_query_ms", 200),
        ):
            return self.adapter.execute(statement.sql, params)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _materialize(self, model: Type[Model], data: dict[str, Any]) -> Optional[Model]:
        pk = data.get(model._meta.pk_name)
        if self.change_tracker.is_removed_key(model, pk):
            return None
        existing = self.identity_map.get(model, pk)
        if existing is not None:
            # In-memory state wins over the freshly read row.
            return existing
        instance = model(**data)
        self.identity_map.put(model, pk, instance)
        self.change_tracker.snapshot(instance)
        return instance

    def _abort(self, exc: BaseException) -> None:
        self.logger.error("Rolling back transaction after failed write: %s", exc)
        try:
            self.transaction_manager.rollback_all()
        finally:
            self._detach_all()

    def _detach_all(self) -> None:
        self.change_tracker.detach_all()
        self.identity_map.clear()
        self._checkpoints.clear()
