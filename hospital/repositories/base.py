"""
Generic repository over one table.

Every entity table is handled the same way: reads map rows to entities,
and each mutation runs its precondition queries first and then a single
statement. Concrete repositories only describe their table:

- ``table`` and ``key_columns``: what identifies a row
- ``unique_columns``: secondary columns no two rows may share
- ``dependents``: (table, column) pairs that block a delete while they
  still point at the row
- ``_to_entity`` / ``_to_values``: the row mapping in both directions
- ``_key_of``: the key of an entity

Reads never raise to the caller: a storage fault is logged and returned as
an empty list or None, unless the repository was built with
``strict=True``.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Generic, Sequence, TypeVar

from sqlalchemy import (
    ColumnElement,
    Connection,
    RowMapping,
    Table,
    and_,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hospital.schemas.entities import Entity
from hospital.services.audit import log_action
from hospital.services.outcome import (
    STORAGE_ERROR_MESSAGE,
    Outcome,
    ReadResult,
    Reason,
    Severity,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class Repository(Generic[E]):
    table: ClassVar[Table]
    key_columns: ClassVar[tuple[str, ...]]
    noun: ClassVar[str]
    unique_columns: ClassVar[tuple[str, ...]] = ()
    dependents: ClassVar[tuple[tuple[Table, str], ...]] = ()

    duplicate_key_message: ClassVar[str | None] = None
    missing_key_message: ClassVar[str | None] = None

    def __init__(self, connection: Connection, *, strict: bool = False):
        self.connection = connection
        self.strict = strict

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _to_entity(self, row: RowMapping) -> E:
        raise NotImplementedError

    def _to_values(self, entity: E) -> dict[str, Any]:
        raise NotImplementedError

    def _key_of(self, entity: E) -> tuple[Any, ...]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    @property
    def title(self) -> str:
        return self.noun[:1].upper() + self.noun[1:]

    def _duplicate_key(self) -> Outcome:
        message = self.duplicate_key_message or f"Error: A {self.noun} with this ID already exists."
        return Outcome.rejected(message, Reason.DUPLICATE_KEY)

    def missing_key_outcome(self) -> Outcome:
        message = self.missing_key_message or f"Error: {self.title} with this ID does not exist."
        return Outcome.rejected(message, Reason.NOT_FOUND)

    def _duplicate_natural_key(self, column: str) -> Outcome:
        return Outcome.rejected(
            f"Error: A {self.noun} with this {column} already exists.",
            Reason.DUPLICATE_NATURAL_KEY,
        )

    def storage_error(self, action: str, exc: Exception) -> Outcome:
        logger.error("Storage error during %s on %s: %s", action, self.table.name, exc)
        return Outcome.rejected(STORAGE_ERROR_MESSAGE, Reason.STORAGE_ERROR)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _key_clause(self, key: Sequence[Any]) -> ColumnElement[bool]:
        if len(key) != len(self.key_columns):
            raise TypeError(
                f"{self.table.name} is keyed by {self.key_columns}, got {len(key)} value(s)"
            )
        return and_(*(self.table.c[col] == value for col, value in zip(self.key_columns, key)))

    def _read_many(self, clause: ColumnElement[bool] | None = None) -> ReadResult[list[E]]:
        stmt = select(self.table)
        if clause is not None:
            stmt = stmt.where(clause)
        try:
            rows = self.connection.execute(stmt).mappings().all()
            return ReadResult([self._to_entity(row) for row in rows])
        except SQLAlchemyError as exc:
            logger.exception("Error reading from %s", self.table.name)
            return ReadResult(error=exc)

    def _read_one(self, clause: ColumnElement[bool]) -> ReadResult[E]:
        try:
            row = self.connection.execute(select(self.table).where(clause).limit(1)).mappings().first()
            return ReadResult(self._to_entity(row) if row is not None else None)
        except SQLAlchemyError as exc:
            logger.exception("Error reading from %s", self.table.name)
            return ReadResult(error=exc)

    def _degrade(self, result: ReadResult, default: Any) -> Any:
        if result.ok:
            return result.value
        if self.strict:
            raise result.error  # type: ignore[misc]
        return default

    def read_all(self) -> ReadResult[list[E]]:
        return self._read_many()

    def read_by_key(self, *key: Any) -> ReadResult[E]:
        return self._read_one(self._key_clause(key))

    def list_all(self) -> list[E]:
        """All rows as entities; empty on an empty table or a storage fault."""
        return self._degrade(self.read_all(), [])

    def find_by_key(self, *key: Any) -> E | None:
        return self._degrade(self.read_by_key(*key), None)

    def _find_one(self, clause: ColumnElement[bool]) -> E | None:
        return self._degrade(self._read_one(clause), None)

    def _find_many(self, clause: ColumnElement[bool]) -> list[E]:
        return self._degrade(self._read_many(clause), [])

    def search(self, term: str | None) -> list[E]:
        """Case-insensitive substring match against every displayed field."""
        entities = self.list_all()
        needle = (term or "").strip().lower()
        if not needle:
            return entities
        return [
            entity
            for entity in entities
            if any(needle in value.lower() for value in entity.to_form().values() if value)
        ]

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def exists(self, *key: Any) -> ReadResult[bool]:
        stmt = select(self.table.c[self.key_columns[0]]).where(self._key_clause(key)).limit(1)
        try:
            return ReadResult(self.connection.execute(stmt).first() is not None)
        except SQLAlchemyError as exc:
            return ReadResult(error=exc)

    def _keys_where(self, column: str, value: Any) -> ReadResult[list[tuple[Any, ...]]]:
        key_cols = [self.table.c[col] for col in self.key_columns]
        stmt = select(*key_cols).where(self.table.c[column] == value)
        try:
            return ReadResult([tuple(row) for row in self.connection.execute(stmt)])
        except SQLAlchemyError as exc:
            return ReadResult(error=exc)

    def _check_unique(self, entity: E, own_key: tuple[Any, ...] | None) -> Outcome | None:
        values = self._to_values(entity)
        for column in self.unique_columns:
            holders = self._keys_where(column, values[column])
            if not holders.ok:
                return self.storage_error("uniqueness check", holders.error)  # type: ignore[arg-type]
            if any(holder != own_key for holder in holders.value or []):
                return self._duplicate_natural_key(column)
        return None

    def _check_dependents(self, key: Sequence[Any]) -> Outcome | None:
        for dependent, column in self.dependents:
            stmt = select(func.count()).select_from(dependent).where(dependent.c[column] == key[0])
            try:
                count = self.connection.execute(stmt).scalar_one()
            except SQLAlchemyError as exc:
                return self.storage_error("reference check", exc)
            if count:
                return Outcome.rejected(
                    f"Error: {self.title} cannot be deleted while "
                    f"{count} {dependent.name} record(s) refer to it.",
                    Reason.REFERENCED,
                )
        return None

    def _conflict(
        self,
        entity: E,
        key: Sequence[Any],
        *,
        own_key: tuple[Any, ...] | None,
    ) -> Outcome:
        """
        Name the constraint a write broke after its prechecks passed, because
        another writer got in between. The prechecks are re-run against the
        current state of the tables.
        """
        if own_key is None:
            exists = self.exists(*key)
            if not exists.ok:
                return self.storage_error("add", exists.error)  # type: ignore[arg-type]
            if exists.value:
                return self._duplicate_key()
        clash = self._check_unique(entity, own_key=own_key)
        if clash is not None:
            return clash
        # Neither key nor a unique column: a referenced row is missing.
        return Outcome.rejected(
            f"Error: {self.title} refers to a record that does not exist.",
            Reason.UNRESOLVED_REFERENCE,
            Severity.WARNING,
        )

    def _check_add(self, entity: E) -> Outcome | None:
        return None

    def _check_update(self, entity: E) -> Outcome | None:
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _rejected(self, action: str, key: Sequence[Any], outcome: Outcome) -> Outcome:
        logger.warning("%s %s %s rejected: %s", action, self.noun, tuple(key), outcome.message)
        return outcome

    def add(self, entity: E) -> Outcome:
        key = self._key_of(entity)
        exists = self.exists(*key)
        if not exists.ok:
            return self.storage_error("add", exists.error)  # type: ignore[arg-type]
        if exists.value:
            return self._rejected("add", key, self._duplicate_key())

        rejection = self._check_add(entity) or self._check_unique(entity, own_key=None)
        if rejection is not None:
            return self._rejected("add", key, rejection)

        try:
            result = self.connection.execute(insert(self.table).values(**self._to_values(entity)))
        except IntegrityError as exc:
            logger.warning("Insert into %s violated a constraint: %s", self.table.name, exc.orig)
            return self._rejected("add", key, self._conflict(entity, key, own_key=None))
        except SQLAlchemyError as exc:
            return self.storage_error("add", exc)

        if result.rowcount <= 0:
            return self._rejected(
                "add",
                key,
                Outcome.rejected(f"Error: {self.title} could not be added.", Reason.PERSISTENCE_FAILURE),
            )
        log_action(action="create", resource_type=self.noun, resource_id=key)
        return Outcome.created(f"{self.title} added successfully!")

    def update(self, entity: E) -> Outcome:
        key = self._key_of(entity)
        exists = self.exists(*key)
        if not exists.ok:
            return self.storage_error("update", exists.error)  # type: ignore[arg-type]
        if not exists.value:
            return self._rejected("update", key, self.missing_key_outcome())

        rejection = self._check_update(entity) or self._check_unique(entity, own_key=key)
        if rejection is not None:
            return self._rejected("update", key, rejection)

        values = {
            column: value
            for column, value in self._to_values(entity).items()
            if column not in self.key_columns
        }
        try:
            result = self.connection.execute(
                update(self.table).where(self._key_clause(key)).values(**values)
            )
        except IntegrityError as exc:
            logger.warning("Update of %s violated a constraint: %s", self.table.name, exc.orig)
            return self._rejected("update", key, self._conflict(entity, key, own_key=key))
        except SQLAlchemyError as exc:
            return self.storage_error("update", exc)

        if result.rowcount <= 0:
            return self._rejected(
                "update",
                key,
                Outcome.rejected(f"Error: No {self.noun} was updated.", Reason.PERSISTENCE_FAILURE),
            )
        log_action(action="update", resource_type=self.noun, resource_id=key)
        return Outcome.updated(f"{self.title} updated successfully!")

    def delete(self, *key: Any) -> Outcome:
        exists = self.exists(*key)
        if not exists.ok:
            return self.storage_error("delete", exists.error)  # type: ignore[arg-type]
        if not exists.value:
            return self._rejected("delete", key, self.missing_key_outcome())

        rejection = self._check_dependents(key)
        if rejection is not None:
            return self._rejected("delete", key, rejection)

        try:
            result = self.connection.execute(delete(self.table).where(self._key_clause(key)))
        except IntegrityError as exc:
            logger.warning("Delete from %s blocked by a constraint: %s", self.table.name, exc.orig)
            return Outcome.rejected(
                f"Error: {self.title} is still referenced by other records.",
                Reason.REFERENCED,
            )
        except SQLAlchemyError as exc:
            return self.storage_error("delete", exc)

        if result.rowcount <= 0:
            return self._rejected(
                "delete",
                key,
                Outcome.rejected(f"Error: No {self.noun} was deleted.", Reason.PERSISTENCE_FAILURE),
            )
        log_action(action="delete", resource_type=self.noun, resource_id=tuple(key))
        return Outcome.deleted(f"{self.title} deleted successfully!")
