import logging
import uuid
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from closet.database import Base, Database
from closet.errors import DuplicateKey, NotFound, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

# Assigned by the store, never by callers
MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at"})


def new_id() -> str:
    return str(uuid.uuid4())


class EntityStore(Generic[ModelT]):
    """CRUD over one entity table.

    Every method takes the session of an open ``Database.transaction()`` so
    that callers can combine several writes into one atomic unit. The table's
    secondary indexes are SQL indexes and are written by the same statement as
    the row, so a committed record is always visible through them.
    """

    def __init__(
        self,
        database: Database,
        model: type[ModelT],
        entity_name: str,
        id_factory: Callable[[], str] = new_id,
    ):
        self.database = database
        self.model = model
        self.entity_name = entity_name
        self.id_factory = id_factory
        self._columns = frozenset(model.__table__.columns.keys())
        self._not_null = frozenset(
            column.name
            for column in model.__table__.columns
            if not column.nullable and column.name not in MANAGED_FIELDS
        )
        self._required = frozenset(
            name for name in self._not_null if model.__table__.columns[name].default is None
        )

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def lock_key(self, entity_id: str) -> tuple[str, str]:
        return (self.table_name, entity_id)

    def _check_fields(self, values: Mapping[str, Any]) -> None:
        unknown = set(values) - self._columns
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(f"Unknown {self.entity_name} field: {field}", field=field)

    async def insert(
        self,
        session: AsyncSession,
        values: Mapping[str, Any],
        entity_id: str | None = None,
    ) -> ModelT:
        fields = {k: v for k, v in values.items() if k not in MANAGED_FIELDS}
        self._check_fields(fields)
        missing = sorted(name for name in self._required if fields.get(name) is None)
        if missing:
            raise ValidationError(
                f"Missing required {self.entity_name} field: {missing[0]}", field=missing[0]
            )

        entity_id = entity_id or self.id_factory()
        if await session.get(self.model, entity_id) is not None:
            raise DuplicateKey(self.entity_name, entity_id)

        now = self.database.clock.now()
        record = self.model(id=entity_id, created_at=now, updated_at=now, **fields)
        session.add(record)
        try:
            await session.flush()
        except IntegrityError as e:
            raise DuplicateKey(self.entity_name, entity_id) from e

        logger.debug("Inserted %s %s", self.entity_name, entity_id)
        return record

    async def get_by_id(self, session: AsyncSession, entity_id: str) -> ModelT | None:
        return await session.get(self.model, entity_id)

    async def get_all(self, session: AsyncSession, *criteria) -> list[ModelT]:
        """All records matching ``criteria``, newest first."""
        query = (
            select(self.model)
            .where(*criteria)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def _get_for_update(self, session: AsyncSession, entity_id: str) -> ModelT | None:
        if self.database.is_sqlite:
            # SQLite serializes writers itself and has no row locks
            return await session.get(self.model, entity_id)
        return await session.get(self.model, entity_id, with_for_update=True)

    async def update(
        self,
        session: AsyncSession,
        entity_id: str,
        changes: Mapping[str, Any],
    ) -> ModelT:
        """Merge ``changes`` onto the record and refresh ``updated_at``.

        Fields absent from ``changes`` are left untouched; ``id`` and the
        timestamps cannot be changed by callers.
        """
        fields = {k: v for k, v in changes.items() if k not in MANAGED_FIELDS}
        self._check_fields(fields)
        nulled = sorted(name for name in self._not_null if name in fields and fields[name] is None)
        if nulled:
            raise ValidationError(
                f"{self.entity_name} field may not be null: {nulled[0]}", field=nulled[0]
            )

        record = await self._get_for_update(session, entity_id)
        if record is None:
            raise NotFound(self.entity_name, entity_id)

        for field, value in fields.items():
            setattr(record, field, value)
        record.updated_at = self.database.clock.now(after=record.updated_at)

        await session.flush()
        return record

    async def delete(self, session: AsyncSession, entity_id: str) -> ModelT:
        record = await self._get_for_update(session, entity_id)
        if record is None:
            raise NotFound(self.entity_name, entity_id)

        await session.delete(record)
        await session.flush()
        logger.debug("Deleted %s %s", self.entity_name, entity_id)
        return record
