"""
Document Store

Generic document operations over the SQL store, addressed by collection
name. Every call is bounded by a timeout; timeouts and connection-level
failures surface as TransientUnavailable and are never reported as a
missing document.

Atomic primitives (compare_and_set, increment, delete_where) are single
conditional statements, so concurrent requests coordinate through the
database instead of read-modify-write round trips.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

from sqlalchemy import JSON, delete, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studyhub.core.config import settings
from studyhub.core.exceptions import Conflict, TransientUnavailable
from studyhub.db.base import Base
from studyhub.logging import get_logger
from studyhub.models import Answer, ChatMessage, Comment, Content, ResetRequest, ResetVerification, User, Vote

logger = get_logger(__name__)

T = TypeVar("T")

COLLECTIONS: Dict[str, Type[Base]] = {
    "users": User,
    "reset_requests": ResetRequest,
    "reset_verifications": ResetVerification,
    "content": Content,
    "answers": Answer,
    "comments": Comment,
    "votes": Vote,
    "chat_messages": ChatMessage,
}


class DuplicateDocument(Conflict):
    """A unique key already exists in the collection."""


class DocumentStore:
    """
    Collection-addressed CRUD plus atomic primitives.

    Operations commit immediately unless they run inside ``transaction()``,
    in which case they commit (or roll back) together when the outermost
    scope exits.

    Usage:
        store = DocumentStore(session)
        user = await store.find_one("users", email="a@b.c")
        async with store.transaction():
            ok = await store.compare_and_set("reset_requests", rid, {"consumed": False}, {"consumed": True})
            await store.create("reset_verifications", {...})
    """

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        self.session = session
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS
        self._depth = 0

    # -----------------------------
    # Plumbing
    # -----------------------------
    @staticmethod
    def model_for(collection: str) -> Type[Base]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    async def _run(self, op: Callable[[], Awaitable[T]], collection: str) -> T:
        try:
            return await asyncio.wait_for(op(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            await self._abort()
            logger.warning("Document store timed out", collection=collection, timeout=self.timeout)
            raise TransientUnavailable() from exc
        except IntegrityError as exc:
            await self._abort()
            raise DuplicateDocument(f"Duplicate document in {collection}") from exc
        except (OperationalError, InterfaceError) as exc:
            await self._abort()
            logger.warning("Document store unreachable", collection=collection, error=str(exc.orig))
            raise TransientUnavailable() from exc
        except DBAPIError as exc:
            await self._abort()
            if exc.connection_invalidated:
                raise TransientUnavailable() from exc
            raise

    async def _abort(self) -> None:
        # Inside a transaction scope the scope owns the rollback
        if self._depth:
            return
        try:
            await self.session.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Rollback after store failure did not complete", error=str(exc))

    async def _commit(self) -> None:
        if not self._depth:
            await self.session.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["DocumentStore"]:
        """Group operations so they apply together or not at all."""
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if not self._depth:
                await self._rollback_scope()
            raise
        self._depth -= 1
        if not self._depth:
            await self._run(self.session.commit, "transaction")

    async def _rollback_scope(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Transaction rollback did not complete", error=str(exc))

    # -----------------------------
    # CRUD
    # -----------------------------
    async def create(self, collection: str, fields: Dict[str, Any], id: Optional[str] = None):
        """Insert a new document and return it."""
        model = self.model_for(collection)
        values = dict(fields)
        if id is not None:
            values["id"] = id
        instance = model(**values)

        async def op():
            self.session.add(instance)
            await self.session.flush()
            await self._commit()
            return instance

        return await self._run(op, collection)

    async def read(self, collection: str, id: str):
        """Return the document with this id, or None when absent."""
        model = self.model_for(collection)

        async def op():
            result = await self.session.execute(
                select(model)
                .where(model.id == id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

        return await self._run(op, collection)

    def _query(self, model, order_by: Optional[str], criteria: Dict[str, Any]):
        query = select(model).execution_options(populate_existing=True)
        for field, value in criteria.items():
            query = query.where(getattr(model, field) == value)
        if order_by:
            descending = order_by.startswith("-")
            column = getattr(model, order_by.lstrip("-"))
            query = query.order_by(column.desc() if descending else column.asc())
        return query

    async def find_one(self, collection: str, order_by: Optional[str] = None, **criteria):
        """
        First document whose fields equal ``criteria``.

        Args:
            order_by: field name, prefixed with ``-`` for descending order
        """
        model = self.model_for(collection)
        query = self._query(model, order_by, criteria).limit(1)

        async def op():
            result = await self.session.execute(query)
            return result.scalars().first()

        return await self._run(op, collection)

    async def find_many(
        self,
        collection: str,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        **criteria
    ) -> List[Any]:
        model = self.model_for(collection)
        query = self._query(model, order_by, criteria)
        if limit is not None:
            query = query.limit(limit)

        async def op():
            result = await self.session.execute(query)
            return list(result.scalars().all())

        return await self._run(op, collection)

    async def update(self, collection: str, id: str, fields: Dict[str, Any], merge: bool = True) -> bool:
        """
        Apply ``fields`` to an existing document.

        With ``merge`` (default) JSON fields are merged key by key into the
        stored value; without it they are replaced wholesale. Scalar fields
        are always overwritten.

        Returns:
            False when the document does not exist
        """
        model = self.model_for(collection)
        json_fields = {c.name for c in model.__table__.columns if isinstance(c.type, JSON)}

        async def op():
            result = await self.session.execute(
                select(model)
                .where(model.id == id)
                .execution_options(populate_existing=True)
            )
            instance = result.scalar_one_or_none()
            if instance is None:
                return False
            for key, value in fields.items():
                current = getattr(instance, key)
                if merge and key in json_fields and isinstance(current, dict) and isinstance(value, dict):
                    value = {**current, **value}
                setattr(instance, key, value)
            await self.session.flush()
            await self._commit()
            return True

        return await self._run(op, collection)

    async def delete(self, collection: str, id: str) -> bool:
        return bool(await self.delete_where(collection, id=id))

    async def delete_where(self, collection: str, **criteria) -> int:
        """Delete every document matching ``criteria``; returns the count."""
        if not criteria:
            raise ValueError("delete_where requires at least one criterion")
        model = self.model_for(collection)
        # evaluate drops matching rows from the identity map so their keys can be reused
        statement = delete(model).execution_options(synchronize_session="evaluate")
        for field, value in criteria.items():
            statement = statement.where(getattr(model, field) == value)

        async def op():
            result = await self.session.execute(statement)
            await self._commit()
            return result.rowcount or 0

        return await self._run(op, collection)

    # -----------------------------
    # Atomic primitives
    # -----------------------------
    async def compare_and_set(
        self,
        collection: str,
        id: str,
        expected: Dict[str, Any],
        fields: Dict[str, Any]
    ) -> bool:
        """
        Set ``fields`` only if the stored document still matches ``expected``.

        Returns:
            True when exactly this caller applied the change
        """
        model = self.model_for(collection)
        statement = (
            update(model)
            .where(model.id == id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        for field, value in expected.items():
            statement = statement.where(getattr(model, field) == value)

        async def op():
            result = await self.session.execute(statement)
            await self._commit()
            return result.rowcount == 1

        return await self._run(op, collection)

    async def increment(self, collection: str, id: str, **deltas: int) -> bool:
        """Add ``deltas`` to numeric fields in a single statement."""
        model = self.model_for(collection)
        values = {
            getattr(model, field): getattr(model, field) + delta
            for field, delta in deltas.items()
            if delta
        }
        if not values:
            return await self.read(collection, id) is not None

        statement = (
            update(model)
            .where(model.id == id)
            .values(values)
            .execution_options(synchronize_session=False)
        )

        async def op():
            result = await self.session.execute(statement)
            await self._commit()
            return result.rowcount == 1

        return await self._run(op, collection)

    async def ping(self) -> bool:
        """Round trip used by the health endpoint."""
        async def op():
            await self.session.execute(select(1))
            return True

        return await self._run(op, "health")
