"""
Unit tests for studyhub/db/store.py

Runs against the in-memory SQLite database from conftest.
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from studyhub.core.exceptions import Conflict, TransientUnavailable
from studyhub.db.store import DocumentStore, DuplicateDocument
from tests.factories import ContentFactory


async def make_user(store, email="store@example.com"):
    return await store.create("users", {
        "username": "store",
        "email": email,
        "password_hash": "x",
    })


class TestCrud:
    async def test_create_and_read(self, store: DocumentStore):
        user = await make_user(store)
        fetched = await store.read("users", user.id)

        assert fetched is not None
        assert fetched.email == "store@example.com"

    async def test_read_absent_returns_none(self, store: DocumentStore):
        assert await store.read("users", "missing") is None

    async def test_create_with_explicit_id(self, store: DocumentStore):
        vote = await store.create("votes", {
            "voter_id": "u", "target_id": "t", "target_kind": "answer", "direction": "up",
        }, id="answer:t:u")
        assert vote.id == "answer:t:u"

    async def test_duplicate_is_conflict(self, store: DocumentStore):
        await make_user(store, "dup@example.com")
        with pytest.raises(DuplicateDocument):
            await make_user(store, "dup@example.com")
        # the session is usable again afterwards
        assert await store.find_one("users", email="dup@example.com") is not None

    async def test_duplicate_subclasses_conflict(self):
        assert issubclass(DuplicateDocument, Conflict)

    async def test_unknown_collection(self, store: DocumentStore):
        with pytest.raises(ValueError):
            await store.read("papers", "x")

    async def test_find_many_ordering(self, store: DocumentStore, db_session, user):
        first = await ContentFactory.create_async(db_session, owner_id=user.id)
        second = await ContentFactory.create_async(db_session, owner_id=user.id)
        await db_session.commit()

        newest_first = await store.find_many("content", order_by="-created_at", owner_id=user.id)
        oldest_first = await store.find_many("content", order_by="created_at", owner_id=user.id)

        assert [c.id for c in newest_first] == [second.id, first.id]
        assert [c.id for c in oldest_first] == [first.id, second.id]

    async def test_find_many_limit(self, store: DocumentStore, db_session, user):
        for _ in range(3):
            await ContentFactory.create_async(db_session, owner_id=user.id)
        await db_session.commit()

        assert len(await store.find_many("content", limit=2, owner_id=user.id)) == 2

    async def test_delete(self, store: DocumentStore):
        user = await make_user(store)
        assert await store.delete("users", user.id) is True
        assert await store.delete("users", user.id) is False
        assert await store.read("users", user.id) is None

    async def test_delete_where_requires_criteria(self, store: DocumentStore):
        with pytest.raises(ValueError):
            await store.delete_where("votes")


class TestUpdate:
    async def test_update_absent(self, store: DocumentStore):
        assert await store.update("users", "missing", {"username": "x"}) is False

    async def test_merge_keeps_other_payload_keys(self, store: DocumentStore, db_session, user):
        item = await ContentFactory.create_async(db_session, owner_id=user.id, payload={"title": "A", "url": "u"})
        await db_session.commit()

        await store.update("content", item.id, {"payload": {"title": "B"}})

        assert (await store.read("content", item.id)).payload == {"title": "B", "url": "u"}

    async def test_replace_payload(self, store: DocumentStore, db_session, user):
        item = await ContentFactory.create_async(db_session, owner_id=user.id, payload={"title": "A", "url": "u"})
        await db_session.commit()

        await store.update("content", item.id, {"payload": {"title": "B"}}, merge=False)

        assert (await store.read("content", item.id)).payload == {"title": "B"}


class TestAtomicPrimitives:
    async def test_compare_and_set_applies_once(self, store: DocumentStore, db_session, user):
        item = await ContentFactory.create_async(db_session, owner_id=user.id)
        await db_session.commit()

        assert await store.compare_and_set("content", item.id, {"status": "pending"}, {"status": "approved"}) is True
        assert await store.compare_and_set("content", item.id, {"status": "pending"}, {"status": "rejected"}) is False
        assert (await store.read("content", item.id)).status == "approved"

    async def test_compare_and_set_absent(self, store: DocumentStore):
        assert await store.compare_and_set("content", "missing", {"status": "pending"}, {"status": "approved"}) is False

    async def test_increment(self, store: DocumentStore, db_session, user):
        from tests.factories import AnswerFactory
        item = await ContentFactory.create_async(db_session, owner_id=user.id)
        answer = await AnswerFactory.create_async(db_session, content_id=item.id, author_id=user.id)
        await db_session.commit()

        assert await store.increment("answers", answer.id, upvotes=2, downvotes=1, total_votes=1) is True
        assert await store.increment("answers", answer.id, upvotes=-1, total_votes=-1) is True

        fresh = await store.read("answers", answer.id)
        assert (fresh.upvotes, fresh.downvotes, fresh.total_votes) == (1, 1, 0)

    async def test_increment_absent(self, store: DocumentStore):
        assert await store.increment("answers", "missing", upvotes=1) is False


class TestTransaction:
    async def test_commits_together(self, store: DocumentStore):
        async with store.transaction():
            a = await make_user(store, "a@example.com")
            b = await make_user(store, "b@example.com")

        assert await store.read("users", a.id) is not None
        assert await store.read("users", b.id) is not None

    async def test_rolls_back_together(self, store: DocumentStore):
        with pytest.raises(RuntimeError):
            async with store.transaction():
                await make_user(store, "a@example.com")
                raise RuntimeError("boom")

        assert await store.find_one("users", email="a@example.com") is None

    async def test_nested_scope_joins_outer(self, store: DocumentStore):
        with pytest.raises(RuntimeError):
            async with store.transaction():
                async with store.transaction():
                    await make_user(store, "inner@example.com")
                raise RuntimeError("outer fails")

        assert await store.find_one("users", email="inner@example.com") is None

    async def test_duplicate_inside_rolls_back_everything(self, store: DocumentStore):
        await make_user(store, "taken@example.com")

        with pytest.raises(Conflict):
            async with store.transaction():
                await make_user(store, "fresh@example.com")
                await make_user(store, "taken@example.com")

        assert await store.find_one("users", email="fresh@example.com") is None


class TestFailures:
    async def test_timeout_is_transient(self, db_session, mocker):
        store = DocumentStore(db_session, timeout=0.01)

        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        mocker.patch.object(db_session, "execute", side_effect=slow)

        with pytest.raises(TransientUnavailable):
            await store.read("users", "anything")

    async def test_operational_error_is_transient_not_absent(self, store: DocumentStore, db_session, mocker):
        mocker.patch.object(
            db_session,
            "execute",
            side_effect=OperationalError("SELECT", {}, Exception("connection refused")),
        )

        with pytest.raises(TransientUnavailable):
            await store.find_one("users", email="a@example.com")

    async def test_transient_maps_to_503(self):
        assert TransientUnavailable().status_code == 503
