"""
Unit tests for studyhub/services/password_reset.py

Drives the flow directly with a controllable clock.
"""

from datetime import datetime, timedelta, timezone

import pytest

from studyhub.core.exceptions import CodeExpired, InvalidCode, NotVerified, VerificationExpired
from studyhub.core.security import verify_password
from studyhub.services.password_reset import GENERIC_ACK, PasswordResetFlow


class FakeClock:
    def __init__(self):
        self.now = datetime.now(timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def flow(store, mailer, clock):
    return PasswordResetFlow(store, mailer, clock=clock)


class TestRequest:
    async def test_registered_email_gets_code(self, flow, mailer, store, user):
        assert await flow.request("ALICE@example.com") == GENERIC_ACK

        code = mailer.last_code_for("alice@example.com")
        assert code is not None and len(code) == 6

        reset = await store.find_one("reset_requests", email="alice@example.com")
        assert reset.user_id == user.id
        assert reset.consumed is False
        assert code not in reset.code_hash

    async def test_unknown_email_same_ack_nothing_sent(self, flow, mailer, store):
        assert await flow.request("ghost@example.com") == GENERIC_ACK
        assert mailer.reset_codes == []
        assert await store.find_many("reset_requests") == []

    async def test_earlier_codes_stay_valid(self, flow, mailer, user, clock):
        await flow.request(user.email)
        first = mailer.last_code_for(user.email)
        clock.advance(seconds=1)
        await flow.request(user.email)

        await flow.verify(user.email, first)


class TestVerify:
    async def test_wrong_code(self, flow, user):
        await flow.request(user.email)
        with pytest.raises(InvalidCode):
            await flow.verify(user.email, "not-it")

    async def test_code_is_single_use(self, flow, mailer, user):
        await flow.request(user.email)
        code = mailer.last_code_for(user.email)

        await flow.verify(user.email, code)
        with pytest.raises(InvalidCode):
            await flow.verify(user.email, code)

    async def test_code_bound_to_email(self, flow, mailer, user, other_user):
        await flow.request(user.email)
        code = mailer.last_code_for(user.email)

        with pytest.raises(InvalidCode):
            await flow.verify(other_user.email, code)

    async def test_expired_code_not_consumed(self, flow, mailer, store, user, clock):
        await flow.request(user.email)
        code = mailer.last_code_for(user.email)
        clock.advance(minutes=60)

        with pytest.raises(CodeExpired):
            await flow.verify(user.email, code)

        reset = await store.find_one("reset_requests", email=user.email)
        assert reset.consumed is False

    async def test_valid_just_before_expiry(self, flow, mailer, user, clock):
        await flow.request(user.email)
        code = mailer.last_code_for(user.email)
        clock.advance(minutes=59, seconds=59)

        await flow.verify(user.email, code)

    async def test_lost_race_is_invalid_code(self, flow, mailer, store, user, mocker):
        await flow.request(user.email)
        code = mailer.last_code_for(user.email)
        mocker.patch.object(store, "compare_and_set", return_value=False)

        with pytest.raises(InvalidCode):
            await flow.verify(user.email, code)

        mocker.stopall()
        assert await store.find_many("reset_verifications") == []


class TestCommit:
    async def _verified(self, flow, mailer, user):
        await flow.request(user.email)
        await flow.verify(user.email, mailer.last_code_for(user.email))

    async def test_commit_replaces_password(self, flow, mailer, store, user):
        await self._verified(flow, mailer, user)
        await flow.commit(user.email, "brandnew1")

        fresh = await store.read("users", user.id)
        assert verify_password("brandnew1", fresh.password_hash)
        assert not verify_password("Password123", fresh.password_hash)

    async def test_commit_without_verification(self, flow, user):
        with pytest.raises(NotVerified):
            await flow.commit(user.email, "brandnew1")

    async def test_verification_is_single_use(self, flow, mailer, user):
        await self._verified(flow, mailer, user)
        await flow.commit(user.email, "brandnew1")

        with pytest.raises(NotVerified):
            await flow.commit(user.email, "another1")

    async def test_verification_expires(self, flow, mailer, user, clock):
        await self._verified(flow, mailer, user)
        clock.advance(minutes=10)

        with pytest.raises(VerificationExpired):
            await flow.commit(user.email, "brandnew1")

    async def test_lost_race_leaves_password(self, flow, mailer, store, user, mocker):
        await self._verified(flow, mailer, user)
        mocker.patch.object(store, "compare_and_set", return_value=False)

        with pytest.raises(NotVerified):
            await flow.commit(user.email, "brandnew1")

        mocker.stopall()
        fresh = await store.read("users", user.id)
        assert verify_password("Password123", fresh.password_hash)

    async def test_failed_password_write_keeps_verification(self, flow, mailer, store, user, mocker):
        await self._verified(flow, mailer, user)
        mocker.patch.object(store, "update", side_effect=RuntimeError("write failed"))

        with pytest.raises(RuntimeError):
            await flow.commit(user.email, "brandnew1")

        mocker.stopall()
        verification = await store.find_one("reset_verifications", email=user.email)
        assert verification.consumed is False
