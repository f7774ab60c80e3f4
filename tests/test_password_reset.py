"""
Password Reset Token Tests

- Token shape and lifetime
- Single use, also under concurrent redemption
- Expiry
- Revocation of older tokens
- Cleanup
"""

import asyncio
import re
from datetime import timedelta

import pytest

from database.core import Database
from database.models.base import as_utc, utcnow
from database.models.user import User
from database.operations import password_reset_ops, user_ops
from utils.auth.password import hash_password_sync, verify_password_sync
from utils.errors import ValidationError


@pytest.fixture
async def alice(session):
    return await user_ops.create_user(
        session, "alice@example.com", "Alice", hash_password_sync("old-password", rounds=4)
    )


class TestIssue:

    @pytest.mark.asyncio
    async def test_token_is_64_hex_chars_and_expires_in_an_hour(self, session, alice):
        now = utcnow()

        reset_token = await password_reset_ops.create_reset_token(session, alice.id, now=now)

        assert re.fullmatch(r"[0-9a-f]{64}", reset_token.token)
        assert reset_token.used is False
        assert as_utc(reset_token.expires_at) - now == timedelta(hours=1)

    def test_tokens_are_unique(self):
        tokens = {password_reset_ops.generate_reset_token() for _ in range(50)}

        assert len(tokens) == 50

    @pytest.mark.asyncio
    async def test_new_token_revokes_previous(self, session, alice):
        first = await password_reset_ops.create_reset_token(session, alice.id)
        second = await password_reset_ops.create_reset_token(session, alice.id)

        stored_first = await password_reset_ops.get_reset_token(session, first.token)
        stored_second = await password_reset_ops.get_reset_token(session, second.token)

        assert not password_reset_ops.is_token_redeemable(stored_first)
        assert password_reset_ops.is_token_redeemable(stored_second)

    @pytest.mark.asyncio
    async def test_previous_tokens_kept_when_revocation_disabled(self, session, alice):
        first = await password_reset_ops.create_reset_token(session, alice.id)
        await password_reset_ops.create_reset_token(session, alice.id, revoke_previous=False)

        stored_first = await password_reset_ops.get_reset_token(session, first.token)

        assert password_reset_ops.is_token_redeemable(stored_first)


class TestRedeem:

    @pytest.mark.asyncio
    async def test_redeem_sets_password_and_consumes_token(self, session, alice):
        reset_token = await password_reset_ops.create_reset_token(session, alice.id)

        user = await password_reset_ops.redeem_reset_token(
            session, reset_token.token, hash_password_sync("new-password", rounds=4)
        )

        assert user.id == alice.id
        assert verify_password_sync("new-password", user.password_hash)
        stored = await password_reset_ops.get_reset_token(session, reset_token.token)
        assert stored.used is True
        assert stored.used_at is not None

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, session, alice):
        reset_token = await password_reset_ops.create_reset_token(session, alice.id)
        await password_reset_ops.redeem_reset_token(
            session, reset_token.token, hash_password_sync("new-password", rounds=4)
        )

        with pytest.raises(ValidationError) as exc:
            await password_reset_ops.redeem_reset_token(
                session, reset_token.token, hash_password_sync("third-password", rounds=4)
            )

        assert exc.value.message == password_reset_ops.INVALID_RESET_TOKEN_MESSAGE
        user = await user_ops.get_user_by_id(session, alice.id)
        assert verify_password_sync("new-password", user.password_hash)

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, session, alice):
        issued = utcnow() - timedelta(hours=2)
        reset_token = await password_reset_ops.create_reset_token(session, alice.id, now=issued)

        with pytest.raises(ValidationError):
            await password_reset_ops.redeem_reset_token(
                session, reset_token.token, hash_password_sync("new-password", rounds=4)
            )

        user = await user_ops.get_user_by_id(session, alice.id)
        assert verify_password_sync("old-password", user.password_hash)

    @pytest.mark.asyncio
    async def test_token_is_dead_exactly_at_expiry(self, session, alice):
        now = utcnow()
        reset_token = await password_reset_ops.create_reset_token(session, alice.id, now=now)

        assert password_reset_ops.is_token_redeemable(reset_token, now + timedelta(minutes=59))
        assert not password_reset_ops.is_token_redeemable(reset_token, now + timedelta(hours=1))

    @pytest.mark.asyncio
    async def test_unknown_token_is_rejected(self, session, alice):
        with pytest.raises(ValidationError):
            await password_reset_ops.redeem_reset_token(
                session, "0" * 64, hash_password_sync("new-password", rounds=4)
            )

    @pytest.mark.asyncio
    async def test_token_of_deleted_user_is_rejected(self, session, alice):
        reset_token = await password_reset_ops.create_reset_token(session, alice.id)
        await user_ops.soft_delete_user(session, alice.id)

        with pytest.raises(ValidationError):
            await password_reset_ops.redeem_reset_token(
                session, reset_token.token, hash_password_sync("new-password", rounds=4)
            )


class TestConcurrentRedeem:

    @pytest.fixture
    async def file_database(self, tmp_path):
        """Separate connections over one SQLite file."""
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'reset.db'}")
        await database.create_tables()
        yield database
        await database.dispose()

    @pytest.mark.asyncio
    async def test_parallel_redemptions_consume_token_once(self, file_database):
        async with file_database.session() as session:
            alice = await user_ops.create_user(
                session, "alice@example.com", "Alice", hash_password_sync("old-password", rounds=4)
            )
            reset_token = await password_reset_ops.create_reset_token(session, alice.id)

        passwords = ["first-pass", "second-pass"]
        hashes = [hash_password_sync(p, rounds=4) for p in passwords]

        async def redeem(password_hash):
            async with file_database.session() as session:
                return await password_reset_ops.redeem_reset_token(
                    session, reset_token.token, password_hash
                )

        results = await asyncio.gather(*(redeem(h) for h in hashes), return_exceptions=True)

        winners = [i for i, r in enumerate(results) if isinstance(r, User)]
        losers = [r for r in results if not isinstance(r, User)]
        assert len(winners) == 1
        assert len(losers) == 1
        assert isinstance(losers[0], ValidationError)

        winner = passwords[winners[0]]
        loser = passwords[1 - winners[0]]
        async with file_database.session() as session:
            user = await user_ops.get_user_by_id(session, alice.id)
            stored = await password_reset_ops.get_reset_token(session, reset_token.token)
        assert verify_password_sync(winner, user.password_hash)
        assert not verify_password_sync(loser, user.password_hash)
        assert stored.used is True


class TestCleanup:

    @pytest.mark.asyncio
    async def test_delete_expired_and_used_tokens(self, session, alice):
        await password_reset_ops.create_reset_token(
            session, alice.id, now=utcnow() - timedelta(hours=3), revoke_previous=False
        )
        used = await password_reset_ops.create_reset_token(session, alice.id, revoke_previous=False)
        await password_reset_ops.mark_token_as_used(session, used)
        live = await password_reset_ops.create_reset_token(session, alice.id, revoke_previous=False)

        deleted = await password_reset_ops.delete_expired_tokens(session)

        assert deleted == 2
        assert await password_reset_ops.get_reset_token(session, live.token) is not None
        assert await password_reset_ops.get_reset_token(session, used.token) is None
