"""Tests for the adaptive challenge gate."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from authguard.core.exceptions import StoreUnavailableError
from authguard.services.challenge import ChallengeGate, normalize_account


class SlowFailureStore:
    async def get_failures(self, account):
        await asyncio.sleep(5)
        return 0

    async def increment_failures(self, account):
        await asyncio.sleep(5)
        return 1

    async def reset_failures(self, account):
        await asyncio.sleep(5)


def test_normalize_account():
    assert normalize_account("  Alice@Example.COM ") == "alice@example.com"


@pytest.mark.asyncio
async def test_new_account_is_clear(challenge_gate):
    assert await challenge_gate.requires_challenge("alice@example.com") is False


@pytest.mark.asyncio
async def test_elevates_at_threshold(challenge_gate):
    assert await challenge_gate.on_failure("alice@example.com") == 1
    assert await challenge_gate.on_failure("alice@example.com") == 2
    assert await challenge_gate.requires_challenge("alice@example.com") is False

    assert await challenge_gate.on_failure("alice@example.com") == 3
    assert await challenge_gate.requires_challenge("alice@example.com") is True


@pytest.mark.asyncio
async def test_stays_elevated_until_success(challenge_gate):
    for _ in range(5):
        await challenge_gate.on_failure("alice@example.com")
    assert await challenge_gate.requires_challenge("alice@example.com") is True

    await challenge_gate.on_success("alice@example.com")

    assert await challenge_gate.requires_challenge("alice@example.com") is False
    assert await challenge_gate.on_failure("alice@example.com") == 1


@pytest.mark.asyncio
async def test_account_matching_is_case_insensitive(challenge_gate, failure_store):
    await challenge_gate.on_failure("Alice@Example.com")
    await challenge_gate.on_failure("ALICE@EXAMPLE.COM")
    await challenge_gate.on_failure(" alice@example.com")

    assert await failure_store.get_failures("alice@example.com") == 3
    assert await challenge_gate.requires_challenge("aLiCe@example.com") is True


@pytest.mark.asyncio
async def test_accounts_are_independent(challenge_gate):
    for _ in range(3):
        await challenge_gate.on_failure("alice@example.com")

    assert await challenge_gate.requires_challenge("bob@example.com") is False


@pytest.mark.asyncio
async def test_fails_closed_on_store_error(caplog):
    store = AsyncMock()
    store.get_failures.side_effect = StoreUnavailableError("connection refused")
    gate = ChallengeGate(store, threshold=3)

    assert await gate.requires_challenge("alice@example.com") is True
    assert "requiring challenge" in caplog.text
    assert "alice@example.com" not in caplog.text


@pytest.mark.asyncio
async def test_fails_closed_on_timeout():
    gate = ChallengeGate(SlowFailureStore(), threshold=3, timeout_seconds=0.01)

    assert await gate.requires_challenge("alice@example.com") is True


@pytest.mark.asyncio
async def test_on_failure_propagates_store_error():
    store = AsyncMock()
    store.increment_failures.side_effect = StoreUnavailableError("connection refused")
    gate = ChallengeGate(store, threshold=3)

    with pytest.raises(StoreUnavailableError):
        await gate.on_failure("alice@example.com")


@pytest.mark.asyncio
async def test_timeouts_surface_as_store_errors():
    gate = ChallengeGate(SlowFailureStore(), threshold=3, timeout_seconds=0.01)

    with pytest.raises(StoreUnavailableError, match="timed out"):
        await gate.on_failure("alice@example.com")
    with pytest.raises(StoreUnavailableError, match="timed out"):
        await gate.on_success("alice@example.com")


@pytest.mark.asyncio
async def test_threshold_of_one():
    store = AsyncMock()
    store.get_failures.return_value = 1
    gate = ChallengeGate(store, threshold=1)

    assert await gate.requires_challenge("alice@example.com") is True
