"""Tests for credential parsing and the device identity cache."""

from datetime import timedelta

import pytest

from tts_gateway.minimax.identity import Credential, DeviceIdentityCache


class Clock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_parse_token_and_ticket() -> None:
    credential = Credential.parse("Bearer abc:ticket-1")

    assert credential.token == "abc"
    assert credential.op_ticket == "ticket-1"


def test_parse_token_only() -> None:
    credential = Credential.parse("Bearer abc")

    assert credential == Credential(token="abc", op_ticket="")


def test_parse_without_bearer_prefix() -> None:
    assert Credential.parse("abc:t") == Credential("abc", "t")


def test_acquire_is_stable_within_window() -> None:
    clock = Clock()
    cache = DeviceIdentityCache(timedelta(hours=3), clock=clock)
    credential = Credential("tok")

    first = cache.acquire(credential)
    clock.now += 60
    second = cache.acquire(credential)

    assert (second.device_id, second.user_id) == (first.device_id, first.user_id)
    assert first.device_id.isdigit()
    assert len(first.device_id) == 18
    assert first.expires_at == 1_000.0 + 3 * 3600


def test_acquire_regenerates_after_expiry() -> None:
    clock = Clock()
    cache = DeviceIdentityCache(timedelta(hours=3), clock=clock)
    credential = Credential("tok")

    first = cache.acquire(credential)
    clock.now = first.expires_at
    second = cache.acquire(credential)

    assert second.user_id != first.user_id
    assert len(cache) == 1
    assert cache.get("tok") == second


def test_tokens_have_independent_identities() -> None:
    cache = DeviceIdentityCache(clock=Clock())

    a = cache.acquire(Credential("a"))
    b = cache.acquire(Credential("b"))

    assert a.user_id != b.user_id
    assert len(cache) == 2


def test_full_cache_sweeps_expired_entries_first() -> None:
    clock = Clock()
    cache = DeviceIdentityCache(timedelta(seconds=10), capacity=2, clock=clock)
    cache.acquire(Credential("old"))
    clock.now += 5
    cache.acquire(Credential("newer"))
    clock.now += 6  # "old" is now expired, "newer" is not

    cache.acquire(Credential("third"))

    assert "old" not in cache
    assert "newer" in cache
    assert "third" in cache


def test_full_cache_evicts_oldest_live_entry() -> None:
    clock = Clock()
    cache = DeviceIdentityCache(timedelta(hours=1), capacity=2, clock=clock)
    cache.acquire(Credential("a"))
    clock.now += 1
    cache.acquire(Credential("b"))
    clock.now += 1

    cache.acquire(Credential("c"))

    assert len(cache) == 2
    assert "a" not in cache


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DeviceIdentityCache(capacity=0)
