import threading
from datetime import timedelta

import pytest

from passwordless.application.registry import Passwordless
from passwordless.domain.errors import (
    ErrorKind,
    NotValidForContext,
    TokenNotConsumed,
    TokenNotFound,
    UnknownStrategy,
)
from passwordless.domain.strategy import SimpleStrategy
from tests.fakes import FakeGenerator, FakeTokenStore, FakeTransport, raiser


def test_set_transport_registers_simple_strategy(pw):
    s = pw.get_strategy("test")
    assert isinstance(s, SimpleStrategy)
    assert pw.list_strategies() == {"test": s}
    assert s.ttl(None) == timedelta(minutes=5)
    assert s.valid(None) is True


def test_unknown_strategy(pw):
    with pytest.raises(UnknownStrategy) as ei:
        pw.get_strategy("madeup")
    assert ei.value.kind is ErrorKind.UNKNOWN_STRATEGY
    assert ei.value.name == "madeup"


def test_set_strategy_overwrites(pw, transport):
    replacement = SimpleStrategy(
        token_ttl=timedelta(minutes=1),
        generator=FakeGenerator("other"),
        transport=transport,
    )
    pw.set_strategy("test", replacement)
    pw.set_strategy("test", replacement)
    assert pw.list_strategies() == {"test": replacement}


def test_list_strategies_is_a_snapshot(pw):
    snapshot = pw.list_strategies()
    pw.set_transport("late", FakeTransport(), FakeGenerator(), timedelta(minutes=1))
    assert "late" not in snapshot
    snapshot.clear()
    assert set(pw.list_strategies()) == {"test", "late"}


def test_list_strategies_filters_by_context(pw):
    pw.set_transport(
        "admin_only",
        FakeTransport(),
        FakeGenerator(),
        timedelta(minutes=1),
        valid=lambda ctx: bool(ctx and ctx.get("admin")),
    )
    assert set(pw.list_strategies()) == {"test", "admin_only"}
    assert set(pw.list_strategies({"admin": False})) == {"test"}
    assert set(pw.list_strategies({"admin": True})) == {"test", "admin_only"}


def test_concurrent_registration_keeps_every_strategy():
    pw = Passwordless(FakeTokenStore())

    def register(i: int) -> None:
        pw.set_transport(
            f"s{i}", FakeTransport(), FakeGenerator(), timedelta(minutes=1)
        )
        pw.list_strategies()

    threads = [threading.Thread(target=register, args=(i,)) for i in range(32)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert set(pw.list_strategies()) == {f"s{i}" for i in range(32)}


@pytest.mark.asyncio
async def test_request_then_verify_round_trip(pw, transport, generator):
    await pw.request_token("test", "uid", "recipient")
    assert transport.calls == [
        {"ctx": None, "token": "1337", "uid": "uid", "recipient": "recipient"}
    ]

    assert await pw.verify_token("uid", "badtoken") is False
    assert await pw.verify_token("uid", generator.token) is True

    # consumed
    with pytest.raises(TokenNotFound):
        await pw.verify_token("uid", generator.token)


@pytest.mark.asyncio
async def test_request_unknown_strategy_touches_nothing():
    store = FakeTokenStore()
    pw = Passwordless(store)
    generator, transport = FakeGenerator(), FakeTransport()
    pw.set_transport("test", transport, generator, timedelta(minutes=5))

    with pytest.raises(UnknownStrategy):
        await pw.request_token("madeup", "uid", "recipient")

    assert generator.calls == 0
    assert transport.calls == []
    assert store.calls == []


@pytest.mark.asyncio
async def test_request_strategy_not_valid_for_context():
    store = FakeTokenStore()
    pw = Passwordless(store)
    transport = FakeTransport()
    pw.set_transport(
        "unfriendly",
        transport,
        FakeGenerator(),
        timedelta(minutes=5),
        valid=lambda ctx: False,
    )

    with pytest.raises(NotValidForContext):
        await pw.request_token("unfriendly", "uid", "recipient")
    assert transport.calls == []
    assert store.calls == []


@pytest.mark.asyncio
async def test_ctx_reaches_the_transport(pw, transport):
    await pw.request_token("test", "uid", "recipient", ctx={"env": "dev"})
    assert transport.calls[0]["ctx"] == {"env": "dev"}


@pytest.mark.asyncio
async def test_verify_sanitizes_with_the_named_strategy():
    store = FakeTokenStore(verify=lambda token, uid: token == "ABCD")
    pw = Passwordless(store)
    pw.set_transport("test", FakeTransport(), FakeGenerator(), timedelta(minutes=5))

    assert await pw.verify_token("uid", " abcd ", strategy="test") is True
    assert store.calls[0] == ("verify", "ABCD", "uid")

    with pytest.raises(UnknownStrategy):
        await pw.verify_token("uid", "abcd", strategy="madeup")


@pytest.mark.asyncio
async def test_verify_without_strategy_passes_token_through():
    store = FakeTokenStore(verify=lambda token, uid: False)
    pw = Passwordless(store)
    assert await pw.verify_token("uid", " abcd ") is False
    assert store.calls == [("verify", " abcd ", "uid")]


@pytest.mark.asyncio
async def test_verify_delete_failure_is_reported():
    store = FakeTokenStore(
        verify=lambda token, uid: True,
        delete=raiser(RuntimeError("delete failure")),
    )
    pw = Passwordless(store)

    with pytest.raises(TokenNotConsumed) as ei:
        await pw.verify_token("uid", "token")
    assert ei.value.valid is True
    assert ei.value.uid == "uid"
    assert str(ei.value.__cause__) == "delete failure"


class ClosingTransport(FakeTransport):
    def __init__(self) -> None:
        super().__init__()
        self.closed = 0

    async def aclose(self) -> None:
        self.closed += 1


@pytest.mark.asyncio
async def test_aclose_closes_transports_that_hold_resources(pw, transport):
    closing = ClosingTransport()
    pw.set_transport("closing", closing, FakeGenerator(), timedelta(minutes=5))

    await pw.aclose()

    assert closing.closed == 1
    # plain transports have nothing to close
    assert not hasattr(transport, "aclose")
