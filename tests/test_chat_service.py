import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from application.services.chat_service import ChatApplicationService, run_retention_sweep
from core.config import settings
from domain.chat.entity import ChatMessage
from domain.common.exceptions import ChatMessagePersistenceException
from infrastructure.realtime.hub import ChatHub
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from tests.realtime.fakes import FakeClient


def _at(text: str, age: timedelta) -> ChatMessage:
    return ChatMessage(user_id="alice", text=text, created_at=datetime.now(timezone.utc) - age)


@pytest.mark.asyncio
async def test_recent_returns_newest_first_with_offset(db):
    service = ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)
    for i in range(3):
        await service.save(_at(f"m{i}", timedelta(minutes=10 - i)))

    latest = await service.recent(2)
    assert [m.text for m in latest] == ["m2", "m1"]
    assert [m.text for m in await service.recent(2, 2)] == ["m0"]
    assert all(m.created_at.tzinfo is not None for m in latest)


@pytest.mark.asyncio
async def test_saved_message_round_trips(db):
    service = ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)
    message = ChatMessage.create("bob", "round trip")
    await service.save(message)

    [stored] = await service.recent(10)
    assert stored.id == message.id
    assert stored.user_id == "bob"
    assert stored.text == "round trip"


@pytest.mark.asyncio
async def test_trim_removes_only_expired_messages(db):
    service = ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)
    await service.save(_at("ancient", timedelta(days=45)))
    await service.save(_at("old", timedelta(days=31)))
    await service.save(_at("fresh", timedelta(days=1)))

    removed = await service.trim(timedelta(days=30))

    assert removed == 2
    assert [m.text for m in await service.recent(10)] == ["fresh"]


@pytest.mark.asyncio
async def test_get_messages_applies_default_and_cap(db, monkeypatch):
    service = ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)
    for i in range(4):
        await service.save(_at(f"m{i}", timedelta(seconds=10 - i)))

    assert len(await service.get_messages(limit=0)) == 4

    monkeypatch.setattr(settings, "MAX_PAGE_SIZE", 2)
    page = await service.get_messages(limit=500, offset=-3)
    assert [m.text for m in page] == ["m3", "m2"]


class _BrokenUnitOfWork:
    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        raise ConnectionError("database unavailable")

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.mark.asyncio
async def test_save_failure_is_wrapped():
    service = ChatApplicationService(uow_factory=_BrokenUnitOfWork)
    message = ChatMessage.create("alice", "lost")

    with pytest.raises(ChatMessagePersistenceException) as exc:
        await service.save(message)
    assert exc.value.details["message_id"] == message.id


class _CountingStore:
    def __init__(self, fail_first: bool = False):
        self.calls = []
        self._fail_first = fail_first

    async def trim(self, older_than: timedelta) -> int:
        self.calls.append(older_than)
        if self._fail_first and len(self.calls) == 1:
            raise RuntimeError("locked")
        return 0


@pytest.mark.asyncio
async def test_retention_sweep_keeps_running_after_failure():
    store = _CountingStore(fail_first=True)
    task = asyncio.create_task(
        run_retention_sweep(store, retention=timedelta(days=30), interval_s=0.01)
    )
    try:
        for _ in range(100):
            if len(store.calls) >= 3:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert len(store.calls) >= 3
    assert all(c == timedelta(days=30) for c in store.calls)


@pytest.mark.asyncio
async def test_recent_follows_persist_order_not_creation_time(db):
    service = ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)
    built_first = ChatMessage.create("alice", "built first")
    built_second = ChatMessage.create("bob", "built second")

    await service.save(built_second)
    await service.save(built_first)

    assert [m.text for m in await service.recent(10)] == ["built first", "built second"]


@pytest.mark.asyncio
async def test_late_joiner_history_matches_live_order(db):
    service = ChatApplicationService(uow_factory=SQLAlchemyUnitOfWork)
    hub = ChatHub(service)
    hub.start()
    try:
        live = FakeClient("live")
        await hub.register(live)

        built_first = ChatMessage.create("alice", "built first")
        built_second = ChatMessage.create("bob", "built second")
        # the later-built message reaches the hub first
        await hub.broadcast(built_second)
        await hub.broadcast(built_first)
        await hub.wait_idle()

        late = FakeClient("late")
        await hub.register(late)
        await hub.wait_idle()

        assert await late.texts() == await live.texts() == ["built second", "built first"]
    finally:
        await hub.shutdown()
