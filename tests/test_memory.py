"""Unit tests for the conversation memory module."""
import asyncio
import itertools

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from chatforms.errors import NotFoundError
from chatforms.memory import (
    ConversationStore,
    ConversationSweeper,
    InMemoryConversationStore,
    Message,
    create_conversation_store,
)

from .conftest import SYSTEM_PROMPT, FakeClock


class TestConversationStoreInterface:
    """Tests for the abstract ConversationStore interface."""

    def test_store_is_abstract(self):
        """Test that ConversationStore cannot be instantiated directly."""
        with pytest.raises(TypeError):
            ConversationStore()  # type: ignore


class TestGetOrCreate:
    """Tests for conversation creation and lookup."""

    @pytest.mark.asyncio
    async def test_new_conversation_has_one_system_message(self, store):
        conversation_id, messages = await store.get_or_create()

        assert conversation_id.startswith("conv_")
        assert len(messages) == 1
        assert messages[0].role == "system"
        assert messages[0].content == SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_unknown_id_allocates_new_conversation(self, store):
        conversation_id, _ = await store.get_or_create("conv_does_not_exist")

        assert conversation_id != "conv_does_not_exist"
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_known_id_returns_same_conversation(self, store):
        conversation_id, _ = await store.get_or_create()
        await store.append(conversation_id, Message(role="user", content="hi"))

        same_id, messages = await store.get_or_create(conversation_id)

        assert same_id == conversation_id
        assert [m.content for m in messages] == [SYSTEM_PROMPT, "hi"]

    @pytest.mark.asyncio
    async def test_colliding_ids_are_skipped(self, clock):
        ids = iter(["conv_a", "conv_a", "conv_b"])
        store = InMemoryConversationStore(
            system_prompt=SYSTEM_PROMPT, clock=clock, id_factory=lambda: next(ids)
        )

        first, _ = await store.get_or_create()
        second, _ = await store.get_or_create()

        assert (first, second) == ("conv_a", "conv_b")

    @pytest.mark.asyncio
    async def test_new_ids_are_distinct(self, store):
        ids = {(await store.get_or_create())[0] for _ in range(50)}
        assert len(ids) == 50


class TestAppendAndGet:
    """Tests for appending and reading messages."""

    @pytest.mark.asyncio
    async def test_get_excludes_system_message(self, store):
        conversation_id, _ = await store.get_or_create()
        await store.append(conversation_id, Message(role="user", content="hello"))
        await store.append(conversation_id, Message(role="assistant", content="hi there"))

        messages = await store.get(conversation_id)

        assert [(m.role, m.content) for m in messages] == [
            ("user", "hello"),
            ("assistant", "hi there"),
        ]

    @pytest.mark.asyncio
    async def test_get_with_system_message(self, store):
        conversation_id, _ = await store.get_or_create()
        messages = await store.get(conversation_id, include_system=True)
        assert messages[0].role == "system"

    @pytest.mark.asyncio
    async def test_get_is_idempotent(self, store, clock):
        conversation_id, _ = await store.get_or_create()
        await store.append(conversation_id, Message(role="user", content="hello"))

        first = await store.get(conversation_id)
        clock.advance(5)
        second = await store.get(conversation_id)

        assert first == second

    @pytest.mark.asyncio
    async def test_append_to_unknown_conversation_fails(self, store):
        with pytest.raises(NotFoundError):
            await store.append("conv_missing", Message(role="user", content="hi"))

    @pytest.mark.asyncio
    async def test_get_unknown_conversation_fails(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            await store.get("conv_missing")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, store):
        conversation_id, _ = await store.get_or_create()

        assert await store.delete(conversation_id) is True
        assert await store.delete(conversation_id) is False
        with pytest.raises(NotFoundError):
            await store.get(conversation_id)


class TestExpiry:
    """Tests for TTL expiry."""

    @pytest.mark.asyncio
    async def test_sweep_removes_expired_conversation(self, store, clock):
        """Create, wait past the TTL, sweep: the conversation is gone."""
        conversation_id, _ = await store.get_or_create()
        clock.advance(3601)

        assert await store.sweep() == 1
        with pytest.raises(NotFoundError):
            await store.get(conversation_id)

    @pytest.mark.asyncio
    async def test_sweep_keeps_fresh_conversation(self, store, clock):
        stale_id, _ = await store.get_or_create()
        clock.advance(3000)
        fresh_id, _ = await store.get_or_create()
        clock.advance(1000)

        assert await store.sweep() == 1
        assert await store.contains(fresh_id)
        assert not await store.contains(stale_id)

    @pytest.mark.asyncio
    async def test_access_refreshes_ttl(self, store, clock):
        conversation_id, _ = await store.get_or_create()
        clock.advance(3000)
        await store.get(conversation_id)
        clock.advance(3000)

        assert await store.sweep() == 0
        assert await store.contains(conversation_id)

    @pytest.mark.asyncio
    async def test_expired_conversation_is_dropped_on_access(self, store, clock):
        conversation_id, _ = await store.get_or_create()
        clock.advance(3601)

        with pytest.raises(NotFoundError):
            await store.get(conversation_id)
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_expired_id_gets_a_new_conversation(self, store, clock):
        conversation_id, _ = await store.get_or_create()
        clock.advance(3601)

        new_id, messages = await store.get_or_create(conversation_id)

        assert new_id != conversation_id
        assert len(messages) == 1


class TestCapacity:
    """Tests for the conversation cap."""

    @pytest.mark.asyncio
    async def test_oldest_conversation_evicted_at_101(self, store, clock):
        """Creating 101 conversations keeps 100 and drops the first."""
        created = []
        for _ in range(101):
            conversation_id, _ = await store.get_or_create()
            created.append(conversation_id)
            clock.advance(1)

        assert await store.count() == 100
        assert not await store.contains(created[0])
        assert all([await store.contains(cid) for cid in created[1:]])

    @pytest.mark.asyncio
    async def test_least_recently_accessed_is_evicted_first(self, clock):
        store = InMemoryConversationStore(
            system_prompt=SYSTEM_PROMPT, max_conversations=2, clock=clock
        )
        first, _ = await store.get_or_create()
        clock.advance(1)
        second, _ = await store.get_or_create()
        clock.advance(1)
        await store.append(first, Message(role="user", content="still here"))
        clock.advance(1)

        await store.get_or_create()

        assert await store.contains(first)
        assert not await store.contains(second)

    @given(
        max_conversations=st.integers(min_value=1, max_value=10),
        operations=st.lists(st.integers(min_value=-1, max_value=15), max_size=60),
    )
    @settings(max_examples=50, deadline=None)
    def test_store_never_exceeds_capacity(self, max_conversations: int, operations: list[int]):
        """Property test: any mix of creations and appends stays within the cap."""

        async def run() -> None:
            clock = FakeClock()
            counter = itertools.count()
            store = InMemoryConversationStore(
                system_prompt=SYSTEM_PROMPT,
                max_conversations=max_conversations,
                clock=clock,
                id_factory=lambda: f"conv_{next(counter)}",
            )
            live: list[str] = []
            for op in operations:
                clock.advance(1)
                if op < 0 or not live:
                    conversation_id, _ = await store.get_or_create()
                    live.append(conversation_id)
                else:
                    target = live[op % len(live)]
                    if await store.contains(target):
                        await store.append(target, Message(role="user", content="x"))
                assert await store.count() <= max_conversations

        asyncio.run(run())

    def test_invalid_limits_rejected(self):
        with pytest.raises(ValueError):
            InMemoryConversationStore(system_prompt=SYSTEM_PROMPT, max_conversations=0)
        with pytest.raises(ValueError):
            InMemoryConversationStore(system_prompt=SYSTEM_PROMPT, ttl_seconds=0)


class TestConversationSweeper:
    """Tests for the background sweeper."""

    @pytest.mark.asyncio
    async def test_sweeper_removes_expired_conversations(self, store, clock):
        conversation_id, _ = await store.get_or_create()
        clock.advance(3601)

        sweeper = ConversationSweeper(store, interval_seconds=0.01)
        sweeper.start()
        try:
            for _ in range(100):
                if await store.count() == 0:
                    break
                await asyncio.sleep(0.01)
        finally:
            await sweeper.stop()

        assert not sweeper.running
        assert not await store.contains(conversation_id)

    @pytest.mark.asyncio
    async def test_sweeper_survives_failed_sweep(self, store):
        calls = 0
        sweep = store.sweep

        async def flaky_sweep():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("backend unavailable")
            return await sweep()

        store.sweep = flaky_sweep
        sweeper = ConversationSweeper(store, interval_seconds=0.01)
        sweeper.start()
        try:
            for _ in range(100):
                if calls >= 2:
                    break
                await asyncio.sleep(0.01)
            assert sweeper.running
        finally:
            await sweeper.stop()

        assert calls >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, store):
        sweeper = ConversationSweeper(store)
        await sweeper.stop()
        assert not sweeper.running

    def test_interval_must_be_positive(self, store):
        with pytest.raises(ValueError):
            ConversationSweeper(store, interval_seconds=0)


class TestStoreFactory:
    """Tests for create_conversation_store."""

    def test_create_memory_store(self):
        store = create_conversation_store("memory", system_prompt=SYSTEM_PROMPT)
        assert isinstance(store, InMemoryConversationStore)
        assert store.backend_type == "memory"

    def test_default_system_prompt_is_loaded(self):
        store = create_conversation_store("memory")
        assert isinstance(store, InMemoryConversationStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported conversation store backend"):
            create_conversation_store("redis")
