"""Tests for host item models and the in-memory indexing service."""

import sys
import os

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from dropbox_connector.indexing import (
    CheckpointIterable,
    DeleteItem,
    InMemoryIndexingService,
    Item,
    ItemStatus,
    PushItem,
    PushItems,
    RepositoryDoc,
    Unsupported
)


class TestModels:
    """Item payloads, operations and Unsupported."""

    def test_item_payload_is_base64_on_the_wire(self):
        item = Item(name="Alice").encode_payload(b"\x00raw bytes")

        assert item.payload == "AHJhdyBieXRlcw=="
        assert item.decode_payload() == b"\x00raw bytes"

    def test_invalid_base64_payload(self):
        with pytest.raises(ValueError):
            Item(name="x", payload="***").decode_payload()

    def test_push_items_preserve_order(self):
        batch = PushItems()
        batch.add_push_item("B", PushItem()).add_push_item("A", PushItem())

        assert [name for name, _ in batch] == ["B", "A"]
        assert len(batch) == 2

    def test_delete_items_compare_by_value(self):
        assert DeleteItem("Alice") == DeleteItem("Alice")
        assert DeleteItem("Alice") != DeleteItem("Bob")

    def test_unsupported_is_falsy(self):
        result = Unsupported("exists")

        assert not result
        assert result.reason == "not implemented by this repository"

    def test_checkpoint_iterable_close(self):
        iterable = CheckpointIterable([DeleteItem("a")], checkpoint=b"cp")

        with iterable as operations:
            assert list(operations) == [DeleteItem("a")]

        assert iterable.closed
        with pytest.raises(ValueError):
            iter(iterable)


class TestInMemoryIndexingService:
    """Queue and index bookkeeping."""

    @pytest.mark.asyncio
    async def test_push_then_poll(self):
        service = InMemoryIndexingService()
        batch = PushItems()
        batch.add_push_item("A", PushItem().encode_payload(b"a"))
        batch.add_push_item("B", PushItem().encode_payload(b"b"))

        await batch.execute(service)

        assert service.queue_size == 2
        polled = await service.poll(limit=1)
        assert [item.name for item in polled] == ["A"]
        assert polled[0].decode_payload() == b"a"
        assert [item.name for item in await service.poll()] == ["B"]
        assert await service.poll() == []

    @pytest.mark.asyncio
    async def test_repush_updates_payload_without_duplicating(self):
        service = InMemoryIndexingService()

        await service.push_item("A", PushItem().encode_payload(b"old"))
        await service.push_item("A", PushItem().encode_payload(b"new"))

        assert service.queue_size == 1
        item = (await service.poll())[0]
        assert item.decode_payload() == b"new"
        assert item.status == ItemStatus.MODIFIED

    @pytest.mark.asyncio
    async def test_delete_removes_item(self):
        service = InMemoryIndexingService()
        await service.push_item("A", PushItem())

        await DeleteItem("A").execute(service)

        assert "A" not in service.items
        assert list(service.deleted) == ["A"]
        assert service.deleted_count == 1
        assert service.queue_size == 0

    @pytest.mark.asyncio
    async def test_deleted_history_is_bounded(self):
        service = InMemoryIndexingService(deleted_history=2)

        for name in ("A", "B", "C"):
            await service.delete_item(name)

        assert list(service.deleted) == ["B", "C"]
        assert service.deleted_count == 3

    @pytest.mark.asyncio
    async def test_index_document(self):
        service = InMemoryIndexingService()
        doc = RepositoryDoc(item=Item(name="A"), content=b"profile")

        await doc.execute(service)

        assert service.indexed["A"] is doc
        assert service.items["A"].status == ItemStatus.ACCEPTED
