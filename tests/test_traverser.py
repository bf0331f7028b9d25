"""Tests for full and incremental traversals."""

import sys
import os
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import requests

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from dropbox_connector.api_clients import TeamClient
from dropbox_connector.contents import DropBoxObject, DropBoxRepository
from dropbox_connector.core import Traverser, TraversalResult
from dropbox_connector.indexing import (
    CheckpointIterable,
    DeleteItem,
    InMemoryIndexingService,
    PushItem,
    PushItems,
    Repository,
    RepositoryDoc,
    Unsupported
)


class RecordingRepository(Repository):
    """Repository double: indexes "doc-*", skips "skip-*", fails "boom-*", deletes the rest."""

    def __init__(self, names, changes=None):
        self.names = names
        self.changes = changes
        self.checkpoints = []
        self.resolved = []

    async def init(self, context):
        pass

    async def get_ids(self, checkpoint):
        self.checkpoints.append(checkpoint)
        batch = PushItems()
        for name in self.names:
            batch.add_push_item(name, PushItem().encode_payload(name.encode()))
        return CheckpointIterable([batch], checkpoint=b"next-%d" % len(self.checkpoints))

    async def get_changes(self, checkpoint):
        if self.changes is None:
            return Unsupported("get_changes")
        self.checkpoints.append(checkpoint)
        return CheckpointIterable(self.changes, checkpoint=b"changes")

    async def get_all_docs(self, checkpoint):
        return Unsupported("get_all_docs")

    async def get_doc(self, item):
        self.resolved.append(item.name)
        if item.name.startswith("doc-"):
            return RepositoryDoc(item=item, content=item.decode_payload())
        if item.name.startswith("boom-"):
            raise RuntimeError("resolution crashed")
        if item.name.startswith("skip-"):
            return Unsupported("get_doc")
        return DeleteItem(item.name)

    async def exists(self, item):
        return Unsupported("exists")

    async def close(self):
        pass


def make_member_info(team_member_id, display_name):
    return SimpleNamespace(
        profile=SimpleNamespace(
            team_member_id=team_member_id,
            name=SimpleNamespace(display_name=display_name),
            email=None,
            status=SimpleNamespace(_tag="active"),
            account_id=None
        )
    )


class TestTraverser:
    """Traversal bookkeeping against a repository double."""

    @pytest.mark.asyncio
    async def test_full_traversal_counts(self):
        repository = RecordingRepository(["doc-1", "doc-2", "gone", "skip-1"])
        service = InMemoryIndexingService()

        result = await Traverser(repository, service, poll_batch_size=3).full_traversal()

        assert isinstance(result, TraversalResult)
        assert result.success
        assert result.items_pushed == 4
        assert result.items_indexed == 2
        assert result.items_deleted == 1
        assert result.items_unsupported == 1
        assert result.items_processed == 4
        assert repository.resolved == ["doc-1", "doc-2", "gone", "skip-1"]
        assert set(service.indexed) == {"doc-1", "doc-2"}
        assert list(service.deleted) == ["gone"]
        assert service.queue_size == 0

    @pytest.mark.asyncio
    async def test_failed_resolution_does_not_stop_draining(self):
        repository = RecordingRepository(["boom-1", "doc-1", "doc-2"])
        service = InMemoryIndexingService()

        result = await Traverser(repository, service, poll_batch_size=2).full_traversal()

        assert result.success
        assert result.items_failed == 1
        assert result.items_indexed == 2
        assert result.to_dict()["items_failed"] == 1
        assert repository.resolved == ["boom-1", "doc-1", "doc-2"]
        assert service.queue_size == 0

    @pytest.mark.asyncio
    async def test_checkpoint_carried_between_passes(self):
        repository = RecordingRepository(["doc-1"])
        traverser = Traverser(repository, InMemoryIndexingService())

        await traverser.full_traversal()
        await traverser.full_traversal()

        assert repository.checkpoints == [None, b"next-1"]
        assert traverser.full_checkpoint == b"next-2"

    @pytest.mark.asyncio
    async def test_incremental_unsupported_is_skipped(self):
        traverser = Traverser(RecordingRepository([]), InMemoryIndexingService())

        result = await traverser.incremental_traversal()

        assert result.success
        assert result.skipped
        assert traverser.incremental_checkpoint is None

    @pytest.mark.asyncio
    async def test_incremental_applies_changes(self):
        service = InMemoryIndexingService()
        await service.push_item("stale", PushItem())
        await service.poll()
        repository = RecordingRepository([], changes=[DeleteItem("stale")])
        traverser = Traverser(repository, service)

        result = await traverser.incremental_traversal()

        assert result.success
        assert result.items_deleted == 1
        assert traverser.incremental_checkpoint == b"changes"


@pytest.mark.integration
class TestDropboxTraversal:
    """Traversal through the real Dropbox repository with a mocked SDK."""

    @pytest.fixture
    def team(self):
        team = Mock()
        team.team_members_list.return_value = SimpleNamespace(
            members=[make_member_info("id1", "A"), make_member_info("id2", "B")],
            cursor=None,
            has_more=False
        )
        return team

    @pytest.mark.asyncio
    async def test_members_pushed_and_resolution_unsupported(self, team):
        service = InMemoryIndexingService()
        traverser = Traverser(DropBoxRepository(TeamClient(team), ["id2"]), service)

        result = await traverser.full_traversal()

        assert result.success
        assert result.items_pushed == 1
        assert result.items_unsupported == 1
        payload = service.items["B"].decode_payload()
        assert DropBoxObject.decode_payload(payload) == DropBoxObject("member", "id2")

    @pytest.mark.asyncio
    async def test_invalid_queued_item_is_pruned(self, team):
        team.team_members_list.return_value = SimpleNamespace(members=[], cursor=None, has_more=False)
        service = InMemoryIndexingService()
        stale = PushItem().encode_payload(DropBoxObject("member", "").encode_payload())
        await service.push_item("Former member", stale)

        result = await Traverser(DropBoxRepository(TeamClient(team)), service).full_traversal()

        assert result.items_deleted == 1
        assert list(service.deleted) == ["Former member"]

    @pytest.mark.asyncio
    async def test_listing_failure_reported(self, team):
        team.team_members_list.side_effect = requests.exceptions.ConnectionError("down")
        service = InMemoryIndexingService()

        result = await Traverser(DropBoxRepository(TeamClient(team)), service).full_traversal()

        assert not result.success
        assert "Failed to get user IDs" in result.error_message
        assert result.items_pushed == 0
        assert service.items == {}
