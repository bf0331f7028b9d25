"""Tests for the Dropbox repository hooks."""

import sys
import os
import json
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
import requests

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from dropbox_connector.api_clients import APIConnectionError, AuthenticationError, TeamClient
from dropbox_connector.config import AppSettings, DropboxSettings
from dropbox_connector.contents import DropBoxObject, DropBoxRepository
from dropbox_connector.indexing import (
    CheckpointIterable,
    DeleteItem,
    Item,
    PushItems,
    RepositoryContext,
    RepositoryError,
    Unsupported
)
from dropbox_connector.utils.logging import setup_logging


def make_member_info(team_member_id, display_name):
    return SimpleNamespace(
        profile=SimpleNamespace(
            team_member_id=team_member_id,
            name=SimpleNamespace(display_name=display_name),
            email=f"{display_name.lower()}@example.com",
            status=SimpleNamespace(_tag="active"),
            account_id=None
        )
    )


@pytest.fixture
def team():
    """SDK team object listing members A (id1), B (id2), C (id3) over two pages."""
    team = Mock()
    team.team_members_list.return_value = SimpleNamespace(
        members=[make_member_info("id1", "A"), make_member_info("id2", "B")],
        cursor="cursor-1",
        has_more=True
    )
    team.team_members_list_continue.return_value = SimpleNamespace(
        members=[make_member_info("id3", "C")],
        cursor=None,
        has_more=False
    )
    return team


def make_item(name, reference):
    return Item(name=name).encode_payload(reference.encode_payload())


def pushed_references(result):
    """Decode every pushed reference from a get_ids result as {name: team_member_id}."""
    operations = list(result)
    assert len(operations) == 1
    assert isinstance(operations[0], PushItems)
    return {
        name: DropBoxObject.decode_payload(push_item.decode_payload()).team_member_id
        for name, push_item in operations[0]
    }


class TestEnumeration:
    """get_ids behaviour."""

    @pytest.mark.asyncio
    async def test_allow_list_filters_members(self, team):
        repository = DropBoxRepository(TeamClient(team), team_member_ids=["id1", "id3"])

        result = await repository.get_ids(None)

        assert isinstance(result, CheckpointIterable)
        assert pushed_references(result) == {"A": "id1", "C": "id3"}

    @pytest.mark.asyncio
    async def test_empty_allow_list_pushes_everyone(self, team):
        repository = DropBoxRepository(TeamClient(team))

        result = await repository.get_ids(None)

        assert pushed_references(result) == {"A": "id1", "B": "id2", "C": "id3"}

    @pytest.mark.asyncio
    async def test_pushed_payloads_are_member_references(self, team):
        repository = DropBoxRepository(TeamClient(team))

        result = await repository.get_ids(None)
        push_items = list(result)[0]

        for name, push_item in push_items:
            reference = DropBoxObject.decode_payload(push_item.decode_payload())
            assert reference.object_type == DropBoxObject.MEMBER
            assert reference.is_valid()

    @pytest.mark.asyncio
    async def test_checkpoint_passed_through(self, team):
        repository = DropBoxRepository(TeamClient(team))

        result = await repository.get_ids(b"checkpoint-7")

        assert result.checkpoint == b"checkpoint-7"
        assert result.has_more_items is False

    @pytest.mark.asyncio
    async def test_transport_error_aborts_without_partial_batch(self, team):
        team.team_members_list_continue.side_effect = requests.exceptions.ConnectionError("reset")
        repository = DropBoxRepository(TeamClient(team))

        with pytest.raises(RepositoryError, match="Failed to get user IDs") as exc_info:
            await repository.get_ids(None)

        assert isinstance(exc_info.value.__cause__, APIConnectionError)

    @pytest.mark.asyncio
    async def test_not_initialized(self):
        with pytest.raises(RepositoryError, match="not initialized"):
            await DropBoxRepository().get_ids(None)


class TestResolution:
    """get_doc behaviour."""

    @pytest.mark.asyncio
    async def test_empty_identifier_is_deleted(self, team):
        repository = DropBoxRepository(TeamClient(team))
        item = make_item("Alice", DropBoxObject("member", ""))

        result = await repository.get_doc(item)

        assert result == DeleteItem("Alice")

    @pytest.mark.asyncio
    async def test_unknown_object_type_is_deleted(self, team):
        repository = DropBoxRepository(TeamClient(team))
        item = make_item("Shared", DropBoxObject("folder", "id1"))

        assert await repository.get_doc(item) == DeleteItem("Shared")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, "%%%not-base64%%%", "bm90IGpzb24="])
    async def test_undecodable_payload_is_deleted(self, team, payload):
        repository = DropBoxRepository(TeamClient(team))

        result = await repository.get_doc(Item(name="broken", payload=payload))

        assert result == DeleteItem("broken")

    @pytest.mark.asyncio
    async def test_delete_on_invalid_is_idempotent(self):
        # No client needed: invalid items never reach the provider
        repository = DropBoxRepository()
        item = make_item("Alice", DropBoxObject("member", ""))

        results = [await repository.get_doc(item) for _ in range(3)]

        assert results == [DeleteItem("Alice")] * 3

    @pytest.mark.asyncio
    async def test_valid_member_resolution_is_unsupported(self, team):
        repository = DropBoxRepository(TeamClient(team))
        item = make_item("Alice", DropBoxObject("member", "id1"))

        result = await repository.get_doc(item)

        assert isinstance(result, Unsupported)
        assert result.operation == "get_doc"
        assert not result
        team.as_user.assert_called_once_with("id1")


class TestUnsupportedHooks:
    """Hooks without an implementation report Unsupported."""

    @pytest.mark.asyncio
    async def test_get_changes(self):
        result = await DropBoxRepository().get_changes(b"cp")
        assert isinstance(result, Unsupported)
        assert result.operation == "get_changes"

    @pytest.mark.asyncio
    async def test_get_all_docs(self):
        result = await DropBoxRepository().get_all_docs(None)
        assert isinstance(result, Unsupported)

    @pytest.mark.asyncio
    async def test_exists_is_falsy_but_distinguishable(self):
        result = await DropBoxRepository().exists(Item(name="Alice"))
        assert not result
        assert result is not False
        assert isinstance(result, Unsupported)


class TestLifecycle:
    """init and close."""

    @pytest.mark.asyncio
    async def test_init_from_settings(self, tmp_path):
        setup_logging(log_level="INFO", log_format="console")

        credential_file = tmp_path / "credential.json"
        credential_file.write_text(json.dumps({"access_token": "token"}))
        settings = AppSettings(
            dropbox=DropboxSettings(
                credential_file=str(credential_file),
                team_member_ids="id1, id3",
                page_size=10
            )
        )

        repository = DropBoxRepository()
        with patch("dropbox_connector.api_clients.factory.dropbox.DropboxTeam") as mock_team:
            await repository.init(RepositoryContext(settings=settings))

        assert repository.team_member_ids == ["id1", "id3"]
        assert repository.team_client.team is mock_team.return_value
        assert repository.team_client.page_size == 10

    @pytest.mark.asyncio
    async def test_init_with_missing_credentials(self, tmp_path):
        settings = AppSettings(dropbox=DropboxSettings(credential_file=str(tmp_path / "missing.json")))

        with pytest.raises(RepositoryError) as exc_info:
            await DropBoxRepository().init(RepositoryContext(settings=settings))

        assert isinstance(exc_info.value.__cause__, AuthenticationError)

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, team):
        repository = DropBoxRepository(TeamClient(team))

        await repository.close()
        await repository.close()

        team.close.assert_called_once()
        assert repository.team_client is None
