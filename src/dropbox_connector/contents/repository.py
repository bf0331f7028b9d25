"""Repository implementation for indexing content from a Dropbox team."""

from typing import List, Optional, Union

from .dropbox_object import DropBoxObject
from ..api_clients import DropBoxClientFactory, DropboxClientError, TeamClient
from ..indexing import (
    CheckpointIterable,
    DeleteItem,
    Item,
    PushItem,
    PushItems,
    Repository,
    RepositoryContext,
    RepositoryError,
    Unsupported
)
from ..indexing.repository import DocResult, OperationsResult
from ..utils.logging import get_logger, log_async_execution_time


class DropBoxRepository(Repository):
    """Pushes one reference per Dropbox team member to the index host."""

    def __init__(self, team_client: Optional[TeamClient] = None, team_member_ids: Optional[List[str]] = None):
        """Initialize the repository.

        Args:
            team_client: Pre-built team client; created from configuration in
                :meth:`init` when omitted
            team_member_ids: Allow-list of member IDs; taken from configuration
                in :meth:`init` when omitted. Empty means all members.
        """
        self.team_client = team_client
        self.team_member_ids: List[str] = list(team_member_ids or [])
        self.logger = get_logger(self.__class__.__name__)

    async def init(self, context: RepositoryContext) -> None:
        """Create the Dropbox team client and read the member allow-list.

        Raises:
            RepositoryError: If the credential file cannot be used
        """
        dropbox_settings = context.settings.dropbox
        if not self.team_member_ids:
            self.team_member_ids = list(dropbox_settings.team_member_ids)

        if self.team_client is None:
            try:
                self.team_client = DropBoxClientFactory.get_team_client(
                    dropbox_settings.credential_file,
                    page_size=dropbox_settings.page_size
                )
            except DropboxClientError as e:
                raise RepositoryError(f"Failed to initialize Dropbox team client: {e}") from e

        self.logger.info(
            "Dropbox repository initialized",
            connector_id=context.connector_id,
            team_member_filter=len(self.team_member_ids)
        )

    @log_async_execution_time
    async def get_ids(self, checkpoint: Optional[bytes]) -> OperationsResult:
        """Push a reference for every (allowed) team member.

        Each pushed item is later polled and resolved by :meth:`get_doc`.

        Args:
            checkpoint: Passed through unchanged

        Returns:
            A CheckpointIterable holding a single PushItems batch

        Raises:
            RepositoryError: If the members cannot be listed
        """
        team_client = self._require_client()
        push_items = PushItems()

        try:
            members = await team_client.get_members()
        except DropboxClientError as e:
            raise RepositoryError("Failed to get user IDs") from e

        allowed = set(self.team_member_ids)
        for member in members:
            if allowed and member.team_member_id not in allowed:
                continue

            dropbox_object = DropBoxObject.builder(DropBoxObject.MEMBER, member.team_member_id).build()
            push_items.add_push_item(
                member.display_name,
                PushItem().encode_payload(dropbox_object.encode_payload())
            )

        self.logger.info(
            "Team member references collected",
            members_listed=len(members),
            items_pushed=len(push_items)
        )

        return CheckpointIterable([push_items], checkpoint=checkpoint)

    async def get_changes(self, checkpoint: Optional[bytes]) -> OperationsResult:
        """Change detection has no implementation yet."""
        return Unsupported("get_changes", "change detection is not implemented for Dropbox members")

    @log_async_execution_time
    async def get_doc(self, item: Item) -> DocResult:
        """Resolve a queued member reference.

        Undecodable or invalid references are deleted from the index rather
        than retried.
        """
        try:
            dropbox_object = DropBoxObject.decode_payload(item.decode_payload())
        except ValueError as e:
            self.logger.warning("Invalid Dropbox payload on item", item_name=item.name, error=str(e))
            return DeleteItem(item.name)

        if not dropbox_object.is_valid():
            self.logger.warning(
                "Invalid Dropbox payload object on item",
                item_name=item.name,
                payload=str(dropbox_object)
            )
            return DeleteItem(item.name)

        team_client = self._require_client()
        member_client = team_client.as_member(dropbox_object.team_member_id)

        if dropbox_object.object_type == DropBoxObject.MEMBER:
            # TODO: decide what a member document holds (profile vs. per-member file traversal)
            self.logger.debug(
                "Member document resolution not implemented",
                item_name=item.name,
                team_member_id=member_client.team_member_id
            )
            return Unsupported("get_doc", "member document resolution is not implemented")

        return Unsupported("get_doc", f"unhandled object type {dropbox_object.object_type!r}")

    async def get_all_docs(self, checkpoint: Optional[bytes]) -> OperationsResult:
        """Not implemented by this repository."""
        return Unsupported("get_all_docs")

    async def exists(self, item: Item) -> Union[bool, Unsupported]:
        """Not implemented by this repository."""
        return Unsupported("exists")

    async def close(self) -> None:
        """Close the Dropbox session."""
        if self.team_client is not None:
            self.team_client.close()
            self.team_client = None
            self.logger.info("Dropbox repository closed")

    def _require_client(self) -> TeamClient:
        if self.team_client is None:
            raise RepositoryError("Repository not initialized")
        return self.team_client
