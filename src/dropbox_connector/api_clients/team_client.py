"""Dropbox team API client."""

import asyncio
from typing import Any, Callable, List

import requests
from dropbox.exceptions import DropboxException

from .base import TeamMember, translate_error
from .member_client import MemberClient
from ..utils.logging import get_logger, log_async_execution_time


class TeamClient:
    """Team-scoped Dropbox client used for member enumeration."""

    def __init__(self, team: Any, page_size: int = 1000):
        """Initialize the team client.

        Args:
            team: Authenticated ``dropbox.DropboxTeam`` instance
            page_size: Members requested per ``team_members_list`` page (max 1000)
        """
        self.team = team
        self.page_size = page_size
        self.logger = get_logger(self.__class__.__name__)

    @log_async_execution_time
    async def get_members(self) -> List[TeamMember]:
        """List every member of the team, following pagination cursors.

        Returns:
            All team members, in API order

        Raises:
            DropboxClientError: On any API or transport failure; no partial
                list is returned
        """
        members: List[TeamMember] = []
        pages = 0

        try:
            result = await self._run(self.team.team_members_list, limit=self.page_size)
            while True:
                pages += 1
                members.extend(TeamMember.from_member_info(info) for info in result.members)

                self.logger.debug(
                    "Retrieved team members page",
                    members_count=len(result.members),
                    has_more=result.has_more
                )

                if not result.has_more:
                    break
                result = await self._run(self.team.team_members_list_continue, result.cursor)

        except (DropboxException, requests.exceptions.RequestException) as e:
            self.logger.error("Error listing team members", pages_read=pages, error=str(e))
            raise translate_error(e, "listing team members") from e

        self.logger.info("Completed team member listing", members=len(members), pages=pages)
        return members

    def as_member(self, team_member_id: str) -> MemberClient:
        """Get a client that acts on behalf of a single team member."""
        return MemberClient(self.team.as_user(team_member_id), team_member_id)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.team.close()

    async def _run(self, call: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking SDK call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: call(*args, **kwargs))
