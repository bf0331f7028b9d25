"""Dropbox client acting as a single team member."""

import asyncio
from typing import Any, Dict

import requests
from dropbox.exceptions import DropboxException

from .base import translate_error
from ..utils.logging import get_logger


class MemberClient:
    """User-scoped client obtained from :meth:`TeamClient.as_member`."""

    def __init__(self, client: Any, team_member_id: str):
        self.client = client
        self.team_member_id = team_member_id
        self.logger = get_logger(self.__class__.__name__)

    async def get_account(self) -> Dict[str, Any]:
        """Get the member's account details."""
        loop = asyncio.get_running_loop()
        try:
            account = await loop.run_in_executor(None, self.client.users_get_current_account)
        except (DropboxException, requests.exceptions.RequestException) as e:
            self.logger.error(
                "Error getting member account",
                team_member_id=self.team_member_id,
                error=str(e)
            )
            raise translate_error(e, f"getting account for {self.team_member_id}") from e

        return {
            "account_id": account.account_id,
            "display_name": account.name.display_name,
            "email": account.email,
            "team_member_id": self.team_member_id
        }
