"""Factory for authenticated Dropbox clients."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

import dropbox

from .base import AuthenticationError
from .team_client import TeamClient
from ..utils.logging import get_logger, log_execution_time


class DropBoxClientFactory:
    """Creates Dropbox clients from a credential file.

    The credential file uses the Dropbox SDK credential layout::

        {"access_token": "...", "expires_at": 1700000000000,
         "refresh_token": "...", "app_key": "...", "app_secret": "..."}

    A refresh token with its app key lets the SDK renew access tokens on its
    own; a bare access token works until it expires.
    """

    logger = get_logger("DropBoxClientFactory")

    @classmethod
    def load_credential(cls, credential_file: Union[str, Path]) -> Dict[str, Any]:
        """Read and validate a credential file.

        Raises:
            AuthenticationError: If the file is missing, unreadable or incomplete
        """
        path = Path(credential_file)
        if not path.exists():
            cls.logger.error("Dropbox credential file not found", path=str(path))
            raise AuthenticationError(f"Credential file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                credential = json.load(f)
        except json.JSONDecodeError as e:
            raise AuthenticationError(f"Invalid credential file format: {e}") from e
        except OSError as e:
            raise AuthenticationError(f"Unable to read credential file: {e}") from e

        if not isinstance(credential, dict):
            raise AuthenticationError("Credential file must contain a JSON object")

        if not credential.get("access_token") and not credential.get("refresh_token"):
            raise AuthenticationError("Credential file needs an access_token or refresh_token")

        if credential.get("refresh_token") and not credential.get("app_key"):
            raise AuthenticationError("A refresh_token requires app_key in the credential file")

        return credential

    @classmethod
    def create_team(cls, credential: Dict[str, Any]) -> dropbox.DropboxTeam:
        """Build the SDK team object from a loaded credential."""
        return dropbox.DropboxTeam(
            oauth2_access_token=credential.get("access_token"),
            oauth2_refresh_token=credential.get("refresh_token"),
            oauth2_access_token_expiration=cls._parse_expiration(credential.get("expires_at")),
            app_key=credential.get("app_key"),
            app_secret=credential.get("app_secret")
        )

    @classmethod
    @log_execution_time
    def get_team_client(cls, credential_file: Union[str, Path], page_size: int = 1000) -> TeamClient:
        """Create a team client from a credential file.

        Args:
            credential_file: Path to the credential JSON file
            page_size: Members requested per listing page

        Returns:
            Configured TeamClient
        """
        credential = cls.load_credential(credential_file)
        team = cls.create_team(credential)

        cls.logger.info(
            "Dropbox team client created",
            credential_file=str(credential_file),
            refreshable=bool(credential.get("refresh_token"))
        )

        return TeamClient(team, page_size=page_size)

    @staticmethod
    def _parse_expiration(expires_at: Optional[Any]) -> Optional[datetime]:
        """Convert an epoch-milliseconds expiry to a naive UTC datetime."""
        if expires_at is None:
            return None
        try:
            return datetime.fromtimestamp(int(expires_at) / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (TypeError, ValueError, OverflowError) as e:
            raise AuthenticationError(f"Invalid expires_at in credential file: {expires_at}") from e
