"""Common Dropbox client types and error translation."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from dropbox.exceptions import AuthError, DropboxException
from dropbox.exceptions import RateLimitError as DropboxRateLimitError


@dataclass
class TeamMember:
    """A Dropbox team member as seen by the connector."""

    team_member_id: str
    display_name: str
    email: Optional[str] = None
    status: Optional[str] = None
    account_id: Optional[str] = None

    @classmethod
    def from_member_info(cls, member_info: Any) -> "TeamMember":
        """Build from an SDK ``TeamMemberInfo``."""
        profile = member_info.profile
        status = getattr(profile, "status", None)
        return cls(
            team_member_id=profile.team_member_id,
            display_name=profile.name.display_name,
            email=getattr(profile, "email", None),
            status=getattr(status, "_tag", None),
            account_id=getattr(profile, "account_id", None)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_member_id": self.team_member_id,
            "display_name": self.display_name,
            "email": self.email,
            "status": self.status,
            "account_id": self.account_id
        }


class DropboxClientError(Exception):
    """Base class for errors raised by the Dropbox clients."""
    pass


class RateLimitError(DropboxClientError):
    """Raised when API rate limit is exceeded."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class AuthenticationError(DropboxClientError):
    """Raised when API authentication fails."""
    pass


class APIConnectionError(DropboxClientError):
    """Raised when API connection fails."""
    pass


def translate_error(error: Exception, action: str) -> DropboxClientError:
    """Map an SDK or transport exception to a client error.

    The caller is expected to ``raise translate_error(e, ...) from e``.
    """
    if isinstance(error, AuthError):
        return AuthenticationError(f"Dropbox authentication failed while {action}: {error}")
    if isinstance(error, DropboxRateLimitError):
        return RateLimitError(f"Dropbox rate limit exceeded while {action}", error.backoff)
    if isinstance(error, (DropboxException, requests.exceptions.RequestException)):
        return APIConnectionError(f"Dropbox API error while {action}: {error}")
    return APIConnectionError(f"Unexpected error while {action}: {error}")
