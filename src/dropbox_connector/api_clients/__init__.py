"""Dropbox API clients."""

from .base import (
    TeamMember,
    DropboxClientError,
    RateLimitError,
    AuthenticationError,
    APIConnectionError
)

from .member_client import MemberClient
from .team_client import TeamClient
from .factory import DropBoxClientFactory

__all__ = [
    # Base types and exceptions
    "TeamMember",
    "DropboxClientError",
    "RateLimitError",
    "AuthenticationError",
    "APIConnectionError",

    # Clients
    "MemberClient",
    "TeamClient",

    # Factory
    "DropBoxClientFactory"
]
