"""Dropbox content: reference payloads and the repository."""

from .dropbox_object import DropBoxObject, DropBoxObjectBuilder, PayloadDecodeError
from .repository import DropBoxRepository

__all__ = [
    "DropBoxObject",
    "DropBoxObjectBuilder",
    "PayloadDecodeError",
    "DropBoxRepository"
]
