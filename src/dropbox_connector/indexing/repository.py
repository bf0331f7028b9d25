"""Repository interface implemented by content connectors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ..config.settings import AppSettings
from .models import ApiOperation, CheckpointIterable, Item, Unsupported


class RepositoryError(Exception):
    """Raised when a repository hook fails.

    The underlying cause is chained with ``raise ... from``.
    """
    pass


@dataclass
class RepositoryContext:
    """Context handed to a repository at initialization."""

    settings: AppSettings
    connector_id: str = "dropbox-connector"
    extra: Dict[str, Any] = field(default_factory=dict)


OperationsResult = Union[CheckpointIterable, Unsupported]
DocResult = Union[ApiOperation, Unsupported]


class Repository(ABC):
    """Hooks the index host calls to traverse and resolve repository content.

    Hooks with no implementation return :class:`Unsupported` instead of an
    empty value.
    """

    @abstractmethod
    async def init(self, context: RepositoryContext) -> None:
        """Prepare connections and configuration."""

    @abstractmethod
    async def get_ids(self, checkpoint: Optional[bytes]) -> OperationsResult:
        """Enumerate item references to push to the host queue."""

    @abstractmethod
    async def get_changes(self, checkpoint: Optional[bytes]) -> OperationsResult:
        """Enumerate items changed since ``checkpoint``."""

    @abstractmethod
    async def get_all_docs(self, checkpoint: Optional[bytes]) -> OperationsResult:
        """Enumerate every document in full."""

    @abstractmethod
    async def get_doc(self, item: Item) -> DocResult:
        """Resolve a polled item into a document or a deletion."""

    @abstractmethod
    async def exists(self, item: Item) -> Union[bool, Unsupported]:
        """Check whether the item still exists in the repository."""

    @abstractmethod
    async def close(self) -> None:
        """Release repository resources."""
