"""Item and operation types exchanged between a repository and the index host."""

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .service import IndexingService


class PushItemType(str, Enum):
    """What the host should do with a pushed item."""
    MODIFIED = "MODIFIED"
    NOT_MODIFIED = "NOT_MODIFIED"
    REPOSITORY_ERROR = "REPOSITORY_ERROR"
    REQUEUE = "REQUEUE"


class ItemStatus(str, Enum):
    """Host-side processing state of an item."""
    NEW_ITEM = "NEW_ITEM"
    MODIFIED = "MODIFIED"
    ACCEPTED = "ACCEPTED"
    SERVER_ERROR = "SERVER_ERROR"


def encode_payload_bytes(payload: bytes) -> str:
    """Encode raw payload bytes for transport on an item."""
    return base64.b64encode(payload).decode("ascii")


def decode_payload_bytes(payload: Optional[str]) -> bytes:
    """Decode an item payload back to raw bytes.

    Raises:
        ValueError: If the payload is not valid base64
    """
    if not payload:
        return b""
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Item payload is not valid base64: {e}") from e


@dataclass
class Item:
    """An item as stored and queued by the index host."""

    name: str
    payload: Optional[str] = None
    version: Optional[str] = None
    queue: Optional[str] = None
    status: ItemStatus = ItemStatus.NEW_ITEM

    def encode_payload(self, payload: bytes) -> "Item":
        self.payload = encode_payload_bytes(payload)
        return self

    def decode_payload(self) -> bytes:
        return decode_payload_bytes(self.payload)


@dataclass
class PushItem:
    """A request to add an item to the host's processing queue."""

    payload: Optional[str] = None
    type: PushItemType = PushItemType.MODIFIED
    queue: Optional[str] = None

    def encode_payload(self, payload: bytes) -> "PushItem":
        self.payload = encode_payload_bytes(payload)
        return self

    def decode_payload(self) -> bytes:
        return decode_payload_bytes(self.payload)


class ApiOperation:
    """Base class for operations a repository asks the host to perform."""

    async def execute(self, service: "IndexingService") -> List[Any]:
        raise NotImplementedError


@dataclass
class PushItems(ApiOperation):
    """An ordered batch of push requests keyed by item name."""

    items: List[Tuple[str, PushItem]] = field(default_factory=list)

    def add_push_item(self, name: str, push_item: PushItem) -> "PushItems":
        self.items.append((name, push_item))
        return self

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Tuple[str, PushItem]]:
        return iter(self.items)

    async def execute(self, service: "IndexingService") -> List[Any]:
        return [await service.push_item(name, push_item) for name, push_item in self.items]


@dataclass(frozen=True)
class DeleteItem(ApiOperation):
    """Remove an item from the index."""

    name: str
    version: Optional[str] = None

    async def execute(self, service: "IndexingService") -> List[Any]:
        return [await service.delete_item(self.name, self.version)]


@dataclass
class RepositoryDoc(ApiOperation):
    """A resolved document to be indexed."""

    item: Item
    content: Optional[bytes] = None
    content_format: str = "TEXT"
    metadata: Dict[str, Any] = field(default_factory=dict)

    async def execute(self, service: "IndexingService") -> List[Any]:
        return [await service.index_item(self)]


@dataclass(frozen=True)
class Unsupported:
    """Result of a repository hook that has no implementation.

    Falsy, so callers written against "empty" results still short-circuit,
    while ``isinstance`` checks can tell it apart from a real empty result.
    """

    operation: str
    reason: str = "not implemented by this repository"

    def __bool__(self) -> bool:
        return False


class CheckpointIterable:
    """Operations returned from a traversal hook along with the next checkpoint."""

    def __init__(
        self,
        operations: Iterable[ApiOperation],
        checkpoint: Optional[bytes] = None,
        has_more_items: bool = False
    ):
        self._operations = list(operations)
        self.checkpoint = checkpoint
        self.has_more_items = has_more_items
        self._closed = False

    def __iter__(self) -> Iterator[ApiOperation]:
        if self._closed:
            raise ValueError("Iteration over a closed CheckpointIterable")
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "CheckpointIterable":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
