"""Index host abstractions: items, operations and the repository interface."""

from .models import (
    ApiOperation,
    CheckpointIterable,
    DeleteItem,
    Item,
    ItemStatus,
    PushItem,
    PushItems,
    PushItemType,
    RepositoryDoc,
    Unsupported
)
from .repository import Repository, RepositoryContext, RepositoryError
from .service import IndexingService, InMemoryIndexingService

__all__ = [
    "ApiOperation",
    "CheckpointIterable",
    "DeleteItem",
    "Item",
    "ItemStatus",
    "PushItem",
    "PushItems",
    "PushItemType",
    "RepositoryDoc",
    "Unsupported",

    "Repository",
    "RepositoryContext",
    "RepositoryError",

    "IndexingService",
    "InMemoryIndexingService"
]
