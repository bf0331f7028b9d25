"""Index host service interface and an in-process implementation."""

from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List, Optional

from .models import Item, ItemStatus, PushItem, RepositoryDoc
from ..utils.logging import get_logger


class IndexingService(ABC):
    """Operations the index host exposes to a connector."""

    @abstractmethod
    async def push_item(self, name: str, push_item: PushItem) -> Item:
        """Queue an item for later resolution."""

    @abstractmethod
    async def delete_item(self, name: str, version: Optional[str] = None) -> str:
        """Remove an item from the index."""

    @abstractmethod
    async def index_item(self, doc: RepositoryDoc) -> Item:
        """Store a resolved document."""

    @abstractmethod
    async def poll(self, limit: int = 100) -> List[Item]:
        """Take up to ``limit`` queued items for resolution."""


class InMemoryIndexingService(IndexingService):
    """Indexing service that keeps queue and index in process memory.

    Used for dry runs and tests; nothing is sent to a remote index.
    """

    def __init__(self, deleted_history: int = 1000):
        self.logger = get_logger(self.__class__.__name__)
        self.items: Dict[str, Item] = {}
        self.indexed: Dict[str, RepositoryDoc] = {}
        # Most recent deletions only; deleted_count keeps the running total
        self.deleted: Deque[str] = deque(maxlen=deleted_history)
        self.deleted_count = 0
        self._queue: Deque[str] = deque()

    async def push_item(self, name: str, push_item: PushItem) -> Item:
        item = self.items.get(name)
        if item is None:
            item = Item(name=name)
            self.items[name] = item
        else:
            item.status = ItemStatus.MODIFIED

        item.payload = push_item.payload
        item.queue = push_item.queue

        if name not in self._queue:
            self._queue.append(name)

        self.logger.debug("Item pushed", item_name=name, push_type=push_item.type.value)
        return item

    async def delete_item(self, name: str, version: Optional[str] = None) -> str:
        self.items.pop(name, None)
        self.indexed.pop(name, None)
        if name in self._queue:
            self._queue.remove(name)
        self.deleted.append(name)
        self.deleted_count += 1

        self.logger.debug("Item deleted", item_name=name)
        return name

    async def index_item(self, doc: RepositoryDoc) -> Item:
        doc.item.status = ItemStatus.ACCEPTED
        self.items[doc.item.name] = doc.item
        self.indexed[doc.item.name] = doc

        self.logger.debug("Item indexed", item_name=doc.item.name)
        return doc.item

    async def poll(self, limit: int = 100) -> List[Item]:
        polled = []
        while self._queue and len(polled) < limit:
            polled.append(self.items[self._queue.popleft()])
        return polled

    @property
    def queue_size(self) -> int:
        return len(self._queue)
