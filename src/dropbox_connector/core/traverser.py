"""Traversal engine driving a repository against an indexing service."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..indexing import (
    ApiOperation,
    DeleteItem,
    IndexingService,
    PushItems,
    Repository,
    RepositoryDoc,
    RepositoryError,
    Unsupported
)
from ..utils.logging import get_logger, log_async_execution_time


@dataclass
class TraversalResult:
    """Result of a traversal pass."""

    traversal_type: str
    success: bool
    items_pushed: int = 0
    items_indexed: int = 0
    items_deleted: int = 0
    items_unsupported: int = 0
    items_failed: int = 0
    skipped: bool = False
    error_message: Optional[str] = None
    duration: Optional[float] = None

    @property
    def items_processed(self) -> int:
        """Total polled items that produced any outcome."""
        return self.items_indexed + self.items_deleted + self.items_unsupported

    def to_dict(self):
        return {
            "traversal_type": self.traversal_type,
            "success": self.success,
            "skipped": self.skipped,
            "items_pushed": self.items_pushed,
            "items_indexed": self.items_indexed,
            "items_deleted": self.items_deleted,
            "items_unsupported": self.items_unsupported,
            "items_failed": self.items_failed,
            "error_message": self.error_message,
            "duration": self.duration
        }


class Traverser:
    """Runs full and incremental traversals of a repository."""

    def __init__(self, repository: Repository, indexing_service: IndexingService, poll_batch_size: int = 100):
        """Initialize the traverser.

        Args:
            repository: Initialized repository to traverse
            indexing_service: Host service receiving operations
            poll_batch_size: Items taken from the queue per poll
        """
        self.repository = repository
        self.indexing_service = indexing_service
        self.poll_batch_size = poll_batch_size
        self.full_checkpoint: Optional[bytes] = None
        self.incremental_checkpoint: Optional[bytes] = None
        self.logger = get_logger(self.__class__.__name__)

    @log_async_execution_time
    async def full_traversal(self) -> TraversalResult:
        """Push all item references, then resolve everything queued."""
        start_time = datetime.now()
        result = TraversalResult(traversal_type="full", success=False)

        self.logger.info("Starting full traversal")

        try:
            ids = await self.repository.get_ids(self.full_checkpoint)
            if isinstance(ids, Unsupported):
                result.skipped = True
                result.success = True
                self.logger.warning("Repository does not support get_ids", reason=ids.reason)
                return result

            with ids:
                for operation in ids:
                    await self._execute(operation, result)
            self.full_checkpoint = ids.checkpoint

            await self._process_queue(result)
            result.success = True

        except RepositoryError as e:
            result.error_message = f"{e}: {e.__cause__}" if e.__cause__ else str(e)
            self.logger.error("Full traversal failed", error=result.error_message)

        finally:
            result.duration = (datetime.now() - start_time).total_seconds()

        self.logger.info("Full traversal finished", **result.to_dict())
        return result

    @log_async_execution_time
    async def incremental_traversal(self) -> TraversalResult:
        """Apply changes since the last incremental checkpoint."""
        start_time = datetime.now()
        result = TraversalResult(traversal_type="incremental", success=False)

        try:
            changes = await self.repository.get_changes(self.incremental_checkpoint)
            if isinstance(changes, Unsupported):
                result.skipped = True
                result.success = True
                self.logger.info("Incremental traversal skipped", reason=changes.reason)
                return result

            with changes:
                for operation in changes:
                    await self._execute(operation, result)
            self.incremental_checkpoint = changes.checkpoint

            await self._process_queue(result)
            result.success = True

        except RepositoryError as e:
            result.error_message = f"{e}: {e.__cause__}" if e.__cause__ else str(e)
            self.logger.error("Incremental traversal failed", error=result.error_message)

        finally:
            result.duration = (datetime.now() - start_time).total_seconds()

        return result

    async def _process_queue(self, result: TraversalResult) -> None:
        """Poll queued items until the queue is drained and resolve each one.

        A polled item that fails to resolve is counted and dropped from this
        pass; ``RepositoryError`` still fails the whole pass.
        """
        while True:
            items = await self.indexing_service.poll(self.poll_batch_size)
            if not items:
                break

            for item in items:
                try:
                    outcome = await self.repository.get_doc(item)
                    if isinstance(outcome, Unsupported):
                        result.items_unsupported += 1
                        self.logger.debug("Item resolution unsupported", item_name=item.name, reason=outcome.reason)
                        continue
                    await self._execute(outcome, result)
                except RepositoryError:
                    raise
                except Exception as e:
                    result.items_failed += 1
                    self.logger.error("Failed to resolve item", item_name=item.name, error=str(e))

    async def _execute(self, operation: ApiOperation, result: TraversalResult) -> None:
        await operation.execute(self.indexing_service)

        if isinstance(operation, PushItems):
            result.items_pushed += len(operation)
        elif isinstance(operation, DeleteItem):
            result.items_deleted += 1
        elif isinstance(operation, RepositoryDoc):
            result.items_indexed += 1
