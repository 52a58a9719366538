"""
Removal of remote objects that no longer have a local counterpart.
"""
import threading
import time
from typing import Iterable, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..clients.s3_manager import S3Manager
from ..exceptions import TransferError
from ..models.config import SyncConfig
from ..models.data_models import TaskOutcome
from .worker_pool import WorkerPool


class DeletionSweeper:
    """Deletes stale keys, one request per key, on the same bounded pool as uploads."""

    def __init__(self, config: SyncConfig, s3_manager: S3Manager, cancel_event: Optional[threading.Event] = None):
        self.config = config
        self.s3_manager = s3_manager
        self.cancel_event = cancel_event or threading.Event()

    def run(self, keys: Iterable[str]) -> List[TaskOutcome]:
        pool = WorkerPool(self.config.workers, self.cancel_event, name='delete')
        outcomes = pool.run(keys, self.delete, self._unexpected_failure)
        if pool.discarded:
            logger.warning(f"{pool.discarded} queued deletions were not started due to cancellation")
        return outcomes

    def delete(self, key: str) -> TaskOutcome:
        start = time.monotonic()
        try:
            self._remove(key)
        except TransferError as e:
            logger.error(f"Failed to delete from s3://{self.config.bucket}: {e}")
            return TaskOutcome(target=key, success=False, error=str(e.cause), elapsed=time.monotonic() - start)

        logger.info(f"Deleted s3://{self.config.bucket}/{key}")
        return TaskOutcome(target=key, success=True, elapsed=time.monotonic() - start)

    @staticmethod
    def _unexpected_failure(key: str, error: Exception) -> TaskOutcome:
        return TaskOutcome(target=key, success=False, error=f"{type(error).__name__}: {error}")

    def _remove(self, key: str) -> None:
        try:
            self.s3_manager.delete_object(key)
        except (BotoCoreError, ClientError) as e:
            raise TransferError(key, e) from e
