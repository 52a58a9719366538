"""
Concurrent upload of planned files to the bucket.
"""
import threading
import time
from typing import Iterable, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from boto3.exceptions import S3UploadFailedError
from loguru import logger

from ..clients.s3_manager import S3Manager
from ..exceptions import TransferError
from ..models.config import SyncConfig
from ..models.data_models import FileRecord, TaskOutcome
from .worker_pool import WorkerPool


UPLOAD_ERRORS = (OSError, BotoCoreError, ClientError, S3UploadFailedError)


class UploadScheduler:
    """
    Uploads FileRecords through a bounded pool of worker threads.

    Each task opens its file, streams it under the record's key with the
    configured storage class and closes the file before the worker moves
    on. A failing task is logged and reported in its TaskOutcome; it never
    stops the other tasks.
    """

    def __init__(self, config: SyncConfig, s3_manager: S3Manager, cancel_event: Optional[threading.Event] = None):
        self.config = config
        self.s3_manager = s3_manager
        self.cancel_event = cancel_event or threading.Event()

    def run(self, records: Iterable[FileRecord]) -> List[TaskOutcome]:
        """
        Upload every record.

        Args:
            records: Files to upload

        Returns:
            One TaskOutcome per attempted file, in completion order
        """
        pool = WorkerPool(self.config.workers, self.cancel_event, name='upload')
        logger.info(f"Uploading with {self.config.workers} workers"
                    + (f" (storage class {self.config.storage_class})" if self.config.storage_class else ""))
        outcomes = pool.run(records, self.upload, self._unexpected_failure)
        if pool.discarded:
            logger.warning(f"{pool.discarded} queued uploads were not started due to cancellation")
        return outcomes

    def upload(self, record: FileRecord) -> TaskOutcome:
        """Upload a single file. Never raises for per-file failures."""
        start = time.monotonic()
        try:
            if self.config.recheck_existing and self._exists(record):
                logger.debug(f"Skipped upload for {record.local_path} - appeared remotely after listing")
                return TaskOutcome(target=record.relative_key, success=True, skipped=True,
                                   elapsed=time.monotonic() - start)
            self._transfer(record)
        except TransferError as e:
            logger.error(f"Failed to upload {record.local_path}: {e}")
            return TaskOutcome(target=record.relative_key, success=False, error=str(e.cause),
                               elapsed=time.monotonic() - start)

        elapsed = time.monotonic() - start
        logger.info(f"Uploaded {record.local_path} to {record.relative_key} ({record.size} bytes, {elapsed:.2f}s)")
        return TaskOutcome(target=record.relative_key, success=True, elapsed=elapsed, size=record.size)

    @staticmethod
    def _unexpected_failure(record: FileRecord, error: Exception) -> TaskOutcome:
        return TaskOutcome(target=record.relative_key, success=False, error=f"{type(error).__name__}: {error}")

    def _exists(self, record: FileRecord) -> bool:
        try:
            return self.s3_manager.object_exists(record.relative_key)
        except (BotoCoreError, ClientError) as e:
            raise TransferError(record.relative_key, e) from e

    def _transfer(self, record: FileRecord) -> None:
        """Stream one file to its key; the file is closed before returning."""
        try:
            with open(record.local_path, 'rb') as fileobj:
                self.s3_manager.upload_fileobj(fileobj, record.relative_key, self.config.storage_class)
        except UPLOAD_ERRORS as e:
            raise TransferError(record.relative_key, e) from e
