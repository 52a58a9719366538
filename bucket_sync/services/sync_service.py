"""
Sync orchestrator sequencing enumeration, listing, planning, upload and deletion.
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple, FrozenSet

from loguru import logger

from ..clients.s3_manager import S3Manager
from ..exceptions import BucketSyncError, ConfigError
from ..models.config import SyncConfig
from ..models.data_models import FileRecord, RemoteObjectRecord, SyncPlan, SyncReport
from .deletion_sweeper import DeletionSweeper
from .diff_planner import DiffPlanner
from .exclusion import ExclusionRuleSet
from .marker_store import MarkerStore
from .path_enumerator import PathEnumerator
from .remote_inventory import RemoteInventory
from .upload_scheduler import UploadScheduler


class SyncOrchestrator:
    """
    Runs one differential sync of a local directory into a bucket prefix.

    Phases run in a fixed order with no retraversal:
    enumerate + list remote (concurrently), plan, upload, delete, and
    finally write the marker in incremental mode. The run is not
    transactional; because already-present keys are skipped, an
    interrupted run can simply be started again.
    """

    def __init__(
        self,
        config: SyncConfig,
        s3_manager: Optional[S3Manager] = None,
        exclusions: Optional[ExclusionRuleSet] = None
    ):
        """
        Initialize the orchestrator and its components.

        Args:
            config: Validated SyncConfig for this run
            s3_manager: Ready-to-use S3Manager; built from config.s3 when omitted
            exclusions: Exclusion rules; built from config.exclude_patterns when omitted

        Raises:
            ConfigError: If the configuration is invalid or no S3 client can be created
        """
        self.config = config.validate()
        self.cancel_event = threading.Event()

        if s3_manager is None:
            s3_manager = S3Manager(replace(config.s3, bucket=config.bucket))
        self.s3_manager = s3_manager

        self.exclusions = exclusions if exclusions is not None else ExclusionRuleSet(config.exclude_patterns)
        self.enumerator = PathEnumerator(config, self.exclusions)
        self.inventory = RemoteInventory(config, s3_manager)
        self.planner = DiffPlanner(config, self.exclusions)
        self.uploader = UploadScheduler(config, s3_manager, self.cancel_event)
        self.sweeper = DeletionSweeper(config, s3_manager, self.cancel_event)
        self.marker_store = MarkerStore(config)

        logger.debug("SyncOrchestrator initialized successfully")

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        """Stop dispatching new work. In-flight transfers finish and release their files."""
        if not self.cancel_event.is_set():
            logger.warning("Cancellation requested - finishing in-flight transfers")
        self.cancel_event.set()

    @contextmanager
    def _phase(self, report: SyncReport, name: str):
        start = time.monotonic()
        try:
            yield
        finally:
            report.phase_durations[name] = round(time.monotonic() - start, 3)

    def run(self) -> SyncReport:
        """
        Perform the sync.

        Returns:
            SyncReport with counts, timings and per-file errors

        Raises:
            ConfigError: If the bucket cannot be reached
            EnumerationError: If the local tree cannot be read
            InventoryError: If the remote listing fails
            PlanningError: If the local records cannot be planned
        """
        report = SyncReport(dry_run=self.config.dry_run)
        run_started = time.time()

        logger.info(f"Starting sync {self.config.local_root} -> "
                    f"s3://{self.config.bucket}/{self.config.list_prefix}"
                    + (" (dry run)" if self.config.dry_run else ""))

        try:
            if not self.s3_manager.test_connection():
                raise ConfigError(f"Cannot access bucket '{self.config.bucket}' - check credentials and endpoint")

            local_records, remote_records = self._discover(report)

            marker_time = None
            if self.config.incremental:
                marker_time = self.marker_store.read()

            with self._phase(report, 'plan'):
                plan = self.planner.plan(local_records, remote_records, marker_time)
            report.files_skipped = len(plan.to_skip)

            if self.config.dry_run:
                self._log_plan(plan)
                return report

            if plan.is_empty:
                logger.info("No changes needed - everything is in sync!")

            self._upload(plan, report)
            self._delete(plan, report)

            report.cancelled = self.cancelled
            if self.config.incremental and report.success:
                report.marker_written = self.marker_store.write(run_started)

            return report

        except BucketSyncError as e:
            error_msg = f"Sync failed: {e}"
            report.errors.append(error_msg)
            logger.error(error_msg)
            raise

        finally:
            report.cancelled = report.cancelled or self.cancelled
            report.end_time = datetime.now()
            logger.info(f"Sync finished - Uploaded: {report.files_uploaded}, "
                        f"Skipped: {report.files_skipped}, "
                        f"Failed: {report.files_failed}, "
                        f"Deleted: {report.objects_deleted}, "
                        f"Delete failures: {report.deletes_failed}, "
                        f"Duration: {report.duration:.2f} seconds")

    def _discover(self, report: SyncReport) -> Tuple[List[FileRecord], FrozenSet[RemoteObjectRecord]]:
        """Enumerate the local tree while the remote inventory is listed."""
        with self._phase(report, 'discover'):
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix='discover') as executor:
                local_future = executor.submit(lambda: list(self.enumerator.enumerate()))
                remote_future = executor.submit(self.inventory.list)
                local_records = local_future.result()
                remote_records = remote_future.result()

        report.local_files = len(local_records)
        report.remote_objects = len(remote_records)
        report.excluded = self.enumerator.excluded_count
        logger.info(f"Found {report.local_files} local files ({report.excluded} excluded) "
                    f"and {report.remote_objects} remote objects")
        return local_records, remote_records

    def _upload(self, plan: SyncPlan, report: SyncReport) -> None:
        if not plan.to_upload:
            return
        if self.cancelled:
            logger.warning("Skipping upload phase - sync was cancelled")
            return
        logger.info(f"Uploading {len(plan.to_upload)} files ({plan.upload_bytes} bytes)")
        with self._phase(report, 'upload'):
            for outcome in self.uploader.run(sorted(plan.to_upload)):
                report.record_upload(outcome)

    def _delete(self, plan: SyncPlan, report: SyncReport) -> None:
        if not plan.to_delete:
            return
        if self.cancelled:
            logger.warning("Skipping delete phase - sync was cancelled")
            return
        logger.info(f"Deleting {len(plan.to_delete)} stale objects")
        with self._phase(report, 'delete'):
            for outcome in self.sweeper.run(sorted(plan.to_delete)):
                report.record_delete(outcome)

    def _log_plan(self, plan: SyncPlan) -> None:
        for record in sorted(plan.to_upload):
            logger.info(f"[dry-run] Would upload {record.local_path} to {record.relative_key}")
        for key in sorted(plan.to_delete):
            logger.info(f"[dry-run] Would delete s3://{self.config.bucket}/{key}")
        logger.info(f"[dry-run] Plan summary: {plan.summary()}")
