"""
Diff planner: decides which files to upload, skip or delete.
"""
from typing import Dict, Iterable, Optional

from loguru import logger

from ..exceptions import PlanningError
from ..models.config import SyncConfig, COMPARE_SIZE
from ..models.data_models import FileRecord, RemoteObjectRecord, SyncPlan
from .exclusion import ExclusionRuleSet


class DiffPlanner:
    """
    Reconciles local FileRecords with the remote inventory.

    The default policy compares by key presence only: a key that exists
    remotely is skipped whatever its content. With compare_mode 'size' a
    remote object whose size differs from the local file is re-uploaded.

    In incremental mode, files modified before the marker time are treated
    as already synced. Remote keys under the prefix without a local file
    are scheduled for deletion, except keys whose relative path matches an
    exclusion rule.
    """

    def __init__(self, config: SyncConfig, exclusions: Optional[ExclusionRuleSet] = None):
        self.config = config
        self.exclusions = exclusions if exclusions is not None else ExclusionRuleSet(config.exclude_patterns)

    def plan(
        self,
        local_records: Iterable[FileRecord],
        remote_records: Iterable[RemoteObjectRecord],
        marker_time: Optional[float] = None
    ) -> SyncPlan:
        """
        Build a SyncPlan.

        Args:
            local_records: Records produced by the enumerator
            remote_records: Snapshot produced by the remote inventory
            marker_time: Last successful run (epoch seconds), only used in incremental mode

        Returns:
            SyncPlan with disjoint upload/skip sets and the keys to delete

        Raises:
            PlanningError: If two local files map to the same key
        """
        local_by_key: Dict[str, FileRecord] = {}
        for record in local_records:
            existing = local_by_key.get(record.relative_key)
            if existing is not None:
                raise PlanningError(
                    f"Duplicate object key {record.relative_key} for "
                    f"{existing.local_path} and {record.local_path}"
                )
            local_by_key[record.relative_key] = record

        remote_by_key: Dict[str, RemoteObjectRecord] = {}
        for remote in remote_records:
            if self.config.relative_path_for(remote.key) is None:
                # outside the sync namespace; never touched
                continue
            remote_by_key[remote.key] = remote

        use_marker = self.config.incremental and marker_time is not None

        to_upload = set()
        to_skip = set()
        for key, record in local_by_key.items():
            remote = remote_by_key.get(key)
            if remote is not None and not self._differs(record, remote):
                to_skip.add(record)
            elif use_marker and record.mod_time < marker_time:
                logger.debug(f"Unchanged since last run, skipping: {key}")
                to_skip.add(record)
            else:
                to_upload.add(record)

        to_delete = set()
        if self.config.delete:
            for key in remote_by_key.keys() - local_by_key.keys():
                if self.exclusions.matches(self.config.relative_path_for(key)):
                    logger.debug(f"Remote key matches an exclusion rule, keeping: {key}")
                    continue
                to_delete.add(key)

        plan = SyncPlan(
            to_upload=frozenset(to_upload),
            to_skip=frozenset(to_skip),
            to_delete=frozenset(to_delete)
        )
        logger.info(f"Sync plan: {len(plan.to_upload)} to upload, "
                    f"{len(plan.to_skip)} to skip, {len(plan.to_delete)} to delete")
        return plan

    def _differs(self, record: FileRecord, remote: RemoteObjectRecord) -> bool:
        if self.config.compare_mode == COMPARE_SIZE:
            return remote.size is not None and remote.size != record.size
        return False
