"""
Core data models for the bucket sync service.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, FrozenSet, List, Optional


@dataclass(frozen=True, order=True)
class FileRecord:
    """A local file discovered by the enumerator. Recreated on every run."""
    relative_key: str
    local_path: str
    relative_path: str
    size: int
    mod_time: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'relative_key': self.relative_key,
            'local_path': self.local_path,
            'relative_path': self.relative_path,
            'size': self.size,
            'mod_time': datetime.fromtimestamp(self.mod_time).isoformat()
        }


@dataclass(frozen=True, order=True)
class RemoteObjectRecord:
    """Represents a remote object as seen at list time."""
    key: str
    size: Optional[int] = None
    etag: Optional[str] = None
    storage_class: Optional[str] = None
    last_modified: Optional[datetime] = field(default=None, compare=False)


@dataclass(frozen=True)
class SyncPlan:
    """
    Result of reconciling local records against the remote inventory.

    to_upload and to_skip are disjoint and every record carries a unique
    relative_key; to_delete holds keys that were listed remotely under the
    sync prefix and have no local counterpart.
    """
    to_upload: FrozenSet[FileRecord] = frozenset()
    to_skip: FrozenSet[FileRecord] = frozenset()
    to_delete: FrozenSet[str] = frozenset()

    @property
    def upload_bytes(self) -> int:
        return sum(record.size for record in self.to_upload)

    @property
    def is_empty(self) -> bool:
        return not self.to_upload and not self.to_delete

    def summary(self) -> Dict[str, int]:
        return {
            'to_upload': len(self.to_upload),
            'to_skip': len(self.to_skip),
            'to_delete': len(self.to_delete),
            'upload_bytes': self.upload_bytes
        }


@dataclass
class TaskOutcome:
    """Result of a single upload or delete task."""
    target: str
    success: bool
    skipped: bool = False
    error: Optional[str] = None
    elapsed: float = 0.0
    size: int = 0


@dataclass
class SyncReport:
    """Aggregated statistics for one sync run."""
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    local_files: int = 0
    remote_objects: int = 0
    excluded: int = 0
    files_uploaded: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    bytes_uploaded: int = 0
    objects_deleted: int = 0
    deletes_failed: int = 0
    phase_durations: Dict[str, float] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False
    marker_written: bool = False

    @property
    def duration(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def success(self) -> bool:
        return not self.cancelled and self.files_failed == 0 and self.deletes_failed == 0

    def record_upload(self, outcome: TaskOutcome) -> None:
        if outcome.success and outcome.skipped:
            self.files_skipped += 1
        elif outcome.success:
            self.files_uploaded += 1
            self.bytes_uploaded += outcome.size
        else:
            self.files_failed += 1
            self.errors.append(f"Upload failed for {outcome.target}: {outcome.error}")

    def record_delete(self, outcome: TaskOutcome) -> None:
        if outcome.success:
            self.objects_deleted += 1
        else:
            self.deletes_failed += 1
            self.errors.append(f"Delete failed for {outcome.target}: {outcome.error}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON logging."""
        return {
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration': self.duration,
            'success': self.success,
            'dry_run': self.dry_run,
            'cancelled': self.cancelled,
            'marker_written': self.marker_written,
            'local_files': self.local_files,
            'remote_objects': self.remote_objects,
            'excluded': self.excluded,
            'files_uploaded': self.files_uploaded,
            'files_skipped': self.files_skipped,
            'files_failed': self.files_failed,
            'bytes_uploaded': self.bytes_uploaded,
            'objects_deleted': self.objects_deleted,
            'deletes_failed': self.deletes_failed,
            'phase_durations': dict(self.phase_durations),
            'errors': list(self.errors)
        }
