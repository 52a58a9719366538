# Services package
from .exclusion import ExclusionRuleSet
from .path_enumerator import PathEnumerator
from .remote_inventory import RemoteInventory
from .diff_planner import DiffPlanner
from .worker_pool import WorkerPool
from .upload_scheduler import UploadScheduler
from .deletion_sweeper import DeletionSweeper
from .marker_store import MarkerStore
from .sync_service import SyncOrchestrator

__all__ = [
    'ExclusionRuleSet',
    'PathEnumerator',
    'RemoteInventory',
    'DiffPlanner',
    'WorkerPool',
    'UploadScheduler',
    'DeletionSweeper',
    'MarkerStore',
    'SyncOrchestrator'
]
