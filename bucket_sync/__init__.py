"""
Bucket Sync - one-way differential sync of a local directory into an S3 bucket prefix.
"""

from .services.sync_service import SyncOrchestrator
from .models.config import SyncConfig, S3Config
from .models.data_models import FileRecord, RemoteObjectRecord, SyncPlan, SyncReport

__version__ = "1.0.0"
__all__ = [
    "SyncOrchestrator",
    "SyncConfig",
    "S3Config",
    "FileRecord",
    "RemoteObjectRecord",
    "SyncPlan",
    "SyncReport"
]
