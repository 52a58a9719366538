"""
Models package for the bucket sync service.
"""
from .data_models import FileRecord, RemoteObjectRecord, SyncPlan, TaskOutcome, SyncReport
from .config import S3Config, SyncConfig

__all__ = [
    'FileRecord',
    'RemoteObjectRecord',
    'SyncPlan',
    'TaskOutcome',
    'SyncReport',
    'S3Config',
    'SyncConfig'
]
