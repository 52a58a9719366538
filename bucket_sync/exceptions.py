"""
Exception hierarchy for the bucket sync service.
"""


class BucketSyncError(Exception):
    """Base class for all bucket sync errors."""
    pass


class ConfigError(BucketSyncError):
    """Invalid configuration or unusable S3 client. Raised before any phase runs."""
    pass


class EnumerationError(BucketSyncError):
    """The local root (or part of the tree) could not be read."""
    pass


class InventoryError(BucketSyncError):
    """Remote listing failed or could not be completed."""
    pass


class PlanningError(BucketSyncError):
    """The local and remote sets could not be reconciled into a plan."""
    pass


class TransferError(BucketSyncError):
    """A single upload or delete failed."""

    def __init__(self, target: str, cause: Exception):
        self.target = target
        self.cause = cause
        super().__init__(f"{target}: {cause}")
