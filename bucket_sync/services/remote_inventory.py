"""
Remote inventory: a complete, immutable snapshot of objects under the sync prefix.
"""
from typing import FrozenSet, Optional

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..clients.s3_manager import S3Manager
from ..exceptions import InventoryError
from ..models.config import SyncConfig
from ..models.data_models import RemoteObjectRecord


class RemoteInventory:
    """
    Lists the bucket under the configured prefix.

    The listing follows every continuation page; a failure on any page
    aborts with InventoryError rather than returning a partial set, since
    a short inventory would turn into wrongful uploads and deletions.
    """

    def __init__(self, config: SyncConfig, s3_manager: S3Manager):
        self.config = config
        self.s3_manager = s3_manager
        self._records: Optional[FrozenSet[RemoteObjectRecord]] = None

    def list(self) -> FrozenSet[RemoteObjectRecord]:
        """
        Fetch the full inventory. The result is cached for the rest of the run.

        Returns:
            frozenset of RemoteObjectRecord under the sync prefix

        Raises:
            InventoryError: If any page of the listing fails
        """
        if self._records is not None:
            return self._records

        namespace = self.config.list_prefix
        logger.info(f"Listing s3://{self.config.bucket}/{namespace}")

        records = set()
        try:
            for record in self.s3_manager.list_objects(namespace):
                if record.key.endswith('/'):
                    # zero-byte folder placeholder, not a file
                    logger.debug(f"Ignoring folder placeholder: {record.key}")
                    continue
                records.add(record)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to list s3://{self.config.bucket}/{namespace}: {e}")
            raise InventoryError(f"Remote listing failed after {len(records)} objects: {e}") from e

        self._records = frozenset(records)
        logger.info(f"Remote inventory contains {len(self._records)} objects")
        return self._records

    def keys(self) -> FrozenSet[str]:
        return frozenset(record.key for record in self.list())
