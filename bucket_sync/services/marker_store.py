"""
Persisted marker recording the last successful sync run.
"""
import os
from datetime import datetime
from typing import Optional

from loguru import logger

from ..models.config import SyncConfig


class MarkerStore:
    """
    Hidden file in the local root whose modification time is the start
    time of the last fully successful run. The file content is informational.
    """

    def __init__(self, config: SyncConfig):
        self.config = config
        self.path = config.marker_path

    def read(self) -> Optional[float]:
        """
        Return the marker timestamp, or None when there is no usable marker.

        An unreadable marker is treated as absent, which only widens the
        next run to a full comparison.
        """
        try:
            marker_time = os.stat(self.path).st_mtime
        except FileNotFoundError:
            logger.debug(f"No sync marker at {self.path}")
            return None
        except OSError as e:
            logger.warning(f"Cannot read sync marker {self.path}, ignoring it: {e}")
            return None

        logger.info(f"Last successful sync: {datetime.fromtimestamp(marker_time).isoformat()}")
        return marker_time

    def write(self, timestamp: float) -> bool:
        """
        Create or refresh the marker with the given timestamp.

        Returns:
            bool: True if the marker was written
        """
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                f.write(f"{datetime.fromtimestamp(timestamp).isoformat()}\n")
            os.utime(self.path, (timestamp, timestamp))
        except OSError as e:
            logger.error(f"Failed to write sync marker {self.path}: {e}")
            return False

        logger.debug(f"Sync marker updated: {self.path}")
        return True
