"""
Local directory walker producing FileRecords for the sync planner.
"""
import os
import stat
from pathlib import PurePath
from typing import Iterator, Optional

from loguru import logger

from ..exceptions import EnumerationError
from ..models.config import SyncConfig
from ..models.data_models import FileRecord
from .exclusion import ExclusionRuleSet


class PathEnumerator:
    """
    Walks the local sync root and yields a FileRecord per regular file.

    Each call to enumerate() performs a fresh walk. Directories are never
    emitted; excluded directories are pruned without descending. Symlinked
    directories are not followed. The walk is read-only.
    """

    def __init__(self, config: SyncConfig, exclusions: Optional[ExclusionRuleSet] = None):
        """
        Initialize the enumerator.

        Args:
            config: SyncConfig providing the local root, prefix and marker name
            exclusions: Rules for paths to leave out; defaults to config.exclude_patterns
        """
        self.config = config
        self.root = os.path.abspath(config.local_root)
        self.exclusions = exclusions if exclusions is not None else ExclusionRuleSet(config.exclude_patterns)
        self.excluded_count = 0

    def _relative(self, path: str) -> str:
        return PurePath(os.path.relpath(path, self.root)).as_posix()

    def _on_walk_error(self, error: OSError) -> None:
        raise EnumerationError(f"Cannot read directory {error.filename}: {error.strerror or error}") from error

    def enumerate(self) -> Iterator[FileRecord]:
        """
        Walk the tree and yield records for every non-excluded file.

        Yields:
            FileRecord: One per file, keyed by prefix + relative path

        Raises:
            EnumerationError: If the root or any directory below it cannot be read
        """
        self.excluded_count = 0

        if not os.path.isdir(self.root):
            raise EnumerationError(f"Local path is not a readable directory: {self.root}")

        logger.debug(f"Enumerating local files under {self.root}")

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._on_walk_error):
            kept_dirs = []
            for name in sorted(dirnames):
                rel_dir = self._relative(os.path.join(dirpath, name))
                if self.exclusions.matches(rel_dir, is_dir=True):
                    logger.debug(f"Excluding directory: {rel_dir}")
                    self.excluded_count += 1
                    continue
                kept_dirs.append(name)
            # prune in place so os.walk skips excluded subtrees
            dirnames[:] = kept_dirs

            for name in sorted(filenames):
                abs_path = os.path.join(dirpath, name)
                rel_path = self._relative(abs_path)

                if dirpath == self.root and name == self.config.marker_name:
                    continue
                if self.exclusions.matches(rel_path):
                    logger.debug(f"Excluding file: {rel_path}")
                    self.excluded_count += 1
                    continue

                try:
                    st = os.stat(abs_path)
                except FileNotFoundError:
                    # removed mid-walk, or a dangling symlink
                    logger.debug(f"File vanished during enumeration: {rel_path}")
                    continue
                except OSError as e:
                    raise EnumerationError(f"Cannot stat {abs_path}: {e}") from e

                if not stat.S_ISREG(st.st_mode):
                    logger.debug(f"Skipping non-regular file: {rel_path}")
                    continue

                yield FileRecord(
                    relative_key=self.config.key_for(rel_path),
                    local_path=abs_path,
                    relative_path=rel_path,
                    size=st.st_size,
                    mod_time=st.st_mtime
                )
