"""
Configuration classes for the bucket sync service.
"""
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..exceptions import ConfigError


DEFAULT_WORKERS = 10
DEFAULT_MARKER_NAME = '.bucket-sync-marker'

# AppleDouble resource forks created by macOS on foreign filesystems
DEFAULT_EXCLUDE_PATTERNS = ('._*',)

COMPARE_PRESENCE = 'presence'
COMPARE_SIZE = 'size'
COMPARE_MODES = (COMPARE_PRESENCE, COMPARE_SIZE)

STORAGE_CLASSES = (
    'STANDARD',
    'REDUCED_REDUNDANCY',
    'STANDARD_IA',
    'ONEZONE_IA',
    'INTELLIGENT_TIERING',
    'GLACIER',
    'DEEP_ARCHIVE',
    'OUTPOSTS',
    'GLACIER_IR',
    'SNOW',
    'EXPRESS_ONEZONE',
)


@dataclass
class S3Config:
    """Configuration for S3 service connection."""
    bucket: str = ''
    endpoint: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: Optional[str] = None
    profile: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str = 'BUCKET_SYNC') -> 'S3Config':
        """
        Create S3Config from environment variables with given prefix.

        Unset or empty variables become None so boto3 falls back to its
        default credential and region resolution.
        """
        def _get(name: str) -> Optional[str]:
            return os.getenv(f'{prefix}_S3_{name}') or None

        return cls(
            bucket=_get('BUCKET') or '',
            endpoint=_get('ENDPOINT'),
            access_key=_get('ACCESS_KEY'),
            secret_key=_get('SECRET_KEY'),
            region=_get('REGION'),
            profile=_get('PROFILE')
        )


def normalize_prefix(prefix: str) -> str:
    """Strip surrounding slashes and drop empty or blank segments of a key prefix."""
    return '/'.join(part for part in prefix.strip().split('/') if part.strip())


@dataclass(frozen=True)
class SyncConfig:
    """
    Immutable configuration for a single sync run.

    Built once (usually by the CLI) and handed to every component's
    constructor; nothing reads module-level state.
    """
    local_root: str
    bucket: str
    prefix: str = ''
    storage_class: Optional[str] = None
    workers: int = DEFAULT_WORKERS
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    dry_run: bool = False
    delete: bool = True
    incremental: bool = False
    marker_name: str = DEFAULT_MARKER_NAME
    compare_mode: str = COMPARE_PRESENCE
    recheck_existing: bool = False
    s3: S3Config = field(default_factory=S3Config)

    def __post_init__(self):
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, 'prefix', normalize_prefix(self.prefix))
        object.__setattr__(self, 'exclude_patterns', tuple(self.exclude_patterns))
        if self.storage_class:
            object.__setattr__(self, 'storage_class', self.storage_class.upper())

    @property
    def list_prefix(self) -> str:
        """Prefix used for remote listing; ends with '/' so siblings never match."""
        return f'{self.prefix}/' if self.prefix else ''

    @property
    def marker_path(self) -> str:
        return os.path.join(self.local_root, self.marker_name)

    def key_for(self, relative_path: str) -> str:
        """Join the sync prefix and a forward-slash relative path into an object key."""
        return f'{self.list_prefix}{relative_path}'

    def relative_path_for(self, key: str) -> Optional[str]:
        """Inverse of key_for; None when the key lies outside the prefix."""
        if not key.startswith(self.list_prefix):
            return None
        return key[len(self.list_prefix):]

    def validate(self) -> 'SyncConfig':
        """
        Check the configuration for fatal problems.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigError: If any setting is unusable
        """
        if not self.local_root:
            raise ConfigError("Local path must not be empty")
        if not self.bucket:
            raise ConfigError("Bucket name must not be empty")
        if self.workers < 1:
            raise ConfigError(f"Worker count must be at least 1, got {self.workers}")
        if self.storage_class and self.storage_class not in STORAGE_CLASSES:
            raise ConfigError(
                f"Unknown storage class '{self.storage_class}' "
                f"(expected one of: {', '.join(STORAGE_CLASSES)})"
            )
        if self.compare_mode not in COMPARE_MODES:
            raise ConfigError(
                f"Unknown compare mode '{self.compare_mode}' "
                f"(expected one of: {', '.join(COMPARE_MODES)})"
            )
        if not self.marker_name or '/' in self.marker_name or '\\' in self.marker_name:
            raise ConfigError(f"Invalid marker file name: '{self.marker_name}'")
        return self
