"""
Main entry point for the bucket sync service.
"""
import json
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from . import __version__
from .exceptions import BucketSyncError, ConfigError
from .models.config import (
    COMPARE_MODES,
    COMPARE_PRESENCE,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_WORKERS,
    S3Config,
    SyncConfig,
    normalize_prefix,
)
from .services.exclusion import ExclusionRuleSet
from .services.sync_service import SyncOrchestrator


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Configure logging for the sync service."""
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if verbose else "INFO"
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG"
        )


def _install_interrupt_handler(orchestrator: SyncOrchestrator):
    """First Ctrl-C cancels the sync gracefully, a second one aborts immediately."""
    def _handle(signum, frame):
        if orchestrator.cancelled:
            raise KeyboardInterrupt
        orchestrator.cancel()

    return signal.signal(signal.SIGINT, _handle)


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.argument('local_path')
@click.argument('bucket')
@click.argument('prefix')
@click.option('-w', '--workers', type=click.IntRange(min=1), default=DEFAULT_WORKERS, show_default=True,
              envvar='BUCKET_SYNC_WORKERS', help='Number of parallel upload/delete workers.')
@click.option('-e', '--exclude', 'excludes', multiple=True, metavar='PATTERN',
              help='Glob pattern of relative paths to skip (repeatable).')
@click.option('--exclude-from', type=click.Path(dir_okay=False), default=None,
              help='File with one exclusion pattern per line.')
@click.option('--storage-class', default=None, envvar='BUCKET_SYNC_STORAGE_CLASS',
              help='S3 storage class for uploaded objects (e.g. STANDARD_IA, DEEP_ARCHIVE).')
@click.option('-n', '--dry-run', is_flag=True, help='Show what would be uploaded and deleted, change nothing.')
@click.option('--no-delete', is_flag=True, help='Keep remote objects that have no local file.')
@click.option('--incremental', is_flag=True,
              help='Only consider files modified since the last successful run.')
@click.option('--compare', type=click.Choice(COMPARE_MODES), default=COMPARE_PRESENCE, show_default=True,
              help="How to decide an existing remote object is up to date.")
@click.option('--recheck', is_flag=True, help='Check each key with a HEAD request right before uploading it.')
@click.option('--endpoint-url', default=None, help='Custom S3 endpoint (MinIO, Ceph, ...).')
@click.option('--region', default=None, help='S3 region.')
@click.option('--profile', default=None, help='AWS shared-credentials profile.')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging.')
@click.option('--log-file', default=None, help='Also write debug logs to this file (rotated at 10 MB).')
@click.version_option(__version__, prog_name='bucket-sync')
def main(local_path, bucket, prefix, workers, excludes, exclude_from, storage_class, dry_run, no_delete,
         incremental, compare, recheck, endpoint_url, region, profile, verbose, log_file):
    """Upload LOCAL_PATH into s3://BUCKET/PREFIX and delete stale objects under PREFIX.

    Credentials and connection defaults come from the standard AWS
    configuration chain, overridable with BUCKET_SYNC_S3_ENDPOINT,
    BUCKET_SYNC_S3_ACCESS_KEY, BUCKET_SYNC_S3_SECRET_KEY,
    BUCKET_SYNC_S3_REGION and BUCKET_SYNC_S3_PROFILE.
    """
    for name, value in (('LOCAL_PATH', local_path), ('BUCKET', bucket), ('PREFIX', prefix)):
        if not value.strip():
            raise click.UsageError(f"{name} must not be empty")
    if not normalize_prefix(prefix):
        # the prefix bounds what may be deleted; never the whole bucket from the CLI
        raise click.UsageError(f"PREFIX must name a key prefix, got '{prefix}'")

    setup_logging(verbose, log_file)

    try:
        s3_config = S3Config.from_env()
        s3_config = replace(
            s3_config,
            bucket=bucket,
            endpoint=endpoint_url or s3_config.endpoint,
            region=region or s3_config.region,
            profile=profile or s3_config.profile
        )

        patterns = DEFAULT_EXCLUDE_PATTERNS + tuple(excludes)
        if exclude_from:
            exclusions = ExclusionRuleSet.from_file(exclude_from, patterns)
        else:
            exclusions = ExclusionRuleSet(patterns)

        config = SyncConfig(
            local_root=local_path,
            bucket=bucket,
            prefix=prefix,
            storage_class=storage_class,
            workers=workers,
            exclude_patterns=exclusions.patterns,
            dry_run=dry_run,
            delete=not no_delete,
            incremental=incremental,
            compare_mode=compare,
            recheck_existing=recheck,
            s3=s3_config
        )
        orchestrator = SyncOrchestrator(config, exclusions=exclusions)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(EXIT_FAILED)

    previous_handler = _install_interrupt_handler(orchestrator)
    try:
        report = orchestrator.run()
    except BucketSyncError as e:
        logger.error(f"Command failed: {e}")
        sys.exit(EXIT_FAILED)
    except KeyboardInterrupt:
        logger.info("Received second interrupt signal, aborting")
        sys.exit(EXIT_CANCELLED)
    finally:
        signal.signal(signal.SIGINT, previous_handler or signal.SIG_DFL)

    logger.info(f"Sync Results: {json.dumps(report.to_dict(), indent=2, default=str)}")

    if report.cancelled:
        sys.exit(EXIT_CANCELLED)
    if not report.success:
        logger.error(f"Sync completed with {report.files_failed + report.deletes_failed} failures")
        sys.exit(EXIT_FAILED)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
