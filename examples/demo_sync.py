#!/usr/bin/env python3
"""
Simple demo of the bucket sync against a local MinIO server.

This script demonstrates:
- Building a sample tree with an excluded file
- A dry run showing the plan
- A real sync followed by an idempotent second run

Usage:
    docker run -p 9000:9000 minio/minio server /data
    python examples/demo_sync.py
"""
import os
import sys
import tempfile
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bucket_sync.clients.s3_manager import S3Manager
from bucket_sync.models.config import S3Config, SyncConfig
from bucket_sync.services.sync_service import SyncOrchestrator
from loguru import logger


def setup_demo_environment():
    """Configure environment for demo."""
    os.environ.setdefault('BUCKET_SYNC_S3_ENDPOINT', 'http://localhost:9000')
    os.environ.setdefault('BUCKET_SYNC_S3_ACCESS_KEY', 'minioadmin')
    os.environ.setdefault('BUCKET_SYNC_S3_SECRET_KEY', 'minioadmin')
    os.environ.setdefault('BUCKET_SYNC_S3_BUCKET', 'demo-bucket')
    os.environ.setdefault('BUCKET_SYNC_S3_REGION', 'us-east-1')


def create_sample_tree(root: Path):
    """Write a few files, including one the default rules exclude."""
    files = {
        'documents/report.pdf': b'%PDF-1.4 demo',
        'documents/._report.pdf': b'resource fork',
        'images/logo.png': b'\x89PNG demo',
        'notes.txt': b'hello bucket',
    }
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


def make_orchestrator(s3_config: S3Config, local_root: str, dry_run: bool = False) -> SyncOrchestrator:
    config = SyncConfig(
        local_root=local_root,
        bucket=s3_config.bucket,
        prefix='demo',
        workers=4,
        dry_run=dry_run,
        s3=s3_config
    )
    return SyncOrchestrator(config)


def main():
    """Run bucket sync demo."""
    logger.remove()
    logger.add(sys.stderr, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> - <level>{message}</level>", level="INFO")

    logger.info("Bucket Sync Demo")

    try:
        setup_demo_environment()
        s3_config = S3Config.from_env()

        client = S3Manager(s3_config).client
        try:
            client.create_bucket(Bucket=s3_config.bucket)
        except client.exceptions.BucketAlreadyOwnedByYou:
            pass

        with tempfile.TemporaryDirectory() as local_root:
            create_sample_tree(Path(local_root))

            logger.info("Planning (dry run)...")
            make_orchestrator(s3_config, local_root, dry_run=True).run()

            logger.info("Running sync...")
            report = make_orchestrator(s3_config, local_root).run()
            logger.success(f"Uploaded {report.files_uploaded} files ({report.bytes_uploaded} bytes), "
                           f"excluded {report.excluded}")

            logger.info("Running again, nothing should change...")
            report = make_orchestrator(s3_config, local_root).run()
            logger.info(f"Uploaded: {report.files_uploaded}, skipped: {report.files_skipped}")

    except Exception as e:
        logger.error(f"Demo failed: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
