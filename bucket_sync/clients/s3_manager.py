"""
S3 client manager wrapping the boto3 calls the sync engine needs.
"""
from typing import Iterator, Dict, Any, BinaryIO, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..exceptions import ConfigError
from ..models.config import S3Config
from ..models.data_models import RemoteObjectRecord


# Per-request retries inside botocore; whole-file retries are left to re-running the sync
_BOTO_CONFIG = BotoConfig(retries={'max_attempts': 3, 'mode': 'standard'})


class S3Manager:
    """
    Manages S3 operations for a single bucket.

    Exposes the four capabilities the sync engine consumes (list, head,
    put, delete) plus a connection check. A ready-made boto3 client can be
    injected; otherwise one is built from the S3Config.
    """

    def __init__(self, config: S3Config, client=None):
        """
        Initialize S3Manager.

        Args:
            config: S3Config holding bucket name and connection settings
            client: Optional pre-built boto3 S3 client

        Raises:
            ConfigError: If no usable client can be created
        """
        self.config = config
        self.bucket = config.bucket
        self.client = client if client is not None else self._create_s3_client(config)

        logger.debug(f"S3Manager initialized for bucket: {self.bucket}")

    def _create_s3_client(self, config: S3Config):
        """Create an S3 client from configuration."""
        try:
            session = boto3.session.Session(profile_name=config.profile)
            client = session.client(
                's3',
                endpoint_url=config.endpoint,
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.secret_key,
                region_name=config.region,
                config=_BOTO_CONFIG
            )
            logger.debug(f"Created S3 client for endpoint: {config.endpoint or 'default'}")
            return client
        except (BotoCoreError, ClientError, ValueError) as e:
            logger.error(f"Failed to create S3 client for {config.endpoint or 'default endpoint'}: {e}")
            raise ConfigError(f"Unable to create S3 client: {e}") from e

    def list_objects(self, prefix: str = '') -> Iterator[RemoteObjectRecord]:
        """
        List every object under a prefix, following continuation tokens.

        Args:
            prefix: Key prefix to list under

        Yields:
            RemoteObjectRecord: Objects in the bucket
        """
        paginator = self.client.get_paginator('list_objects_v2')
        page_iterator = paginator.paginate(Bucket=self.bucket, Prefix=prefix)

        for page in page_iterator:
            for obj in page.get('Contents', []):
                yield RemoteObjectRecord(
                    key=obj['Key'],
                    size=obj.get('Size'),
                    etag=obj.get('ETag', '').strip('"') or None,
                    storage_class=obj.get('StorageClass'),
                    last_modified=obj.get('LastModified')
                )

    def get_object_metadata(self, key: str) -> Dict[str, Any]:
        """
        Get metadata for an object without downloading the content.

        Args:
            key: Object key in the bucket

        Returns:
            Dict containing object metadata
        """
        response = self.client.head_object(Bucket=self.bucket, Key=key)
        return {
            'size': response['ContentLength'],
            'last_modified': response.get('LastModified'),
            'etag': response.get('ETag', '').strip('"'),
            'content_type': response.get('ContentType', 'binary/octet-stream'),
            'storage_class': response.get('StorageClass', 'STANDARD')
        }

    def object_exists(self, key: str) -> bool:
        """
        Check if an object exists in the bucket.

        Args:
            key: Object key to check

        Returns:
            bool: True if object exists, False otherwise
        """
        try:
            self.get_object_metadata(key)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in ('404', 'NoSuchKey', 'NotFound'):
                return False
            raise

    def upload_fileobj(self, fileobj: BinaryIO, key: str, storage_class: Optional[str] = None) -> None:
        """
        Stream a file object to the bucket using the managed transfer.

        Large files go through multipart upload; a failed multipart upload
        is aborted by the transfer manager, so no partial object remains.

        Args:
            fileobj: Readable binary stream, owned and closed by the caller
            key: Destination object key
            storage_class: Optional S3 storage class for the new object
        """
        extra_args = {'StorageClass': storage_class} if storage_class else None
        self.client.upload_fileobj(fileobj, self.bucket, key, ExtraArgs=extra_args)

    def delete_object(self, key: str) -> None:
        """Delete a single object from the bucket."""
        self.client.delete_object(Bucket=self.bucket, Key=key)

    def test_connection(self) -> bool:
        """
        Test connection to the S3 service and bucket.

        Returns:
            bool: True if connection successful, False otherwise
        """
        try:
            self.client.head_bucket(Bucket=self.bucket)
            logger.info(f"S3 connection test successful for bucket: {self.bucket}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 connection test failed for bucket {self.bucket}: {e}")
            return False
