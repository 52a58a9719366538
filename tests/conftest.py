"""
Pytest configuration and fixtures for the bucket sync tests.
"""
import sys
import threading
from pathlib import Path

import pytest
from botocore.exceptions import ClientError
from loguru import logger

from bucket_sync.clients.s3_manager import S3Manager
from bucket_sync.models.config import S3Config, SyncConfig


class FakeS3Client:
    """
    In-memory stand-in for a boto3 S3 client.

    Implements the calls S3Manager makes, paginates listings with a small
    page size and can be told to fail for specific keys or listing pages.
    """

    def __init__(self, page_size: int = 2):
        self.objects = {}
        self.storage_classes = {}
        self.page_size = page_size
        self.fail_upload_keys = set()
        self.fail_delete_keys = set()
        self.fail_list_on_page = None
        self.bucket_accessible = True
        self.upload_attempts = []
        self.delete_attempts = []
        self.head_calls = []
        self.list_calls = []
        self.uploaded_fileobjs = []
        self.on_upload = None
        self._lock = threading.Lock()

    def put(self, key: str, body: bytes = b'data', storage_class: str = 'STANDARD'):
        self.objects[key] = body
        self.storage_classes[key] = storage_class

    # -- boto3 surface -------------------------------------------------

    def get_paginator(self, operation_name):
        assert operation_name == 'list_objects_v2'
        return _FakePaginator(self)

    def head_bucket(self, Bucket):
        if not self.bucket_accessible:
            raise ClientError({'Error': {'Code': '403', 'Message': 'Forbidden'}}, 'HeadBucket')
        return {}

    def head_object(self, Bucket, Key):
        with self._lock:
            self.head_calls.append(Key)
        if Key not in self.objects:
            raise ClientError({'Error': {'Code': '404', 'Message': 'Not Found'}}, 'HeadObject')
        return {
            'ContentLength': len(self.objects[Key]),
            'ETag': '"etag"',
            'StorageClass': self.storage_classes.get(Key, 'STANDARD')
        }

    def upload_fileobj(self, Fileobj, Bucket, Key, ExtraArgs=None):
        with self._lock:
            self.upload_attempts.append(Key)
            self.uploaded_fileobjs.append(Fileobj)
        if self.on_upload is not None:
            self.on_upload(Key)
        body = Fileobj.read()
        if Key in self.fail_upload_keys:
            raise ClientError({'Error': {'Code': '500', 'Message': 'Internal Error'}}, 'PutObject')
        with self._lock:
            self.objects[Key] = body
            self.storage_classes[Key] = (ExtraArgs or {}).get('StorageClass', 'STANDARD')

    def delete_object(self, Bucket, Key):
        with self._lock:
            self.delete_attempts.append(Key)
        if Key in self.fail_delete_keys:
            raise ClientError({'Error': {'Code': '500', 'Message': 'Internal Error'}}, 'DeleteObject')
        with self._lock:
            self.objects.pop(Key, None)
        return {}


class _FakePaginator:
    def __init__(self, client: FakeS3Client):
        self.client = client

    def paginate(self, Bucket, Prefix=''):
        self.client.list_calls.append(Prefix)
        keys = sorted(k for k in self.client.objects if k.startswith(Prefix))
        pages = [keys[i:i + self.client.page_size] for i in range(0, len(keys), self.client.page_size)] or [[]]
        for number, page_keys in enumerate(pages, start=1):
            if self.client.fail_list_on_page == number:
                raise ClientError({'Error': {'Code': '500', 'Message': 'Internal Error'}}, 'ListObjectsV2')
            page = {'KeyCount': len(page_keys), 'IsTruncated': number < len(pages)}
            if page_keys:
                page['Contents'] = [
                    {
                        'Key': key,
                        'Size': len(self.client.objects[key]),
                        'ETag': '"etag"',
                        'StorageClass': self.client.storage_classes.get(key, 'STANDARD')
                    }
                    for key in page_keys
                ]
            yield page


def make_tree(root: Path, files: dict) -> Path:
    """Create files under root from a {relative_path: content} mapping."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode()
        path.write_bytes(content)
    return root


@pytest.fixture(autouse=True)
def reset_logger():
    """Restore a plain stderr sink after tests that reconfigure loguru."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")


@pytest.fixture
def fake_client():
    return FakeS3Client()


@pytest.fixture
def s3_manager(fake_client):
    return S3Manager(S3Config(bucket='test-bucket'), client=fake_client)


@pytest.fixture
def local_root(tmp_path):
    root = tmp_path / 'local'
    root.mkdir()
    return root


@pytest.fixture
def sync_config(local_root):
    """Factory for SyncConfig pointing at the local_root fixture."""
    def _make(**overrides):
        values = {
            'local_root': str(local_root),
            'bucket': 'test-bucket',
            'prefix': 'prefix',
            'workers': 4
        }
        values.update(overrides)
        return SyncConfig(**values)
    return _make


@pytest.fixture
def tree(local_root):
    """Factory writing {relative_path: content} files into local_root."""
    def _make(files: dict) -> Path:
        return make_tree(local_root, files)
    return _make
