"""
Tests for S3Manager class.
"""
import pytest
from unittest.mock import Mock, patch
from io import BytesIO
from datetime import datetime
from botocore.exceptions import ClientError, ProfileNotFound

from bucket_sync.clients.s3_manager import S3Manager
from bucket_sync.exceptions import ConfigError
from bucket_sync.models.config import S3Config


@pytest.fixture
def s3_config():
    """Create a test S3 configuration."""
    return S3Config(
        bucket='test-bucket',
        endpoint='http://localhost:9000',
        access_key='access_key',
        secret_key='secret_key',
        region='us-east-1'
    )


@pytest.fixture
def mock_manager(s3_config):
    """Create a test S3Manager instance with a mocked client."""
    return S3Manager(s3_config, client=Mock())


class TestS3Manager:
    """Test cases for S3Manager."""

    def test_initialization_builds_client(self, s3_config):
        """Test S3Manager creates a client through a boto3 session."""
        with patch('bucket_sync.clients.s3_manager.boto3.session.Session') as mock_session:
            manager = S3Manager(s3_config)

            mock_session.assert_called_once_with(profile_name=None)
            client_kwargs = mock_session.return_value.client.call_args
            assert client_kwargs.args == ('s3',)
            assert client_kwargs.kwargs['endpoint_url'] == 'http://localhost:9000'
            assert client_kwargs.kwargs['region_name'] == 'us-east-1'
            assert manager.client is mock_session.return_value.client.return_value
            assert manager.bucket == 'test-bucket'

    def test_initialization_with_injected_client(self, s3_config):
        """Test an injected client is used as-is."""
        client = Mock()
        with patch('bucket_sync.clients.s3_manager.boto3.session.Session') as mock_session:
            manager = S3Manager(s3_config, client=client)

        assert manager.client is client
        mock_session.assert_not_called()

    def test_client_creation_failure_raises_config_error(self, s3_config):
        """Test an unusable profile becomes a ConfigError."""
        with patch('bucket_sync.clients.s3_manager.boto3.session.Session',
                   side_effect=ProfileNotFound(profile='missing')):
            with pytest.raises(ConfigError):
                S3Manager(s3_config)

    def test_list_objects_follows_pages(self, mock_manager):
        """Test listing yields objects from every page."""
        now = datetime.now()
        mock_paginator = Mock()
        mock_paginator.paginate.return_value = [
            {'Contents': [{'Key': 'p/a.txt', 'Size': 1, 'LastModified': now, 'ETag': '"aaa"',
                           'StorageClass': 'STANDARD'}], 'IsTruncated': True},
            {'Contents': [{'Key': 'p/b.txt', 'Size': 2, 'LastModified': now, 'ETag': '"bbb"',
                           'StorageClass': 'GLACIER'}], 'IsTruncated': False}
        ]
        mock_manager.client.get_paginator.return_value = mock_paginator

        objects = list(mock_manager.list_objects('p/'))

        mock_manager.client.get_paginator.assert_called_once_with('list_objects_v2')
        mock_paginator.paginate.assert_called_once_with(Bucket='test-bucket', Prefix='p/')
        assert [obj.key for obj in objects] == ['p/a.txt', 'p/b.txt']
        assert objects[0].etag == 'aaa'
        assert objects[1].size == 2
        assert objects[1].storage_class == 'GLACIER'

    def test_list_objects_empty_page(self, mock_manager):
        """Test a page without Contents yields nothing."""
        mock_paginator = Mock()
        mock_paginator.paginate.return_value = [{'KeyCount': 0}]
        mock_manager.client.get_paginator.return_value = mock_paginator

        assert list(mock_manager.list_objects('p/')) == []

    def test_get_object_metadata(self, mock_manager):
        """Test getting object metadata."""
        mock_manager.client.head_object.return_value = {
            'ContentLength': 1024,
            'LastModified': datetime.now(),
            'ETag': '"abc123"',
            'ContentType': 'text/plain',
            'StorageClass': 'DEEP_ARCHIVE'
        }

        metadata = mock_manager.get_object_metadata('test-key')

        assert metadata['size'] == 1024
        assert metadata['etag'] == 'abc123'
        assert metadata['content_type'] == 'text/plain'
        assert metadata['storage_class'] == 'DEEP_ARCHIVE'
        mock_manager.client.head_object.assert_called_once_with(Bucket='test-bucket', Key='test-key')

    def test_object_exists_true(self, mock_manager):
        """Test checking if object exists (exists)."""
        mock_manager.client.head_object.return_value = {'ContentLength': 1, 'ETag': '"x"'}

        assert mock_manager.object_exists('test-key') is True

    def test_object_exists_false(self, mock_manager):
        """Test checking if object exists (doesn't exist)."""
        mock_manager.client.head_object.side_effect = ClientError(
            error_response={'Error': {'Code': '404'}},
            operation_name='HeadObject'
        )

        assert mock_manager.object_exists('test-key') is False

    def test_object_exists_other_error_raises(self, mock_manager):
        """Test errors other than not-found propagate."""
        mock_manager.client.head_object.side_effect = ClientError(
            error_response={'Error': {'Code': '403'}},
            operation_name='HeadObject'
        )

        with pytest.raises(ClientError):
            mock_manager.object_exists('test-key')

    def test_upload_fileobj_with_storage_class(self, mock_manager):
        """Test the storage class is passed through ExtraArgs."""
        body = BytesIO(b'content')

        mock_manager.upload_fileobj(body, 'p/a.txt', 'STANDARD_IA')

        mock_manager.client.upload_fileobj.assert_called_once_with(
            body, 'test-bucket', 'p/a.txt', ExtraArgs={'StorageClass': 'STANDARD_IA'}
        )

    def test_upload_fileobj_without_storage_class(self, mock_manager):
        """Test no ExtraArgs are sent when no storage class is configured."""
        body = BytesIO(b'content')

        mock_manager.upload_fileobj(body, 'p/a.txt')

        mock_manager.client.upload_fileobj.assert_called_once_with(
            body, 'test-bucket', 'p/a.txt', ExtraArgs=None
        )

    def test_delete_object(self, mock_manager):
        """Test deleting a single object."""
        mock_manager.delete_object('p/old.txt')

        mock_manager.client.delete_object.assert_called_once_with(Bucket='test-bucket', Key='p/old.txt')

    def test_test_connection_success(self, mock_manager):
        """Test connection testing when it succeeds."""
        mock_manager.client.head_bucket.return_value = {}

        assert mock_manager.test_connection() is True

    def test_test_connection_failure(self, mock_manager):
        """Test connection testing when it fails."""
        mock_manager.client.head_bucket.side_effect = ClientError(
            error_response={'Error': {'Code': '403'}},
            operation_name='HeadBucket'
        )

        assert mock_manager.test_connection() is False
