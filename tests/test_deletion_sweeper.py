"""
Tests for the DeletionSweeper.
"""
import threading
from collections import Counter
from unittest.mock import patch

from bucket_sync.services.deletion_sweeper import DeletionSweeper


class TestDeletionSweeper:
    """Test cases for DeletionSweeper."""

    def test_single_stray_key_deleted_once(self, fake_client, s3_manager, sync_config):
        fake_client.put('prefix/a.txt')
        fake_client.put('prefix/old.txt')

        outcomes = DeletionSweeper(sync_config(), s3_manager).run(['prefix/old.txt'])

        assert fake_client.delete_attempts == ['prefix/old.txt']
        assert [o.success for o in outcomes] == [True]
        assert set(fake_client.objects) == {'prefix/a.txt'}

    def test_failure_does_not_abort_remaining(self, fake_client, s3_manager, sync_config):
        keys = [f'prefix/{i}.txt' for i in range(8)]
        for key in keys:
            fake_client.put(key)
        fake_client.fail_delete_keys.add('prefix/3.txt')

        outcomes = DeletionSweeper(sync_config(workers=2), s3_manager).run(keys)

        assert Counter(fake_client.delete_attempts) == Counter(keys)
        assert [o.target for o in outcomes if not o.success] == ['prefix/3.txt']
        assert set(fake_client.objects) == {'prefix/3.txt'}

    def test_cancelled_sweeper_deletes_nothing(self, fake_client, s3_manager, sync_config):
        fake_client.put('prefix/old.txt')
        cancel = threading.Event()
        cancel.set()

        outcomes = DeletionSweeper(sync_config(), s3_manager, cancel).run(['prefix/old.txt'])

        assert outcomes == []
        assert fake_client.delete_attempts == []

    def test_unexpected_error_is_reported_as_failure(self, fake_client, s3_manager, sync_config):
        fake_client.put('prefix/old.txt')

        with patch.object(s3_manager, 'delete_object', side_effect=RuntimeError('socket closed')):
            outcomes = DeletionSweeper(sync_config(), s3_manager).run(['prefix/old.txt'])

        assert len(outcomes) == 1
        assert outcomes[0].success is False
        assert 'socket closed' in outcomes[0].error
