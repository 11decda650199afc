"""
Tests for the management commands.
"""

import tempfile
from datetime import date
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from scheduling.exceptions import RemoteSyncFailure
from scheduling.lifecycle import get_workflow
from scheduling.mirror import MirrorSnapshot, MirrorSync, set_mirror
from scheduling.models import Booking
from scheduling.repository import MarkerStore
from scheduling.types import CleanupState

from .helpers import ImmediateExecutor, make_booking, make_provider, reset_process_state


class CommandTestCase(TestCase):

    def setUp(self):
        reset_process_state()
        self.remote = mock.Mock()
        self.remote.pull.return_value = MirrorSnapshot(bookings=[], providers=[])
        self.remote.push_payload.return_value = True
        set_mirror(MirrorSync(client=self.remote, executor=ImmediateExecutor()))
        self.provider = make_provider("Ana")

    def tearDown(self):
        reset_process_state()

    def run_command(self, *args):
        out = StringIO()
        call_command(*args, stdout=out)
        return out.getvalue()


class SyncMirrorCommandTests(CommandTestCase):
    """Test the sync_mirror command."""

    def test_push(self):
        make_booking(self.provider)

        output = self.run_command('sync_mirror')

        self.assertIn('Successfully synced', output)
        payload = self.remote.push_payload.call_args[0][0]
        self.assertEqual(len(payload['appointments']), 1)

    def test_push_failure(self):
        self.remote.push_payload.return_value = False

        output = self.run_command('sync_mirror')

        self.assertIn('Sync failed', output)

    def test_pull_empty_mirror_keeps_local(self):
        make_booking(self.provider)

        output = self.run_command('sync_mirror', '--pull')

        self.assertIn('Mirror is empty', output)
        self.assertEqual(Booking.objects.count(), 1)

    def test_pull_failure(self):
        self.remote.pull.side_effect = RemoteSyncFailure("Could not load from mirror: down")

        output = self.run_command('sync_mirror', '--pull')

        self.assertIn('Pull failed', output)


class StartupCommandTests(CommandTestCase):
    """Test the zen_startup command."""

    def setUp(self):
        super().setUp()
        self.old = make_booking(self.provider, day=date(2000, 1, 17))

    def month_changed(self):
        MarkerStore().set_last_access_month('2000-01')

    def test_first_run_needs_no_cleanup(self):
        output = self.run_command('zen_startup')

        self.assertIn('Remote mirror: success', output)
        self.assertIn('No monthly cleanup needed', output)
        self.assertEqual(MarkerStore().get_last_access_month(), date.today().strftime('%Y-%m'))
        self.assertEqual(Booking.objects.count(), 1)

    def test_no_backup_requires_yes(self):
        self.month_changed()

        with self.assertRaises(CommandError):
            self.run_command('zen_startup', '--no-backup')

        self.assertEqual(get_workflow().state, CleanupState.CLEANUP_CONFIRM_PENDING)
        self.assertEqual(Booking.objects.count(), 1)

    def test_no_backup_confirmed(self):
        self.month_changed()

        output = self.run_command('zen_startup', '--no-backup', '--yes')

        self.assertIn('Removed 1 booking(s)', output)
        self.assertFalse(Booking.objects.exists())
        self.assertEqual(get_workflow().state, CleanupState.NORMAL)

    def test_backup_flag(self):
        self.month_changed()

        with tempfile.TemporaryDirectory() as backup_dir:
            with override_settings(SCHEDULING_BACKUP_DIR=backup_dir):
                output = self.run_command('zen_startup', '--backup')

        self.assertIn('Removed 1 booking(s)', output)
        self.assertFalse(Booking.objects.exists())

    def test_interactive_prompts(self):
        self.month_changed()

        # decline the backup, back out, then accept it
        with mock.patch('builtins.input', side_effect=['n', 'n', 's']) as prompt:
            with tempfile.TemporaryDirectory() as backup_dir:
                with override_settings(SCHEDULING_BACKUP_DIR=backup_dir):
                    output = self.run_command('zen_startup')

        self.assertEqual(prompt.call_count, 3)
        self.assertIn('Removed 1 booking(s)', output)
        self.assertEqual(MarkerStore().get_last_access_month(), date.today().strftime('%Y-%m'))
