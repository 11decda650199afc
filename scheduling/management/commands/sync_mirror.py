"""
Management command to sync with the remote mirror by hand.
"""

from django.core.management.base import BaseCommand

from scheduling import services
from scheduling.mirror import get_mirror


class Command(BaseCommand):
    help = 'Push local bookings and masseurs to the remote mirror (or pull with --pull)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--pull',
            action='store_true',
            help='Load from the mirror; a non-empty remote overwrites local data'
        )

    def handle(self, *args, **options):
        mirror = get_mirror()

        if options['pull']:
            replaced = mirror.pull_and_reconcile()
            if mirror.last_error:
                self.stdout.write(self.style.ERROR(f'Pull failed: {mirror.last_error}'))
            elif replaced:
                self.stdout.write(self.style.SUCCESS('Local data replaced by the mirror'))
            else:
                self.stdout.write('Mirror is empty, local data kept')
            return

        if services.manual_sync():
            self.stdout.write(self.style.SUCCESS('Successfully synced with the mirror'))
        else:
            self.stdout.write(self.style.ERROR('Sync failed, check the connection'))
