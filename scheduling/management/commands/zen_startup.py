"""
Management command that brings the scheduler up.

It reconciles with the remote mirror, checks whether the month changed and,
if so, walks the cleanup prompts on the terminal. Flags answer the prompts
for unattended runs.
"""

from django.core.management.base import BaseCommand, CommandError

from scheduling import services
from scheduling.lifecycle import get_workflow
from scheduling.mirror import get_mirror
from scheduling.types import CleanupState


class Command(BaseCommand):
    help = 'Sync with the remote mirror and run the monthly cleanup check'

    def add_arguments(self, parser):
        choice = parser.add_mutually_exclusive_group()
        choice.add_argument(
            '--backup',
            action='store_true',
            help='Write the previous month backup and clean up without asking'
        )
        choice.add_argument(
            '--no-backup',
            action='store_true',
            help='Clean up without a backup (requires --yes)'
        )
        parser.add_argument(
            '--yes',
            action='store_true',
            help='Confirm deleting without a backup'
        )

    def handle(self, *args, **options):
        state = services.startup()

        mirror = get_mirror()
        self.stdout.write(f'Remote mirror: {mirror.status.value}')
        if mirror.last_error:
            self.stdout.write(self.style.WARNING(mirror.last_error))

        if state == CleanupState.NORMAL:
            self.stdout.write(self.style.SUCCESS('No monthly cleanup needed'))
            return

        workflow = get_workflow()
        interactive = not (options['backup'] or options['no_backup'])

        while workflow.state != CleanupState.NORMAL:
            if workflow.state == CleanupState.CLEANUP_PROMPTED:
                if interactive:
                    wants_backup = self._ask(
                        'Last month bookings will be deleted. Write a PDF backup first?'
                    )
                else:
                    wants_backup = options['backup']

                if wants_backup:
                    result = workflow.accept_report()
                    self._report(result)
                else:
                    workflow.decline_report()

            elif workflow.state == CleanupState.CLEANUP_CONFIRM_PENDING:
                if interactive:
                    confirmed = self._ask(
                        'This cannot be undone. Delete last month without a backup?'
                    )
                elif options['yes']:
                    confirmed = True
                else:
                    raise CommandError('Refusing to delete without a backup: pass --yes')

                if confirmed:
                    result = workflow.confirm_without_backup()
                    self._report(result)
                else:
                    workflow.back_out()

    def _ask(self, question):
        answer = input(f'{question} [y/n] ').strip().lower()
        return answer in {'y', 'yes', 's', 'sim'}

    def _report(self, result):
        if result.backup_path:
            self.stdout.write(f'Backup written to {result.backup_path}')
        self.stdout.write(
            self.style.SUCCESS(
                f'Removed {result.removed_count} booking(s) dated before {result.cutoff.isoformat()}'
            )
        )
