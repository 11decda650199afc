"""
Tests for the monthly archival workflow and the PDF documents.
"""

import os
import tempfile
from datetime import date, time
from unittest import mock

from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings

from scheduling import reports, services
from scheduling.exceptions import InvalidTransition
from scheduling.lifecycle import (
    CleanupWorkflow,
    get_workflow,
    month_key,
    previous_month_range,
    start_of_month,
)
from scheduling.mirror import MirrorSnapshot, MirrorSync, set_mirror
from scheduling.models import Booking, Provider
from scheduling.repository import MarkerStore
from scheduling.types import CleanupState, ReportFilter

from .helpers import ImmediateExecutor, make_booking, make_provider, reset_process_state

TODAY = date(2024, 2, 10)


class MonthHelperTests(SimpleTestCase):

    def test_month_key(self):
        self.assertEqual(month_key(date(2024, 2, 29)), '2024-02')

    def test_start_of_month(self):
        self.assertEqual(start_of_month(date(2024, 2, 29)), date(2024, 2, 1))

    def test_previous_month_range(self):
        self.assertEqual(previous_month_range(date(2024, 3, 15)), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(previous_month_range(date(2024, 1, 5)), (date(2023, 12, 1), date(2023, 12, 31)))


class CleanupWorkflowTests(TestCase):
    """Test the backup-then-purge state machine."""

    def setUp(self):
        reset_process_state()
        self.markers = MarkerStore()
        self.writer = mock.Mock(return_value='/backups/backup_massagens_2024_01.pdf')
        self.workflow = CleanupWorkflow(markers=self.markers, backup_writer=self.writer)

        provider = make_provider("Ana")
        self.december = make_booking(provider, day=date(2023, 12, 20))
        self.january = make_booking(provider, day=date(2024, 1, 31))
        self.first = make_booking(provider, day=date(2024, 2, 1))
        self.mid = make_booking(provider, day=date(2024, 2, 15))

    def tearDown(self):
        reset_process_state()

    def prompted(self):
        self.markers.set_last_access_month('2024-01')
        self.assertEqual(self.workflow.check(TODAY), CleanupState.CLEANUP_PROMPTED)
        return self.workflow

    def remaining_dates(self):
        return list(Booking.objects.order_by('date').values_list('date', flat=True))

    def test_month_change_prompts(self):
        self.prompted()

    def test_same_month_stays_normal(self):
        self.markers.set_last_access_month('2024-02')

        self.assertEqual(self.workflow.check(TODAY), CleanupState.NORMAL)

    def test_first_run_records_baseline(self):
        self.assertEqual(self.workflow.check(TODAY), CleanupState.NORMAL)
        self.assertEqual(self.markers.get_last_access_month(), '2024-02')
        self.assertEqual(Booking.objects.count(), 4)

    def test_accept_writes_backup_of_previous_month_then_purges(self):
        workflow = self.prompted()

        result = workflow.accept_report(TODAY)

        bookings, month = self.writer.call_args[0]
        self.assertEqual([b.id for b in bookings], [self.january.id])
        self.assertEqual(month, date(2024, 1, 1))
        self.assertEqual(result.backup_path, '/backups/backup_massagens_2024_01.pdf')
        self.assertEqual(result.removed_count, 2)
        self.assertEqual(result.cutoff, date(2024, 2, 1))
        self.assertEqual(self.remaining_dates(), [date(2024, 2, 1), date(2024, 2, 15)])
        self.assertEqual(self.markers.get_last_access_month(), '2024-02')
        self.assertEqual(workflow.state, CleanupState.NORMAL)

    def test_accept_without_bookings_last_month_skips_document(self):
        Booking.objects.filter(pk=self.january.pk).delete()
        workflow = self.prompted()

        result = workflow.accept_report(TODAY)

        self.writer.assert_not_called()
        self.assertIsNone(result.backup_path)
        self.assertEqual(result.removed_count, 1)
        self.assertEqual(workflow.state, CleanupState.NORMAL)

    def test_decline_requires_second_confirmation(self):
        workflow = self.prompted()

        self.assertEqual(workflow.decline_report(), CleanupState.CLEANUP_CONFIRM_PENDING)
        self.assertEqual(Booking.objects.count(), 4)

        self.assertEqual(workflow.back_out(), CleanupState.CLEANUP_PROMPTED)
        workflow.decline_report()
        result = workflow.confirm_without_backup(TODAY)

        self.writer.assert_not_called()
        self.assertIsNone(result.backup_path)
        self.assertEqual(self.remaining_dates(), [date(2024, 2, 1), date(2024, 2, 15)])
        self.assertEqual(self.markers.get_last_access_month(), '2024-02')
        self.assertEqual(workflow.state, CleanupState.NORMAL)

    def test_invalid_transitions(self):
        with self.assertRaises(InvalidTransition):
            self.workflow.accept_report(TODAY)
        with self.assertRaises(InvalidTransition):
            self.workflow.decline_report()

        workflow = self.prompted()
        with self.assertRaises(InvalidTransition):
            workflow.confirm_without_backup(TODAY)
        with self.assertRaises(InvalidTransition):
            workflow.back_out()

        self.assertEqual(Booking.objects.count(), 4)

    def test_check_while_prompted_keeps_state(self):
        workflow = self.prompted()
        workflow.decline_report()

        self.assertEqual(workflow.check(TODAY), CleanupState.CLEANUP_CONFIRM_PENDING)

    def test_purge_pushes_to_mirror(self):
        client = mock.Mock()
        client.push_payload.return_value = True
        set_mirror(MirrorSync(client=client, executor=ImmediateExecutor()))
        workflow = self.prompted()
        workflow.decline_report()

        with self.captureOnCommitCallbacks(execute=True):
            workflow.confirm_without_backup(TODAY)

        payload = client.push_payload.call_args[0][0]
        self.assertEqual(len(payload['appointments']), 2)

    def test_accept_writes_real_document(self):
        workflow = CleanupWorkflow(markers=self.markers)
        self.markers.set_last_access_month('2024-01')
        workflow.check(TODAY)

        with tempfile.TemporaryDirectory() as backup_dir:
            with override_settings(SCHEDULING_BACKUP_DIR=backup_dir):
                result = workflow.accept_report(TODAY)

            self.assertEqual(os.path.basename(result.backup_path), 'backup_massagens_2024_01.pdf')
            with open(result.backup_path, 'rb') as handle:
                self.assertTrue(handle.read().startswith(b'%PDF'))


class ReportTests(SimpleTestCase):
    """Test closing report selection, rows and rendering."""

    def setUp(self):
        self.ana = Provider(id='p1', name="Ana", start_time=time(9, 0), end_time=time(18, 0))
        self.bia = Provider(id='p2', name="Bia", start_time=time(9, 0), end_time=time(18, 0))
        self.bookings = [
            self.booking('b1', date(2024, 3, 5), 'p1', 'Vilage Inn'),
            self.booking('b2', date(2024, 3, 1), 'p2', 'Thermas Resort'),
            self.booking('b3', date(2024, 3, 31), 'p1', 'Hotel Golden Park'),
            self.booking('b4', date(2024, 4, 1), 'p1', 'Vilage Inn'),
        ]

    def booking(self, booking_id, day, provider_id, hotel, **kwargs):
        return Booking(
            id=booking_id,
            client_name=kwargs.pop('client_name', "Maria Souza"),
            unit="101",
            hotel=hotel,
            service_id=kwargs.pop('service_id', '1'),
            date=day,
            time=time(10, 0),
            provider_id=provider_id,
            point_of_sale='Recepção',
            **kwargs
        )

    def test_filter_range_is_inclusive_and_sorted(self):
        selected = reports.filter_bookings(self.bookings, ReportFilter(date(2024, 3, 1), date(2024, 3, 31)))

        self.assertEqual([b.id for b in selected], ['b2', 'b1', 'b3'])

    def test_filter_by_provider_and_hotel(self):
        by_provider = reports.filter_bookings(
            self.bookings, ReportFilter(date(2024, 3, 1), date(2024, 4, 30), provider_id='p1')
        )
        self.assertEqual([b.id for b in by_provider], ['b1', 'b3', 'b4'])

        by_hotel = reports.filter_bookings(
            self.bookings, ReportFilter(date(2024, 3, 1), date(2024, 4, 30), hotel='Vilage Inn')
        )
        self.assertEqual([b.id for b in by_hotel], ['b1', 'b4'])

    def test_closing_rows(self):
        done = self.booking('b5', date(2024, 3, 4), 'p1', 'Vilage Inn', service_id='8', status='done')
        rows = reports.closing_report_rows([self.bookings[0], done], {'p1': self.ana})

        self.assertEqual(
            rows[0],
            ['05/03/2024', '10:00', 'Maria Souza', 'Recepção',
             'Massagem Relaxante + Aromaterapia', 'Ana', 'R$ 150.00']
        )
        self.assertEqual(rows[1][-1], 'R$ 80.00 (Conc.)')

    def test_stale_references_render_as_not_available(self):
        stale = self.booking('b6', date(2024, 3, 4), 'gone', 'Vilage Inn', service_id='99')
        row = reports.closing_report_rows([stale], {'p1': self.ana})[0]

        self.assertEqual(row[4], 'N/A')
        self.assertEqual(row[5], 'N/A')
        self.assertEqual(row[6], 'R$ N/A')

    def test_backup_rows(self):
        row = reports.backup_rows([self.bookings[0]])[0]

        self.assertEqual(
            row,
            ['Maria Souza', '101', '-', 'Massagem Relaxante + Aromaterapia', '05/03/2024', '10:00', 'Vilage Inn']
        )

    def test_file_names(self):
        self.assertEqual(
            reports.closing_report_filename(ReportFilter(date(2024, 3, 1), date(2024, 3, 31))),
            'fechamento_massagens_2024-03-01.pdf'
        )
        self.assertEqual(reports.backup_filename(date(2024, 1, 1)), 'backup_massagens_2024_01.pdf')

    def test_render_closing_report(self):
        self.bookings.append(self.booking('b7', date(2024, 3, 2), 'p2', 'Vilage Inn', client_name="Smith & <Co>"))

        pdf = reports.render_closing_report(
            self.bookings,
            [self.ana, self.bia],
            ReportFilter(date(2024, 3, 1), date(2024, 3, 31), provider_id='p2', hotel='Vilage Inn'),
        )

        self.assertTrue(pdf.startswith(b'%PDF'))

    def test_price_formatting(self):
        self.assertEqual(reports.format_price(self.bookings[0]), 'R$ 150.00')

    def test_write_monthly_backup(self):
        with tempfile.TemporaryDirectory() as backup_dir:
            path = reports.write_monthly_backup(self.bookings[:2], date(2024, 3, 1), output_dir=backup_dir)

            self.assertEqual(path, os.path.join(backup_dir, 'backup_massagens_2024_03.pdf'))
            with open(path, 'rb') as handle:
                self.assertTrue(handle.read().startswith(b'%PDF'))


class StartupTests(TestCase):
    """Test that startup reconciles with the mirror before checking the month."""

    def setUp(self):
        reset_process_state()
        self.remote = mock.Mock()
        self.remote.push_payload.return_value = True
        self.remote.pull.return_value = MirrorSnapshot(
            bookings=[
                self.remote_booking('r1', date(2024, 1, 20)),
                self.remote_booking('r2', date(2024, 2, 12)),
            ],
            providers=[Provider(id='p2', name="Bia", start_time=time(8, 0), end_time=time(17, 0))],
        )
        set_mirror(MirrorSync(client=self.remote, executor=ImmediateExecutor()))
        make_booking(make_provider("Ana"), day=date(2024, 2, 5))
        MarkerStore().set_last_access_month('2024-01')

    def tearDown(self):
        reset_process_state()

    def remote_booking(self, booking_id, day):
        return Booking(
            id=booking_id,
            client_name="Carlos Dias",
            unit='305',
            hotel='Thermas Resort',
            service_id='1',
            date=day,
            time=time(14, 30),
            provider_id='p2',
            point_of_sale='Reserva',
        )

    def test_cleanup_purges_pulled_bookings(self):
        self.assertEqual(services.startup(TODAY), CleanupState.CLEANUP_PROMPTED)
        self.assertEqual(list(Booking.objects.values_list('id', flat=True)), ['r1', 'r2'])

        workflow = get_workflow()
        workflow.decline_report()
        result = workflow.confirm_without_backup(TODAY)

        self.assertEqual(result.removed_count, 1)
        self.assertEqual(list(Booking.objects.values_list('id', flat=True)), ['r2'])

    def test_backup_covers_pulled_bookings(self):
        services.startup(TODAY)

        with tempfile.TemporaryDirectory() as backup_dir:
            with override_settings(SCHEDULING_BACKUP_DIR=backup_dir):
                result = get_workflow().accept_report(TODAY)

            self.assertTrue(os.path.exists(result.backup_path))
        self.assertEqual(list(Booking.objects.values_list('id', flat=True)), ['r2'])

    def test_ensure_started_runs_once(self):
        self.assertEqual(services.ensure_started(TODAY), CleanupState.CLEANUP_PROMPTED)
        get_workflow().decline_report()

        self.assertEqual(services.ensure_started(TODAY), CleanupState.CLEANUP_CONFIRM_PENDING)
        self.remote.pull.assert_called_once_with()

    def test_failed_startup_is_retried(self):
        failing_check = mock.patch.object(
            CleanupWorkflow, 'check', side_effect=[DatabaseError('database is locked'), CleanupState.NORMAL]
        )
        with failing_check:
            with self.assertRaises(DatabaseError):
                services.ensure_started(TODAY)

            self.assertEqual(services.ensure_started(TODAY), CleanupState.NORMAL)

        self.assertEqual(self.remote.pull.call_count, 2)
