"""
Closing report and monthly backup documents.

Both documents are PDFs built with reportlab; nothing reads them back.
"""

import io
import logging
import os
from datetime import date
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from django.conf import settings
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .types import ReportFilter

logger = logging.getLogger(__name__)

CLOSING_HEADER = ['Data', 'Hora', 'Hóspede', 'PV', 'Tipo', 'Massagista', 'Valor']
BACKUP_HEADER = ['Cliente', 'Apto', 'Tel', 'Tipo', 'Data', 'Hora', 'Hotel']
NOT_AVAILABLE = 'N/A'
DONE_SUFFIX = ' (Conc.)'

BRAND_COLOR = colors.HexColor("#0d9488")
DARK_GRAY = colors.HexColor("#1e293b")
LIGHT_GRAY = colors.HexColor("#f1f5f9")


def _format_date(value: date) -> str:
    return value.strftime('%d/%m/%Y')


def filter_bookings(bookings: Iterable, report_filter: ReportFilter) -> List:
    """
    Select bookings for the closing report.

    Args:
        bookings: Bookings to choose from
        report_filter: Inclusive date range plus optional provider and hotel

    Returns:
        Matching bookings sorted by date (stable within a day)
    """
    selected = [
        booking for booking in bookings
        if report_filter.start_date <= booking.date <= report_filter.end_date
        and (not report_filter.provider_id or booking.provider_id == report_filter.provider_id)
        and (not report_filter.hotel or booking.hotel == report_filter.hotel)
    ]
    selected.sort(key=lambda booking: booking.date)
    return selected


def format_price(booking) -> str:
    service = booking.service
    price = f"{service.price:.2f}" if service else NOT_AVAILABLE
    suffix = DONE_SUFFIX if booking.is_done else ''
    return f"R$ {price}{suffix}"


def closing_report_rows(bookings: Iterable, providers_by_id: dict) -> List[List[str]]:
    """Table body of the closing report."""
    rows = []
    for booking in bookings:
        service = booking.service
        provider = providers_by_id.get(booking.provider_id)
        rows.append([
            _format_date(booking.date),
            booking.time.strftime('%H:%M'),
            booking.client_name,
            booking.point_of_sale,
            service.name if service else NOT_AVAILABLE,
            provider.name if provider else NOT_AVAILABLE,
            format_price(booking),
        ])
    return rows


def backup_rows(bookings: Iterable) -> List[List[str]]:
    """Table body of the monthly backup."""
    rows = []
    for booking in bookings:
        service = booking.service
        rows.append([
            booking.client_name,
            booking.unit,
            booking.phone or '-',
            service.name if service else '',
            _format_date(booking.date),
            booking.time.strftime('%H:%M'),
            booking.hotel,
        ])
    return rows


def closing_report_filename(report_filter: ReportFilter) -> str:
    return f"fechamento_massagens_{report_filter.start_date.isoformat()}.pdf"


def backup_filename(month: date) -> str:
    return f"backup_massagens_{month.strftime('%Y_%m')}.pdf"


class TablePDF:
    """A title, a few info lines and one table, on A4 pages."""

    def __init__(self, title: str, header: List[str], rows: List[List[str]], lines: Optional[List[str]] = None):
        self.title = title
        self.header = header
        self.rows = rows
        self.lines = lines or []
        self.margin = 0.5 * inch

    def generate(self) -> bytes:
        """Generate PDF and return bytes."""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=self.title,
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "ReportTitle",
            parent=styles["Heading1"],
            fontSize=18,
            textColor=DARK_GRAY,
            spaceAfter=10,
        )
        body_style = ParagraphStyle(
            "ReportBody",
            parent=styles["Normal"],
            fontSize=11,
            textColor=DARK_GRAY,
            spaceAfter=4,
        )
        cell_style = ParagraphStyle(
            "ReportCell",
            parent=styles["Normal"],
            fontSize=8,
            leading=10,
        )

        story = [Paragraph(escape(self.title), title_style)]
        for line in self.lines:
            story.append(Paragraph(escape(line), body_style))
        story.append(Spacer(1, 0.2 * inch))

        data = [self.header] + [
            [Paragraph(escape(str(cell)), cell_style) for cell in row] for row in self.rows
        ]
        table = Table(data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), BRAND_COLOR),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 9),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT_GRAY]),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ]
            )
        )
        story.append(table)

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes


def render_closing_report(bookings: Iterable, providers: Iterable, report_filter: ReportFilter) -> bytes:
    """
    Build the closing report PDF for a filter.

    Args:
        bookings: All bookings; the filter is applied here
        providers: Providers, for names
        report_filter: ReportFilter

    Returns:
        PDF bytes
    """
    providers_by_id = {provider.id: provider for provider in providers}
    selected = filter_bookings(bookings, report_filter)

    lines = [
        f"Período: {_format_date(report_filter.start_date)} a {_format_date(report_filter.end_date)}"
    ]
    if report_filter.provider_id:
        provider = providers_by_id.get(report_filter.provider_id)
        lines.append(f"Massagista: {provider.name if provider else NOT_AVAILABLE}")
    if report_filter.hotel:
        lines.append(f"Hotel: {report_filter.hotel}")

    pdf_bytes = TablePDF(
        "Relatório de Fechamento - Massagens",
        CLOSING_HEADER,
        closing_report_rows(selected, providers_by_id),
        lines,
    ).generate()
    logger.info("Generated closing report with %d row(s) (%d bytes)", len(selected), len(pdf_bytes))
    return pdf_bytes


def write_monthly_backup(bookings: List, month: date, output_dir: Optional[str] = None) -> str:
    """
    Write the backup PDF of one month's bookings.

    Args:
        bookings: Bookings of that month
        month: Any date inside the month being backed up
        output_dir: Target directory (defaults to SCHEDULING_BACKUP_DIR)

    Returns:
        Path of the written file
    """
    output_dir = output_dir or settings.SCHEDULING_BACKUP_DIR
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, backup_filename(month))

    pdf_bytes = TablePDF(
        f"Backup Mensal Automático - {month.strftime('%m/%Y')}",
        BACKUP_HEADER,
        backup_rows(sorted(bookings, key=lambda booking: booking.date)),
    ).generate()

    with open(path, 'wb') as handle:
        handle.write(pdf_bytes)

    logger.info("Wrote monthly backup %s with %d booking(s)", path, len(bookings))
    return path
