"""
PDF rendition of the monthly dashboard.
"""
import io
import logging
import os
from xml.sax.saxutils import escape
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.enums import TA_CENTER

from ozifin.config import settings

logger = logging.getLogger(__name__)

FONT_NAME = "OzifinSans"
FONT_BOLD_NAME = "OzifinSans-Bold"


def register_fonts(regular_path: str, bold_path: str) -> Tuple[str, str]:
    """
    Register the report's TTF faces and return (regular, bold) font names.
    Without the regular face the built-in Helvetica is used and Vietnamese letters are lost.
    """
    if not os.path.isfile(regular_path):
        logger.warning(f"PDF font not found at {regular_path}; Vietnamese text will not render")
        return "Helvetica", "Helvetica-Bold"

    pdfmetrics.registerFont(TTFont(FONT_NAME, regular_path))
    bold = FONT_NAME
    if os.path.isfile(bold_path):
        pdfmetrics.registerFont(TTFont(FONT_BOLD_NAME, bold_path))
        bold = FONT_BOLD_NAME
    # <b> in paragraphs resolves through the family
    pdfmetrics.registerFontFamily(FONT_NAME, normal=FONT_NAME, bold=bold, italic=FONT_NAME, boldItalic=bold)
    return FONT_NAME, bold


def format_money(value) -> str:
    """1234567 -> '1,234,567'"""
    return f"{float(value or 0):,.0f}"


class PDFReportGenerator:
    """Monthly ledger report: summary, per-day totals and the month's transactions."""

    def __init__(self, font_path: Optional[str] = None, bold_font_path: Optional[str] = None):
        self.font, self.bold_font = register_fonts(
            font_path or settings.PDF_FONT_PATH,
            bold_font_path or settings.PDF_FONT_BOLD_PATH,
        )
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=self.styles['Heading1'],
            fontName=self.bold_font,
            fontSize=22,
            alignment=TA_CENTER,
            spaceAfter=20,
            textColor=colors.HexColor('#2c3e50')
        ))

        self.styles.add(ParagraphStyle(
            name='ReportSubtitle',
            parent=self.styles['Heading2'],
            fontName=self.bold_font,
            fontSize=12,
            alignment=TA_CENTER,
            spaceAfter=16,
            textColor=colors.HexColor('#7f8c8d')
        ))

        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontName=self.bold_font,
            fontSize=14,
            spaceBefore=16,
            spaceAfter=8,
            textColor=colors.HexColor('#2980b9')
        ))

        self.styles.add(ParagraphStyle(
            name='NormalText',
            parent=self.styles['Normal'],
            fontName=self.font,
            fontSize=10,
            spaceAfter=6
        ))

        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontName=self.font,
            fontSize=8,
            textColor=colors.gray,
            alignment=TA_CENTER
        ))

    def _table_style(self, header_color: str) -> TableStyle:
        return TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(header_color)),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), self.bold_font),
            ('FONTSIZE', (0, 0), (-1, 0), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
            ('FONTNAME', (0, 1), (-1, -1), self.font),
            ('FONTSIZE', (0, 1), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
        ])

    def generate_monthly_report(
        self, summary: Dict[str, Any], transactions, generated_by: Optional[str] = None
    ) -> bytes:
        """
        Args:
            summary: output of ``monthly_summary``
            transactions: the month's visible transactions, newest first
            generated_by: display name printed in the footer

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(A4),
            rightMargin=36,
            leftMargin=36,
            topMargin=36,
            bottomMargin=36
        )

        story = []
        period = f"{summary['month']:02d}/{summary['year']}"
        story.append(Paragraph(f"OZIFIN Monthly Report {period}", self.styles['ReportTitle']))
        story.append(Paragraph(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
                               self.styles['ReportSubtitle']))

        stats = summary['stats']
        summary_text = f"""
        <b>Summary:</b><br/>
        Transactions: {stats['transaction_count']}<br/>
        Total Volume: {format_money(stats['total_volume'])}<br/>
        Total Profit: {format_money(stats['total_profit'])}<br/>
        Average Profit: {format_money(stats['avg_profit'])}<br/>
        """
        story.append(Paragraph(summary_text, self.styles['NormalText']))
        story.append(Spacer(1, 12))

        # Days without activity are left out of the printed table
        chart = summary['chart']
        daily_rows = [['Day', 'Volume', 'Profit']]
        for label, volume, profit in zip(chart['labels'], chart['volume'], chart['profit']):
            if volume or profit:
                daily_rows.append([label, format_money(volume), format_money(profit)])

        story.append(Paragraph("Daily Totals", self.styles['SectionHeader']))
        daily_table = Table(daily_rows, colWidths=[0.8*inch, 1.6*inch, 1.6*inch])
        style = self._table_style('#3498db')
        style.add('ALIGN', (1, 1), (-1, -1), 'RIGHT')
        daily_table.setStyle(style)
        story.append(daily_table)

        story.append(Paragraph("Transactions", self.styles['SectionHeader']))
        rows = [['ID', 'Date', 'Sale', 'Customer', 'Bank', 'Type', 'Amount', 'Profit', 'Status']]
        for t in transactions:
            rows.append([
                t.id,
                t.timestamp.strftime('%d/%m/%Y') if t.timestamp else '',
                t.sale,
                t.customer,
                t.bank,
                t.type,
                format_money(t.amount),
                format_money(t.profit),
                t.status,
            ])
        table = Table(rows, colWidths=[1.3*inch, 0.9*inch, 1.2*inch, 1.6*inch, 1.0*inch,
                                       0.8*inch, 1.1*inch, 0.9*inch, 1.2*inch], repeatRows=1)
        style = self._table_style('#2c3e50')
        style.add('ALIGN', (6, 1), (7, -1), 'RIGHT')
        table.setStyle(style)
        story.append(table)
        story.append(Spacer(1, 20))

        footer = f"OZIFIN Ledger - Monthly Report {period}"
        if generated_by:
            footer += f" | Generated by {escape(generated_by)}"
        story.append(Paragraph(footer, self.styles['Footer']))

        doc.build(story)

        buffer.seek(0)
        return buffer.getvalue()


pdf_generator = PDFReportGenerator()
