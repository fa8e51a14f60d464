"""Invoice composition and PDF rendering.

``compose_invoice`` turns an order into an ``InvoiceLayout`` of plain strings,
and ``build_invoice_pdf`` draws that layout with reportlab. Both are pure
functions of their inputs: nothing is read from the database here, so the
lines, customer and business profile are passed in by the caller.
"""
from __future__ import annotations

import io
from dataclasses import dataclass, field
from xml.sax.saxutils import escape

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from common.utils import format_money, to_decimal

TABLE_HEADER = ("#", "Description", "Qty", "Rate", "SGST", "CGST", "Amount")
NO_TAX = "-"
FOOTER_TEXT = "Thank you for your business!"

base_styles = getSampleStyleSheet()
BUSINESS_STYLE = ParagraphStyle("business", parent=base_styles["Title"], fontSize=18, leading=22, alignment=TA_CENTER)
CENTER_STYLE = ParagraphStyle("center", parent=base_styles["Normal"], fontSize=10, leading=12, alignment=TA_CENTER)
TITLE_STYLE = ParagraphStyle("title", parent=base_styles["Heading2"], fontSize=16, leading=18, alignment=TA_CENTER)
BODY_STYLE = ParagraphStyle("body", parent=base_styles["Normal"], fontSize=10, leading=12)
CELL_STYLE = ParagraphStyle("cell", parent=base_styles["Normal"], fontSize=9, leading=11)
RIGHT_STYLE = ParagraphStyle("right", parent=base_styles["Normal"], fontSize=10, leading=12, alignment=TA_RIGHT)
TOTAL_STYLE = ParagraphStyle("total", parent=RIGHT_STYLE, fontName="Helvetica-Bold", fontSize=12, leading=14)

COLUMN_WIDTHS = [10 * mm, 62 * mm, 14 * mm, 25 * mm, 22 * mm, 22 * mm, 27 * mm]
HEADER_FILL = colors.Color(41 / 255, 128 / 255, 185 / 255)


@dataclass(frozen=True)
class SummaryRow:
    label: str
    value: str
    bold: bool = False


@dataclass(frozen=True)
class InvoiceLayout:
    business_name: str
    header_lines: list[str]
    bill_to: list[str]
    details: list[str]
    rows: list[tuple[str, ...]]
    summary: list[SummaryRow]
    title: str = "INVOICE"
    table_header: tuple[str, ...] = TABLE_HEADER
    footer: str = FOOTER_TEXT
    filename: str = field(default="Invoice.pdf")


def invoice_filename(order):
    return f"Invoice-{order.order_number}.pdf"


def format_invoice_date(value):
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime("%d/%m/%Y")


def line_shows_tax(line):
    """Tax cells are printed for any line that carries GST."""
    return to_decimal(line.total_gst) > 0


def compose_invoice(order, lines, customer, profile, currency_prefix=None) -> InvoiceLayout:
    prefix = settings.INVOICE_CURRENCY_PREFIX if currency_prefix is None else currency_prefix

    business_name = (getattr(profile, "business_name", None) or settings.DEFAULT_BUSINESS_NAME).strip()
    header_lines = []
    if getattr(profile, "address", None):
        header_lines.append(profile.address)
    contact = " | ".join(
        value for value in (getattr(profile, "contact_phone", None), getattr(profile, "contact_email", None)) if value
    )
    if contact:
        header_lines.append(contact)
    if getattr(profile, "gstin", None):
        header_lines.append(f"GSTIN: {profile.gstin}")

    bill_to = [customer.name if customer is not None else "N/A"]
    if customer is not None:
        if customer.customer_code:
            bill_to.append(f"ID: {customer.customer_code}")
        if customer.phone:
            bill_to.append(f"Phone: {customer.phone}")
        if customer.address:
            bill_to.append(customer.address)

    details = [f"Invoice #: {order.order_number}", f"Date: {format_invoice_date(order.created_at)}"]

    rows = []
    total_gst = to_decimal(0)
    for index, line in enumerate(lines, start=1):
        taxed = line_shows_tax(line)
        if taxed:
            total_gst += to_decimal(line.total_gst)
        rows.append(
            (
                str(index),
                line.part_name,
                str(line.quantity),
                format_money(line.selling_price, prefix),
                format_money(line.sgst_amount, prefix) if taxed else NO_TAX,
                format_money(line.cgst_amount, prefix) if taxed else NO_TAX,
                format_money(line.subtotal, prefix),
            )
        )

    summary = [SummaryRow("Subtotal:", format_money(order.total_selling_price, prefix))]
    if total_gst > 0:
        summary.append(SummaryRow("Total GST:", format_money(total_gst, prefix)))
    summary.append(SummaryRow("Total Amount:", format_money(order.total_amount, prefix), bold=True))

    return InvoiceLayout(
        business_name=business_name,
        header_lines=header_lines,
        bill_to=bill_to,
        details=details,
        rows=rows,
        summary=summary,
        filename=invoice_filename(order),
    )


def _paragraph(text, style):
    return Paragraph(escape(str(text)).replace("\n", "<br/>"), style)


def build_invoice_pdf(layout: InvoiceLayout) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=14 * mm,
        bottomMargin=20 * mm,
        title=layout.filename,
    )
    page_width = doc.width

    story = [_paragraph(layout.business_name, BUSINESS_STYLE)]
    story.extend(_paragraph(line, CENTER_STYLE) for line in layout.header_lines)
    story.append(Spacer(1, 4 * mm))
    story.append(HRFlowable(width="100%", thickness=0.5, color=colors.black))
    story.append(Spacer(1, 4 * mm))
    story.append(_paragraph(layout.title, TITLE_STYLE))
    story.append(Spacer(1, 4 * mm))

    left = [Paragraph("<b>Bill To:</b>", BODY_STYLE)] + [_paragraph(line, BODY_STYLE) for line in layout.bill_to]
    right = [Paragraph("<b>Invoice Details:</b>", BODY_STYLE)] + [_paragraph(line, BODY_STYLE) for line in layout.details]
    parties = Table([[left, right]], colWidths=[page_width * 0.55, page_width * 0.45])
    parties.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP"), ("LEFTPADDING", (0, 0), (-1, -1), 0)]))
    story.append(parties)
    story.append(Spacer(1, 8 * mm))

    data = [list(layout.table_header)]
    for row in layout.rows:
        data.append([row[0], _paragraph(row[1], CELL_STYLE), *row[2:]])
    items = Table(data, colWidths=COLUMN_WIDTHS, repeatRows=1)
    items.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
                ("ALIGN", (2, 0), (2, -1), "CENTER"),
                ("ALIGN", (3, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    story.append(items)
    story.append(Spacer(1, 8 * mm))

    summary_data = []
    for row in layout.summary:
        style = TOTAL_STYLE if row.bold else RIGHT_STYLE
        summary_data.append([_paragraph(row.label, style), _paragraph(row.value, style)])
    summary = Table(summary_data, colWidths=[35 * mm, 35 * mm], hAlign="RIGHT")
    story.append(summary)

    def _draw_footer(canvas, document):
        canvas.saveState()
        canvas.setFont("Helvetica-Oblique", 9)
        canvas.drawCentredString(A4[0] / 2, 12 * mm, layout.footer)
        canvas.restoreState()

    doc.build(story, onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    return buffer.getvalue()


def render_invoice(order, lines, customer, profile) -> bytes:
    return build_invoice_pdf(compose_invoice(order, lines, customer, profile))
