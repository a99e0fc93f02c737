"""
Invoice, quote, and statement-of-account PDF rendering.

Builds A4 documents with reportlab platypus: header, client block, a line
table, and totals.
"""

import io
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from clinicops.db.enums import InvoiceType
from clinicops.db.models import Invoice
from clinicops.schemas.account import StatementRead
from clinicops.services.account_service import format_service_dates

ACCENT = colors.HexColor("#1e293b")
MUTED = colors.HexColor("#64748b")
GRID = colors.HexColor("#e2e8f0")


def _money(value: float, currency: str) -> str:
    return f"{currency} {value:,.2f}"


def _text(value: str | None) -> str:
    return escape(value or "").replace("\n", "<br/>")


def create_invoice_pdf(invoice: Invoice, org_name: str = "Organization") -> bytes:
    """
    Render an invoice or quote.

    Args:
        invoice: Invoice with items loaded
        org_name: Shown in the header

    Returns:
        PDF bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=50,
        leftMargin=50,
        topMargin=50,
        bottomMargin=50,
        title=invoice.invoice_number,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "InvoiceTitle",
        parent=styles["Heading1"],
        fontSize=22,
        spaceAfter=6,
        textColor=ACCENT,
    )
    muted_style = ParagraphStyle(
        "Muted",
        parent=styles["Normal"],
        fontSize=9,
        textColor=MUTED,
    )
    normal_style = styles["Normal"]

    label = "Quote" if invoice.invoice_type == InvoiceType.QUOTE.value else "Invoice"
    currency = invoice.currency

    elements = []
    elements.append(Paragraph(f"{_text(org_name)} {label}", title_style))
    meta = f"{label} #: {_text(invoice.invoice_number)} | Issued: {invoice.issue_date.isoformat()}"
    if invoice.due_date:
        meta += f" | Due: {invoice.due_date.isoformat()}"
    meta += f" | Status: {_text(invoice.status)}"
    elements.append(Paragraph(meta, muted_style))
    elements.append(Spacer(1, 16))

    # Bill to
    bill_to = ["<b>Bill to</b>", _text(invoice.client_name) or "-"]
    if invoice.client_email:
        bill_to.append(_text(invoice.client_email))
    if invoice.client_address:
        bill_to.append(_text(invoice.client_address))
    elements.append(Paragraph("<br/>".join(bill_to), normal_style))
    elements.append(Spacer(1, 16))

    # Line items
    rows = [["Description", "Qty", "Unit price", "Amount"]]
    for item in invoice.items:
        rows.append(
            [
                Paragraph(_text(item.description), normal_style),
                f"{item.quantity:g}",
                _money(item.unit_price, currency),
                _money(item.amount, currency),
            ]
        )
    items_table = Table(rows, colWidths=[3.2 * inch, 0.7 * inch, 1.3 * inch, 1.3 * inch])
    items_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), ACCENT),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("GRID", (0, 0), (-1, -1), 0.5, GRID),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f8fafc")]),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    elements.append(items_table)
    elements.append(Spacer(1, 12))

    # Totals
    totals = [
        ["Subtotal", _money(invoice.subtotal, currency)],
        ["Discount", _money(invoice.discount, currency)],
        [f"Tax ({invoice.tax_rate:g}%)", _money(invoice.tax_amount, currency)],
        ["Total", _money(invoice.total, currency)],
    ]
    totals_table = Table(totals, colWidths=[1.5 * inch, 1.5 * inch], hAlign="RIGHT")
    totals_table.setStyle(
        TableStyle(
            [
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("LINEABOVE", (0, -1), (-1, -1), 1, ACCENT),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    elements.append(totals_table)

    if invoice.notes:
        elements.append(Spacer(1, 20))
        elements.append(Paragraph("<b>Notes</b>", normal_style))
        elements.append(Paragraph(_text(invoice.notes), muted_style))

    doc.build(elements)
    return buffer.getvalue()


def _line_table_style() -> TableStyle:
    return TableStyle(
        [
            ("BACKGROUND", (0, 0), (-1, 0), ACCENT),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("GRID", (0, 0), (-1, -1), 0.5, GRID),
            ("TOPPADDING", (0, 0), (-1, -1), 6),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ]
    )


def create_statement_pdf(statement: StatementRead, org_name: str = "Organization") -> bytes:
    """Fee breakdown followed by the ad-hoc requirements table."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=50,
        leftMargin=50,
        topMargin=50,
        bottomMargin=50,
        title=f"Statement of Account - {statement.client.name}",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "StatementTitle",
        parent=styles["Heading1"],
        fontSize=20,
        spaceAfter=6,
        textColor=ACCENT,
    )
    muted_style = ParagraphStyle("Muted", parent=styles["Normal"], fontSize=9, textColor=MUTED)
    normal_style = styles["Normal"]
    currency = statement.currency
    fees = statement.fees

    elements = [
        Paragraph(f"{_text(org_name)} Statement of Account", title_style),
        Paragraph(
            f"Client: {_text(statement.client.name)} | Period: {_text(statement.period)}"
            f" | Generated: {statement.generated_at.date().isoformat()}",
            muted_style,
        ),
        Spacer(1, 16),
        Paragraph("<b>Service breakdown</b>", normal_style),
        Spacer(1, 6),
    ]

    breakdown = Table(
        [
            ["Service", "Amount"],
            ["Retainer fee", _money(fees.retainer, currency)],
            ["Service based fee", _money(fees.service_based, currency)],
            ["Ad-hoc total", _money(fees.adhoc, currency)],
            ["Total", _money(fees.total, currency)],
        ],
        colWidths=[3.5 * inch, 1.8 * inch],
    )
    breakdown_style = _line_table_style()
    breakdown_style.add("ALIGN", (1, 0), (1, -1), "RIGHT")
    breakdown_style.add("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold")
    breakdown_style.add("LINEABOVE", (0, -1), (-1, -1), 1, ACCENT)
    breakdown.setStyle(breakdown_style)
    elements.append(breakdown)
    elements.append(Spacer(1, 20))

    elements.append(Paragraph("<b>Ad-hoc requirements</b>", normal_style))
    elements.append(Spacer(1, 6))
    if statement.adhoc_items:
        rows = [["Requested", "Description", "Service dates", "Amount", "Status"]]
        for item in statement.adhoc_items:
            rows.append(
                [
                    item.date_requested.isoformat(),
                    Paragraph(_text(item.description), normal_style),
                    format_service_dates(item),
                    _money(item.amount, currency),
                    item.status.value,
                ]
            )
        adhoc_table = Table(
            rows,
            colWidths=[0.9 * inch, 2.3 * inch, 1.5 * inch, 1.1 * inch, 0.8 * inch],
            repeatRows=1,
        )
        adhoc_style = _line_table_style()
        adhoc_style.add("ALIGN", (3, 0), (3, -1), "RIGHT")
        adhoc_table.setStyle(adhoc_style)
        elements.append(adhoc_table)
    else:
        elements.append(Paragraph("No ad-hoc requirements.", muted_style))

    doc.build(elements)
    return buffer.getvalue()
