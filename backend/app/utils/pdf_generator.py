"""
PDF export of persisted rental tax statements using ReportLab.
Produces a print-ready worksheet mirroring the T776 / TP128 line layout.
"""
import io
from datetime import date
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)


HEADER_COLOR = colors.HexColor("#26374a")
LIGHT_GRAY = colors.HexColor("#f5f5f5")
DARK_GRAY = colors.HexColor("#333333")


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name="FormTitle",
        fontSize=14,
        fontName="Helvetica-Bold",
        textColor=colors.white,
        spaceAfter=6,
    ))
    styles.add(ParagraphStyle(
        name="SectionTitle",
        fontSize=10,
        fontName="Helvetica-Bold",
        textColor=HEADER_COLOR,
        spaceBefore=8,
        spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        name="FieldLabel",
        fontSize=8,
        fontName="Helvetica",
        textColor=DARK_GRAY,
    ))
    styles.add(ParagraphStyle(
        name="Disclaimer",
        fontSize=7,
        fontName="Helvetica-Oblique",
        textColor=colors.gray,
    ))
    return styles


def _money(value) -> str:
    return f"{float(value or 0):,.2f} $"


def _header_table(form_type: str, year: int, styles) -> Table:
    data = [
        [
            Paragraph(f"<b>{form_type}</b>", styles["FormTitle"]),
            Paragraph(f"Tax year {year}<br/>Rental income statement", styles["FieldLabel"]),
        ]
    ]
    t = Table(data, colWidths=[10 * cm, 8 * cm])
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 12),
        ("TOPPADDING", (0, 0), (-1, 0), 8),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("LEFTPADDING", (0, 0), (-1, 0), 6),
    ]))
    return t


def _kv_table(rows: list[tuple[str, str]], styles) -> Table:
    """Render a list of (label, value) pairs as a two-column table."""
    data = [[Paragraph(escape(str(k)), styles["FieldLabel"]), Paragraph(escape(str(v)), styles["FieldLabel"])]
            for k, v in rows]
    t = Table(data, colWidths=[12 * cm, 6 * cm])
    t.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ("ROWBACKGROUNDS", (0, 0), (-1, -1), [colors.white, LIGHT_GRAY]),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
    ]))
    return t


def _cca_table(lines: list[dict]) -> Table:
    headers = ["Class", "Opening UCC", "Additions", "Dispositions", "Rate", "CCA", "Closing UCC"]
    rows = [headers]
    for line in lines:
        rows.append([
            line.get("class_code", ""),
            _money(line.get("opening_ucc")),
            _money(line.get("additions")),
            _money(line.get("dispositions")),
            f"{float(line.get('rate') or 0):g} %",
            _money(line.get("amount")),
            _money(line.get("closing_ucc")),
        ])
    rows.append(["TOTAL", "", "", "", "", _money(sum(float(l.get("amount") or 0) for l in lines)), ""])

    t = Table(rows, colWidths=[1.6 * cm, 2.8 * cm, 2.5 * cm, 2.5 * cm, 1.6 * cm, 2.5 * cm, 2.8 * cm])
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ("ROWBACKGROUNDS", (1, 1), (-1, -1), [colors.white, LIGHT_GRAY]),
        ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#e8e8e8")),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
    ]))
    return t


def generate_rental_statement_pdf(statement_data: dict) -> bytes:
    """Render a serialized statement (see services.rental_tax.serialize_statement)."""
    payload = statement_data.get("payload") or {}
    income = payload.get("income") or {}
    labels = payload.get("income_labels") or {}
    totals = payload.get("totals") or {}

    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=LETTER, rightMargin=1.5 * cm, leftMargin=1.5 * cm,
                            topMargin=2 * cm, bottomMargin=2 * cm)
    styles = _styles()

    identification = [
        (m.get("label", m.get("key", "")), "" if m.get("value") is None else m["value"])
        for m in payload.get("metadata", [])
    ]
    if not identification:
        identification = [
            ("Property", statement_data.get("property_name") or "All properties"),
            ("Address", statement_data.get("property_address") or ""),
        ]

    expense_rows = []
    for bucket in payload.get("expenses", []):
        line = f"[{bucket['line']}] " if bucket.get("line") else ""
        expense_rows.append((f"{line}{bucket.get('label', bucket.get('key'))}", _money(bucket.get("amount"))))

    story = [
        _header_table(statement_data.get("form_type", ""), statement_data.get("tax_year", ""), styles),
        Spacer(1, 0.4 * cm),
        Paragraph("IDENTIFICATION", styles["SectionTitle"]),
        _kv_table(identification, styles),
        Spacer(1, 0.3 * cm),
        Paragraph("INCOME", styles["SectionTitle"]),
        _kv_table([
            (labels.get("gross_rents", "Gross rents"), _money(income.get("gross_rents"))),
            (labels.get("other_income", "Other income"), _money(income.get("other_income"))),
            (labels.get("total_income", "Total income"), _money(income.get("total_income"))),
        ], styles),
        Spacer(1, 0.3 * cm),
        Paragraph("EXPENSES", styles["SectionTitle"]),
    ]
    if expense_rows:
        story.append(_kv_table(expense_rows, styles))
    else:
        story.append(Paragraph("No expenses declared.", styles["FieldLabel"]))

    cca_lines = payload.get("cca") or []
    if cca_lines:
        story += [
            Spacer(1, 0.3 * cm),
            Paragraph("CAPITAL COST ALLOWANCE", styles["SectionTitle"]),
            _cca_table(cca_lines),
        ]

    story += [
        Spacer(1, 0.3 * cm),
        Paragraph("TOTALS", styles["SectionTitle"]),
        _kv_table([
            ("Total expenses", _money(totals.get("total_expenses"))),
            ("Net rental income (loss)", _money(totals.get("net_income"))),
        ], styles),
    ]
    computed = statement_data.get("computed") or {}
    if computed:
        story += [
            Spacer(1, 0.3 * cm),
            Paragraph("DECLARED VS COMPUTED FROM RECORDS", styles["SectionTitle"]),
            _kv_table([
                ("Total income", f"{_money(income.get('total_income'))} / {_money(computed.get('total_income'))}"),
                ("Total expenses", f"{_money(totals.get('total_expenses'))} / {_money(computed.get('total_expenses'))}"),
                ("Net income", f"{_money(totals.get('net_income'))} / {_money(computed.get('net_income'))}"),
            ], styles),
        ]
    if statement_data.get("notes"):
        story += [
            Spacer(1, 0.3 * cm),
            Paragraph("NOTES", styles["SectionTitle"]),
            Paragraph(escape(str(statement_data["notes"])), styles["FieldLabel"]),
        ]
    story += [
        Spacer(1, 0.5 * cm),
        Paragraph(
            f"Worksheet generated on {date.today().isoformat()}. "
            "For reference only, not a substitute for professional tax advice.",
            styles["Disclaimer"],
        ),
    ]
    doc.build(story)
    return buf.getvalue()
