# raktsetu/exports.py
"""Donation history downloads (csv, xlsx, pdf) for the donor's own records."""
import csv
import io

from django.http import HttpResponse
from django.utils import timezone

EXPORT_FORMATS = ("csv", "xlsx", "pdf")

HISTORY_HEADERS = ["Completed at", "Request", "Blood type", "Hospital", "Urgency", "Arrival (min)", "Tokens"]

CONTENT_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}

BRAND_RED = "C81D25"


def history_rows(records):
    rows = []
    for r in records:
        req = r.blood_request
        rows.append([
            timezone.localtime(r.completed_at).strftime("%Y-%m-%d %H:%M"),
            req.pk,
            req.blood_type,
            req.hospital_name,
            req.get_urgency_display(),
            r.arrival_latency_minutes,
            r.tokens_awarded,
        ])
    return rows


def _summary(profile, rows):
    return [
        ("Donor", profile.name),
        ("Title", profile.title),
        ("Donations", len(rows)),
        ("Tokens earned", sum(row[-1] for row in rows)),
    ]


def _write_csv(profile, rows):
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(HISTORY_HEADERS)
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buf.getvalue().encode("utf-8")


def _write_xlsx(profile, rows):
    from openpyxl import Workbook
    from openpyxl.styles import Font, PatternFill

    wb = Workbook()
    ws = wb.active
    ws.title = "donations"
    ws.append(HISTORY_HEADERS)
    header_fill = PatternFill("solid", fgColor=BRAND_RED)
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = header_fill
    for row in rows:
        ws.append(row)
    ws.freeze_panes = "A2"
    for col, width in zip("ABCDEFG", (18, 10, 11, 32, 11, 14, 9)):
        ws.column_dimensions[col].width = width

    summary = wb.create_sheet("summary")
    for label, value in _summary(profile, rows):
        summary.append([label, value])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _write_pdf(profile, rows):
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), title="Donation history")
    styles = getSampleStyleSheet()
    summary = ", ".join(f"{label}: {value}" for label, value in _summary(profile, rows))
    elems = [
        Paragraph("Donation history", styles["Title"]),
        Paragraph(summary, styles["Normal"]),
        Spacer(1, 12),
    ]

    data = [HISTORY_HEADERS] + [["-" if cell is None else str(cell) for cell in row] for row in rows]
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(f"#{BRAND_RED}")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
    ]))
    elems.append(table)
    doc.build(elems)
    return buf.getvalue()


WRITERS = {
    "csv": _write_csv,
    "xlsx": _write_xlsx,
    "pdf": _write_pdf,
}


def export_history(profile, records, fmt):
    """Render the donor's history as an attachment; `fmt` must be one of EXPORT_FORMATS."""
    rows = history_rows(records)
    stamp = timezone.localdate().strftime("%Y%m%d")
    resp = HttpResponse(WRITERS[fmt](profile, rows), content_type=CONTENT_TYPES[fmt])
    resp["Content-Disposition"] = f'attachment; filename="donations_{profile.user_id}_{stamp}.{fmt}"'
    return resp
