"""
Generate timesheet PDFs using reportlab.

Three snapshots are produced over a timesheet's life:
  - unsigned: at submission, hours table only
  - signed:   after company approval, with the company signature block
  - final:    after manager approval, with both signature blocks
"""
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, Image
from xml.sax.saxutils import escape

from crewsheet.exceptions import DependencyFailure
from crewsheet.models.enums import PdfKind, ROLE_ORDER, RoleCode, role_name
from crewsheet.services.signatures import Signature, parse_signature
from crewsheet.services.time_calc import worked_hours

logger = logging.getLogger(__name__)

MAX_ENTRIES_PER_WORKER = 3


@dataclass(frozen=True)
class WorkerRow:
    name: str
    role_code: str
    entries: list[tuple[Optional[datetime], Optional[datetime]]]
    hours: Decimal


@dataclass(frozen=True)
class SignatureBlock:
    label: str
    signature: Signature
    signed_at: Optional[datetime]


@dataclass(frozen=True)
class TimesheetDocument:
    timesheet_id: str
    kind: PdfKind
    company_name: str
    job_name: str
    shift_date: str
    shift_window: str
    location: str
    rows: list[WorkerRow] = field(default_factory=list)
    signatures: list[SignatureBlock] = field(default_factory=list)

    @property
    def total_hours(self) -> Decimal:
        return sum((r.hours for r in self.rows), Decimal("0.00"))


def _fmt_time(value: Optional[datetime]) -> str:
    if value is None:
        return "--:--"
    return value.strftime("%I:%M %p").lstrip("0")


def _fmt_stamp(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def _role_rank(code: str) -> int:
    try:
        return ROLE_ORDER.index(RoleCode(code))
    except ValueError:
        return len(ROLE_ORDER)


def build_timesheet_document(
    timesheet,
    kind: PdfKind,
    company_signature: Optional[str] = None,
    company_approved_at: Optional[datetime] = None,
    manager_signature: Optional[str] = None,
    manager_approved_at: Optional[datetime] = None,
) -> TimesheetDocument:
    """
    Snapshot a timesheet (and its shift) into a render-ready document.

    Signature arguments override what is stored on the row, so the PDF for
    a pending approval can be rendered before that approval is written.
    """
    shift = timesheet.shift
    job = shift.job
    company = job.company

    rows = []
    for assignment in shift.assigned_personnel:
        if assignment.user_id is None:
            continue
        entries = sorted(assignment.time_entries, key=lambda e: e.entry_number or 1)
        rows.append(WorkerRow(
            name=assignment.user.name if assignment.user else str(assignment.user_id),
            role_code=assignment.role_code,
            entries=[(e.clock_in, e.clock_out) for e in entries],
            hours=worked_hours(entries),
        ))
    rows.sort(key=lambda r: (_role_rank(r.role_code), r.name.lower()))

    blocks = []
    company_sig = company_signature or timesheet.company_signature
    if kind in (PdfKind.signed, PdfKind.final) and company_sig:
        blocks.append(SignatureBlock(
            label="Company Approval",
            signature=parse_signature(company_sig),
            signed_at=company_approved_at or timesheet.company_approved_at,
        ))
    manager_sig = manager_signature or timesheet.manager_signature
    if kind == PdfKind.final and manager_sig:
        blocks.append(SignatureBlock(
            label="Manager Approval",
            signature=parse_signature(manager_sig),
            signed_at=manager_approved_at or timesheet.manager_approved_at,
        ))

    return TimesheetDocument(
        timesheet_id=str(timesheet.id),
        kind=kind,
        company_name=company.name if company else "",
        job_name=job.name,
        shift_date=shift.date.strftime("%A, %B %d, %Y") if shift.date else "",
        shift_window=f"{_fmt_time(shift.start_time)} - {_fmt_time(shift.end_time)}",
        location=shift.location or job.location or "",
        rows=rows,
        signatures=blocks,
    )


def render_timesheet_pdf(document: TimesheetDocument) -> bytes:
    """Render the document to PDF bytes. Any reportlab failure is a DependencyFailure."""
    try:
        return _render(document)
    except DependencyFailure:
        raise
    except Exception as e:
        logger.exception("Timesheet PDF generation failed for %s (%s)", document.timesheet_id, document.kind.value)
        raise DependencyFailure("Timesheet PDF generation failed", dependency="pdf") from e


def _render(document: TimesheetDocument) -> bytes:
    buf = io.BytesIO()
    pagesize = landscape(A4)
    doc = SimpleDocTemplate(
        buf,
        pagesize=pagesize,
        leftMargin=15*mm,
        rightMargin=15*mm,
        topMargin=12*mm,
        bottomMargin=12*mm,
        title=f"Timesheet {document.timesheet_id}",
    )

    styles = getSampleStyleSheet()
    bold = ParagraphStyle("bold", parent=styles["Normal"], fontName="Helvetica-Bold", fontSize=10)
    normal = ParagraphStyle("normal", parent=styles["Normal"], fontName="Helvetica", fontSize=9)
    small = ParagraphStyle("small", parent=styles["Normal"], fontName="Helvetica", fontSize=8, textColor=colors.grey)
    title_style = ParagraphStyle("title", parent=styles["Normal"], fontName="Helvetica-Bold", fontSize=16, alignment=TA_CENTER)
    company_style = ParagraphStyle("company", parent=styles["Normal"], fontName="Helvetica-Bold", fontSize=13, alignment=TA_CENTER)
    right_bold = ParagraphStyle("right_bold", parent=styles["Normal"], fontName="Helvetica-Bold", fontSize=9, alignment=TA_RIGHT)
    signature_style = ParagraphStyle("signature", parent=styles["Normal"], fontName="Helvetica-Oblique", fontSize=14)

    page_w = pagesize[0] - 30*mm
    header_bg = colors.HexColor("#2c3e50")
    total_bg = colors.HexColor("#d5e8d4")

    story = []

    # ── Header ────────────────────────────────────────────────────────────
    story.append(Paragraph(escape(document.company_name), company_style))
    story.append(Spacer(1, 2*mm))
    heading = "TIMESHEET" if document.kind == PdfKind.unsigned else "TIMESHEET (SIGNED)"
    story.append(Paragraph(heading, title_style))
    story.append(Spacer(1, 4*mm))

    details = [
        [Paragraph("Job:", normal), Paragraph(escape(document.job_name), bold),
         Paragraph("Date:", normal), Paragraph(escape(document.shift_date), bold)],
        [Paragraph("Location:", normal), Paragraph(escape(document.location or "-"), normal),
         Paragraph("Shift:", normal), Paragraph(escape(document.shift_window), normal)],
    ]
    details_table = Table(details, colWidths=[page_w * 0.12, page_w * 0.38, page_w * 0.12, page_w * 0.38])
    details_table.setStyle(TableStyle([
        ("BOX", (0, 0), (-1, -1), 0.5, colors.HexColor("#cccccc")),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    story.append(details_table)
    story.append(Spacer(1, 5*mm))

    # ── Hours table ──────────────────────────────────────────────────────
    header = [Paragraph("<font color='white'><b>Worker</b></font>", bold),
              Paragraph("<font color='white'><b>Role</b></font>", bold)]
    for n in range(1, MAX_ENTRIES_PER_WORKER + 1):
        header.append(Paragraph(f"<font color='white'><b>In {n}</b></font>", bold))
        header.append(Paragraph(f"<font color='white'><b>Out {n}</b></font>", bold))
    header.append(Paragraph("<font color='white'><b>Hours</b></font>", right_bold))

    rows = [header]
    for row in document.rows:
        cells = [Paragraph(escape(row.name), normal), Paragraph(escape(role_name(row.role_code)), normal)]
        for idx in range(MAX_ENTRIES_PER_WORKER):
            if idx < len(row.entries):
                clock_in, clock_out = row.entries[idx]
                cells += [Paragraph(_fmt_time(clock_in), normal), Paragraph(_fmt_time(clock_out), normal)]
            else:
                cells += ["", ""]
        cells.append(Paragraph(f"{row.hours:.2f}", right_bold))
        rows.append(cells)

    total_cells = [Paragraph("<b>Total Hours</b>", bold)] + [""] * (1 + 2 * MAX_ENTRIES_PER_WORKER)
    total_cells.append(Paragraph(f"<b>{document.total_hours:.2f}</b>", right_bold))
    rows.append(total_cells)

    entry_w = page_w * 0.08
    col_widths = [page_w * 0.2, page_w * 0.14] + [entry_w] * (2 * MAX_ENTRIES_PER_WORKER) + [page_w * 0.18]
    tbl = Table(rows, colWidths=col_widths, repeatRows=1)
    total_idx = len(rows) - 1
    tbl.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), header_bg),
        ("BACKGROUND", (0, total_idx), (-1, total_idx), total_bg),
        ("SPAN", (0, total_idx), (-2, total_idx)),
        ("ROWBACKGROUNDS", (0, 1), (-1, total_idx - 1), [colors.white, colors.HexColor("#f5f5f5")]),
        ("BOX", (0, 0), (-1, -1), 0.5, colors.HexColor("#cccccc")),
        ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#dddddd")),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    story.append(tbl)
    story.append(Spacer(1, 8*mm))

    # ── Signatures ───────────────────────────────────────────────────────
    for block in document.signatures:
        if block.signature.is_image:
            mark = Image(io.BytesIO(block.signature.image_bytes), width=60*mm, height=20*mm, kind="proportional")
        else:
            mark = Paragraph(escape(block.signature.text), signature_style)
        sig_table = Table(
            [[Paragraph(f"<b>{block.label}</b>", bold), mark,
              Paragraph(f"Signed: {_fmt_stamp(block.signed_at)}", small)]],
            colWidths=[page_w * 0.2, page_w * 0.5, page_w * 0.3],
        )
        sig_table.setStyle(TableStyle([
            ("LINEBELOW", (1, 0), (1, 0), 0.5, colors.black),
            ("VALIGN", (0, 0), (-1, -1), "BOTTOM"),
        ]))
        story.append(sig_table)
        story.append(Spacer(1, 4*mm))

    # ── Footer ────────────────────────────────────────────────────────────
    story.append(Paragraph(f"Timesheet ID: {escape(document.timesheet_id)}", small))

    doc.build(story)
    return buf.getvalue()
