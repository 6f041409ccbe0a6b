"""
Per-document-type layouts built on ``PdfDocument``.

Job documents (SWMS, variations, extensions of time, progress claims,
handover and maintenance notes) render confirmed document text; the job
pack renders the quote, scope and materials of one job.

License: MIT
"""

import json
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple, get_args

from tradepdf.formatting import (
    ContentSection, format_currency, format_date, format_datetime, format_whole_currency, parse_amount,
    parse_structured_content, round_half_up,
)
from tradepdf.models import DocumentType, JobDocumentRequest, JobPackRequest, Recipient
from tradepdf.renderer import PdfDocument
from tradepdf.styles import LayoutConfig

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = get_args(DocumentType)
DOCUMENT_LABELS: Dict[str, str] = {t: t.replace("_", " ") for t in DOCUMENT_TYPES}

# Stored totals may differ from the summed line totals by rounding only
MATERIALS_TOLERANCE = 0.01

AMOUNT = r"(\d[\d,]*(?:\.\d+)?)"
CLAIM_TOTAL = re.compile(r"\btotal[:\s]*\$?" + AMOUNT, re.IGNORECASE)
CLAIM_GST = re.compile(r"\bgst[:\s]*\$?" + AMOUNT, re.IGNORECASE)
CLAIM_SUBTOTAL = re.compile(r"\bsubtotal[:\s]*\$?" + AMOUNT, re.IGNORECASE)
DOLLAR_AMOUNT = re.compile(r"\$\d[\d,]*(?:\.\d+)?")


class MaterialsMismatchError(ValueError):
    """Stored materials total does not match the sum of line totals."""

    def __init__(self, line_sum: float, stored_total: float):
        self.line_sum = line_sum
        self.stored_total = stored_total
        self.difference = round(stored_total - line_sum, 2)
        super().__init__(
            f"Materials totals do not reconcile: lines sum to {format_currency(line_sum)} "
            f"but the stored total is {format_currency(stored_total)}. "
            f"Recalculate materials before exporting."
        )


def normalize_document_type(doc_type: str) -> str:
    """Upper-case a document type; raises ValueError for unknown types."""
    normalized = (doc_type or "").strip().upper().replace("-", "_")
    if normalized not in DOCUMENT_LABELS:
        raise ValueError(f"Invalid document type '{doc_type}'. Expected one of: {', '.join(DOCUMENT_TYPES)}")
    return normalized


def document_number(doc_type: str, job_id: str) -> str:
    """``PROGRESS_CLAIM-3F2A9C1E``"""
    return f"{doc_type}-{job_id[:8].upper()}"


def document_filename(doc_type: str, record_id: str = "") -> str:
    """``progress_claim-3f2a9c1e.pdf``; the id part is dropped when empty."""
    stem = re.sub(r"[^a-z0-9_-]+", "-", doc_type.lower()).strip("-") or "document"
    record = re.sub(r"[^A-Za-z0-9_-]+", "", record_id[:8])
    return f"{stem}-{record}.pdf" if record else f"{stem}.pdf"


def job_pack_filename(job_id: str) -> str:
    return f"job-pack-{job_id[:8]}.pdf"


def _match_amount(pattern: re.Pattern, content: str) -> Optional[float]:
    match = pattern.search(content)
    return float(match.group(1).replace(",", "")) if match else None


def extract_claim_totals(content: str) -> Optional[Tuple[float, float, float]]:
    """
    Pull subtotal, GST and total out of progress claim text.

    A missing GST or subtotal is derived from the total (1/11 and 10/11 of
    a GST-inclusive amount). Values are rounded to whole dollars.

    Returns:
        (subtotal, gst, total), or None when no positive total is found
    """
    total = _match_amount(CLAIM_TOTAL, content) or 0
    if total <= 0:
        return None

    gst = _match_amount(CLAIM_GST, content)
    subtotal = _match_amount(CLAIM_SUBTOTAL, content)
    if gst is None:
        gst = total * 0.091
    if subtotal is None:
        subtotal = total * 0.909

    return (
        float(round_half_up(subtotal)),
        float(round_half_up(gst)),
        float(round_half_up(total)),
    )


def _section(quote: dict, key: str) -> dict:
    """Nested quote object, or an empty dict when it is missing or not an object."""
    value = quote.get(key)
    return value if isinstance(value, dict) else {}


def estimate_range(quote_json: Optional[str]) -> str:
    """
    Derive a display range from a quote's total estimate.

    The base is the quoted total (the midpoint when a real range is given),
    falling back to labour plus materials. The range is 5% below to 10% above
    the base, rounded to the nearest $10; a base too small for that to give
    a proper range uses base +/- $50.

    Returns:
        ``"$1,280 – $1,480"`` style text, or ``"N/A"``
    """
    if not quote_json:
        return "N/A"
    try:
        quote = json.loads(quote_json)
    except ValueError as e:
        logger.warning(f"Could not parse quote JSON for estimate range: {e}")
        return "N/A"
    if not isinstance(quote, dict):
        return "N/A"

    estimate_text = _section(quote, "totalEstimate").get("totalJobEstimate")
    if not estimate_text or not isinstance(estimate_text, str):
        return "N/A"

    amounts = DOLLAR_AMOUNT.findall(estimate_text)
    if amounts:
        first = parse_amount(amounts[0])
        second = parse_amount(amounts[1]) if len(amounts) > 1 else None
        if first is not None and second is not None and abs(first - second) > 1:
            base = (first + second) / 2
        else:
            base = first
    else:
        base = parse_amount(estimate_text)

    if base is None:
        labour = parse_amount(_section(quote, "labour").get("total")) or 0
        materials = parse_amount(_section(quote, "materials").get("totalMaterialsCost")) or 0
        if labour > 0 or materials > 0:
            base = labour + materials

    if base is None or base <= 0:
        return "N/A"

    low = int(round_half_up(base * 0.95 / 10)) * 10
    high = int(round_half_up(base * 1.10 / 10)) * 10
    if low >= high:
        low = max(0, int(round_half_up(base - 50)))
        high = int(round_half_up(base + 50))

    return f"{format_whole_currency(low)} – {format_whole_currency(high)}"


def _render_sections(pdf: PdfDocument, sections: List[ContentSection]):
    for section in sections:
        if section.kind == "heading":
            pdf.add_section_heading(section.content)
        elif section.kind == "list":
            if section.ordered:
                pdf.add_numbered_list(section.items)
            else:
                pdf.add_bullet_list(section.items)
        else:
            pdf.add_paragraph(section.content)


def render_job_document(doc_type: str, request: JobDocumentRequest,
                        config: Optional[LayoutConfig] = None,
                        default_issuer: str = "OMNEXORA") -> PdfDocument:
    """
    Lay out one confirmed job document.

    Args:
        doc_type: Document type, any case (``progress_claim``)
        request: Job, document text, issuer and header layout
        config: Layout configuration
        default_issuer: Footer issuer when the business has no legal name

    Returns:
        Finalized engine

    Raises:
        ValueError: Unknown document type
    """
    doc_type = normalize_document_type(doc_type)
    job = request.job
    issuer = request.issuer
    label = DOCUMENT_LABELS[doc_type]
    number = document_number(doc_type, job.id)
    generated_at = request.generated_at or datetime.now()

    has_identity = bool(issuer and issuer.legal_name)
    issuer_name = issuer.legal_name if has_identity else default_issuer

    pdf = PdfDocument(config, title=f"{label} {number}", author=issuer.legal_name if issuer else None)

    if request.layout == "premium":
        pdf.add_premium_header(
            label,
            document_number=number,
            document_date=format_date(generated_at),
            issuer=issuer,
            recipient=Recipient(name=job.client_name, address=job.address) if job.client_name else None,
            job_reference=job.id[:8].upper(),
            project_name=job.title,
            project_address=job.address,
        )
        pdf.add_compliance_reference(issuer.state if issuer else None)
        if not has_identity:
            pdf.add_ai_warning()
        pdf.add_section_heading(label)
    else:
        if has_identity:
            pdf.add_business_header(issuer)
        else:
            pdf.add_branded_header(label)

        pdf.add_title(label)
        pdf.add_metadata([
            ("Document No.", number),
            ("Date", format_date(generated_at)),
            ("Client", job.client_name),
            ("Project", job.title),
            ("Site Address", job.address),
        ])

    sections = parse_structured_content(request.content)
    _render_sections(pdf, sections)

    if doc_type == "PROGRESS_CLAIM":
        totals = extract_claim_totals(request.content)
        if totals:
            subtotal, gst, total = totals
            pdf.add_totals_box(total, subtotal=subtotal, gst=gst)

    pdf.advance(4)
    pdf.add_signature_block(
        contractor_name=issuer.legal_name if issuer else None,
        client_name=job.client_name,
        contractor_label="CONTRACTOR/TRADE",
        client_label="CLIENT/PRINCIPAL",
    )

    if request.layout == "premium":
        pdf.add_premium_footer(issuer_name, number, generated_at=generated_at)
    else:
        pdf.add_issued_footer(issuer_name, number, generated_at=generated_at)

    logger.info(f"Laid out {doc_type} for job {job.id[:8]}: {len(sections)} sections, {pdf.page_count} page(s)")
    return pdf


def _split_lines(text: Optional[str]) -> List[str]:
    return [line for line in (text or "").split("\n") if line.strip()]


def _add_pricing(pdf: PdfDocument, quote_json: str):
    try:
        quote = json.loads(quote_json)
    except ValueError as e:
        logger.warning(f"Skipping pricing section, quote JSON is invalid: {e}")
        return
    if not isinstance(quote, dict):
        return

    pdf.add_section_heading("Pricing")

    labour = quote.get("labour")
    if isinstance(labour, dict):
        pdf.add_subheading("Labour")
        if labour.get("description"):
            pdf.add_paragraph(labour["description"])
        details = [
            f"{name}: {labour[key]}"
            for name, key in (("Hours", "hours"), ("Rate", "ratePerHour"), ("Total", "total"))
            if labour.get(key)
        ]
        if details:
            pdf.add_paragraph("  |  ".join(details))

    materials = quote.get("materials")
    if isinstance(materials, dict):
        pdf.add_subheading("Materials")
        if materials.get("description"):
            pdf.add_paragraph(materials["description"])
        if materials.get("totalMaterialsCost"):
            pdf.add_paragraph(f"Total: {materials['totalMaterialsCost']}")

    if quote.get("totalEstimate"):
        pdf.add_highlight_box("Total Estimate", estimate_range(quote_json))


def _add_materials(pdf: PdfDocument, request: JobPackRequest):
    job = request.job

    if request.materials:
        pdf.add_section_heading("Materials")
        rows = [
            [m.name, f"{m.quantity:g}", m.unit_label, format_currency(m.line_total or 0)]
            for m in request.materials
        ]
        pdf.add_table(["Material", "Qty", "Unit", "Total"], rows, col_widths=[80, 25, 30, 35])
        line_sum = sum(m.line_total or 0 for m in request.materials)
        final_total = job.materials_total if job.materials_total is not None else line_sum
        pdf.add_highlight_box("Materials Total", format_currency(final_total))

    elif job.materials_override_text and job.materials_override_text.strip():
        pdf.add_section_heading("Materials")
        pdf.add_text("Final materials notes (overrides AI suggestion)",
                     font_size=9, color=pdf.colors.info_accent)
        pdf.advance(4)
        pdf.add_paragraph(job.materials_override_text)

    elif job.ai_materials:
        try:
            items = json.loads(job.ai_materials)
        except ValueError as e:
            logger.warning(f"Skipping materials table, materials JSON is invalid: {e}")
            return
        if isinstance(items, list) and items:
            pdf.add_section_heading("Materials")
            rows = [
                [str(m.get("item") or ""), str(m.get("quantity") or "-"), str(m.get("estimatedCost") or "-")]
                for m in items if isinstance(m, dict)
            ]
            pdf.add_table(["Item", "Qty", "Est. Cost"], rows, col_widths=[90, 35, 45])


def check_materials_reconcile(request: JobPackRequest):
    """
    Refuse to export when the stored materials total disagrees with the lines.

    Raises:
        MaterialsMismatchError: Difference above one cent
    """
    stored = request.job.materials_total
    if not request.materials or stored is None:
        return
    line_sum = sum(m.line_total or 0 for m in request.materials)
    if abs(stored - line_sum) > MATERIALS_TOLERANCE:
        raise MaterialsMismatchError(line_sum, stored)


def render_job_pack(request: JobPackRequest, config: Optional[LayoutConfig] = None) -> PdfDocument:
    """
    Lay out the job pack (quote) for one job.

    Args:
        request: Job record, issuer, materials and client signature
        config: Layout configuration

    Returns:
        Finalized engine

    Raises:
        MaterialsMismatchError: Materials totals do not reconcile
    """
    check_materials_reconcile(request)

    job = request.job
    issuer = request.issuer
    has_identity = bool(issuer and issuer.legal_name)
    generated_at = request.generated_at or datetime.now()

    pdf = PdfDocument(config, title=job.title or "Job Pack", author=issuer.legal_name if has_identity else None)

    if has_identity:
        pdf.add_business_header(issuer)
    else:
        pdf.add_branded_header("Job Pack")

    pdf.add_title(job.title or "Job Pack")
    pdf.add_text("Job Pack / Quote", font_size=10, color=pdf.colors.text_muted)
    pdf.advance(4)

    pdf.add_metadata([
        ("Trade", job.trade_type),
        ("Property", job.property_type),
        ("Address", job.address),
        ("Client", job.client_name),
        ("Date", format_date(job.created_at or generated_at)),
    ])

    if job.ai_summary:
        pdf.add_section_heading("Summary")
        pdf.add_paragraph(job.ai_summary)

    if job.ai_quote:
        _add_pricing(pdf, job.ai_quote)

    if job.ai_scope_of_work:
        pdf.add_section_heading("Scope of Work")
        pdf.add_numbered_list(_split_lines(job.ai_scope_of_work))

    if job.ai_inclusions:
        pdf.add_section_heading("What's Included")
        pdf.add_inclusions_list(_split_lines(job.ai_inclusions))

    if job.ai_exclusions:
        pdf.add_section_heading("Not Included")
        pdf.add_exclusions_list(_split_lines(job.ai_exclusions))

    _add_materials(pdf, request)

    if job.ai_client_notes:
        pdf.add_section_heading("Notes for Client")
        pdf.add_paragraph(job.ai_client_notes)

    if job.notes:
        pdf.add_section_heading("Job Details")
        pdf.add_paragraph(job.notes)

    signature = request.client_signature
    accepted_by = job.client_accepted_by_name or (signature.signed_name if signature else None)
    if job.client_accepted_at and accepted_by:
        pdf.add_section_heading("Client Acceptance")
        if signature and signature.image_data_url:
            pdf.add_image(signature.image_data_url, width=80, height=30)
        pdf.add_paragraph(f"Accepted by: {accepted_by}")
        if signature and signature.signed_email:
            pdf.add_paragraph(f"Email: {signature.signed_email}")
        pdf.add_paragraph(f"Accepted on: {format_datetime(job.client_accepted_at)}")
        if job.quote_number and job.client_accepted_quote_ver:
            pdf.add_paragraph(f"Quote: {job.quote_number} v{job.client_accepted_quote_ver}")
        if job.client_acceptance_note and job.client_acceptance_note.strip():
            pdf.add_subheading("Client note:")
            pdf.add_paragraph(job.client_acceptance_note)

    if has_identity:
        pdf.add_issued_footer(issuer.legal_name, f"JP-{job.id[:8].upper()}", generated_at=generated_at)
    else:
        pdf.add_standard_footers(job_id=job.id, generated_at=generated_at)

    logger.info(f"Laid out job pack for job {job.id[:8]} on {pdf.page_count} page(s)")
    return pdf
