"""
Pydantic models for export payloads.

These models define the JSON schema accepted by the rendering service:
business identity, the ordered content blocks of a generic export, and the
job records behind the per-document-type layouts.

License: MIT
"""

from datetime import datetime
from typing import List as ListType, Optional, Union, Literal

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class BusinessIdentity(BaseModel):
    """Issuing business shown in document headers. Every field is optional."""
    legal_name: Optional[str] = Field(default=None, description="Registered business name")
    trading_name: Optional[str] = Field(default=None, description="Trading name, if different")
    abn: Optional[str] = Field(default=None, description="Australian Business Number")
    email: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    suburb: Optional[str] = None
    state: Optional[str] = Field(default=None, description="State code, e.g. WA")
    postcode: Optional[str] = None
    license_number: Optional[str] = None

    def address(self) -> str:
        """Single-line postal address, or an empty string."""
        parts = [p for p in (self.address_line1, self.address_line2) if p]
        locality = " ".join(p for p in (self.suburb, self.state, self.postcode) if p)
        if locality:
            parts.append(locality)
        return ", ".join(parts)


class Meta(BaseModel):
    """Document metadata."""
    title: Optional[str] = Field(default=None, description="PDF title")
    author: Optional[str] = Field(default=None, description="PDF author")
    page_size: Literal["A4", "LETTER"] = Field(default="A4", description="Page size")


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------

class TitleBlock(BaseModel):
    """Large bold document title."""
    type: Literal["title"] = "title"
    text: str


class HeadingBlock(BaseModel):
    """Section heading (level 1, underlined) or subheading (level 2)."""
    type: Literal["heading"] = "heading"
    level: Literal[1, 2] = Field(default=1, description="1=section heading, 2=subheading")
    text: str


class ParagraphBlock(BaseModel):
    """Body paragraph."""
    type: Literal["paragraph"] = "paragraph"
    text: str


class TextBlock(BaseModel):
    """Free text with explicit styling."""
    type: Literal["text"] = "text"
    text: str
    font_size: Optional[float] = Field(default=None, gt=0, le=72)
    bold: bool = False
    color: Optional[str] = Field(default=None, description="Palette color name")
    align: Literal["left", "center", "right"] = "left"
    indent: float = Field(default=0, ge=0)

    model_config = {"allow_inf_nan": False}


class ListBlock(BaseModel):
    """Bulleted, numbered, inclusions (tick) or exclusions (cross) list."""
    type: Literal["list"] = "list"
    variant: Literal["bullet", "number", "inclusions", "exclusions"] = "bullet"
    items: ListType[str]


class ChecklistItem(BaseModel):
    """Checklist entry; ``passed`` None means not yet assessed."""
    text: str
    passed: Optional[bool] = None


class ChecklistBlock(BaseModel):
    """Checklist with pass/fail glyphs."""
    type: Literal["checklist"] = "checklist"
    items: ListType[ChecklistItem]


class TableBlock(BaseModel):
    """Table with a header row and data rows."""
    type: Literal["table"] = "table"
    headers: ListType[str] = Field(..., min_length=1)
    rows: ListType[ListType[str]] = Field(default_factory=list)
    col_widths: Optional[ListType[float]] = Field(default=None, description="Column widths in mm")

    model_config = {"allow_inf_nan": False}

    @field_validator('col_widths')
    @classmethod
    def validate_widths(cls, v, info):
        """Ensure widths match header count if provided."""
        if v is not None and 'headers' in info.data:
            if len(v) != len(info.data['headers']):
                raise ValueError(f"col_widths length must match headers count ({len(info.data['headers'])})")
        return v


class TotalsLine(BaseModel):
    """Extra line above the totals, e.g. a retention or previous claim."""
    label: str
    value: Union[float, str]
    bold: bool = False

    model_config = {"allow_inf_nan": False}


class TotalsBlock(BaseModel):
    """Subtotal / GST / total box."""
    type: Literal["totals"] = "totals"
    subtotal: Optional[float] = None
    gst: Optional[float] = None
    total: float
    currency: str = "AUD"
    additional_lines: ListType[TotalsLine] = Field(default_factory=list)

    model_config = {"allow_inf_nan": False}


class HighlightBlock(BaseModel):
    """Shaded label/value box."""
    type: Literal["highlight"] = "highlight"
    label: str
    value: str
    color: Optional[str] = Field(default=None, description="Palette color name for the background")


class SignatureBlock(BaseModel):
    """Contractor and client signature columns."""
    type: Literal["signature"] = "signature"
    title: str = "Approval and Signatures"
    contractor_name: Optional[str] = None
    client_name: Optional[str] = None
    contractor_label: str = "CONTRACTOR"
    client_label: str = "CLIENT / PRINCIPAL"
    show_contractor: bool = True
    show_client: bool = True


class MetadataItem(BaseModel):
    label: str
    value: Optional[str] = None


class MetadataBlock(BaseModel):
    """``Label: value`` rows."""
    type: Literal["metadata"] = "metadata"
    items: ListType[MetadataItem]


class SeparatorBlock(BaseModel):
    type: Literal["separator"] = "separator"


class SpacerBlock(BaseModel):
    type: Literal["spacer"] = "spacer"
    height_mm: float = Field(..., ge=0, le=100)


class PageBreakBlock(BaseModel):
    type: Literal["page_break"] = "page_break"


class ImageBlock(BaseModel):
    """Raster image (data URI or bare base64)."""
    type: Literal["image"] = "image"
    src: str = Field(..., description="data:image/...;base64,... or base64 payload")
    width_mm: float = Field(default=80, gt=0)
    height_mm: float = Field(default=30, gt=0)

    model_config = {"allow_inf_nan": False}


class AiWarningBlock(BaseModel):
    """Review warning for unconfirmed generated content."""
    type: Literal["ai_warning"] = "ai_warning"


class IdentifiersBlock(BaseModel):
    """Document / job reference box."""
    type: Literal["identifiers"] = "identifiers"
    document_type: str
    document_id: str
    job_id: str
    generated_at: Optional[datetime] = None
    revision: int = Field(default=1, ge=1)
    contractor_name: Optional[str] = None


class JurisdictionBlock(BaseModel):
    type: Literal["jurisdiction"] = "jurisdiction"
    jurisdiction: Optional[str] = None


class ComplianceBlock(BaseModel):
    type: Literal["compliance"] = "compliance"
    state_code: Optional[str] = None


class PaymentTermsBlock(BaseModel):
    """Bank transfer details beside the payment terms."""
    type: Literal["payment_terms"] = "payment_terms"
    bank_name: Optional[str] = None
    bsb: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None
    payment_terms: Optional[str] = Field(default=None, description="e.g. 14 days from invoice")
    due_date: Optional[str] = None
    payment_reference: Optional[str] = None


# Union type for all block types
Block = Union[
    TitleBlock,
    HeadingBlock,
    ParagraphBlock,
    TextBlock,
    ListBlock,
    ChecklistBlock,
    TableBlock,
    TotalsBlock,
    HighlightBlock,
    SignatureBlock,
    MetadataBlock,
    SeparatorBlock,
    SpacerBlock,
    PageBreakBlock,
    ImageBlock,
    AiWarningBlock,
    IdentifiersBlock,
    JurisdictionBlock,
    ComplianceBlock,
    PaymentTermsBlock,
]


class Recipient(BaseModel):
    """Party the document is addressed to."""
    name: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None


class ProjectDetails(BaseModel):
    """Project panel under the premium header."""
    name: Optional[str] = None
    address: Optional[str] = None
    job_reference: Optional[str] = None


# standard: light business banner; premium: navy banner with recipient and project panels
HeaderLayout = Literal["standard", "premium"]


class FooterOptions(BaseModel):
    """Footer stamped on every page after content is complete."""
    issuer_name: Optional[str] = Field(default=None, description="Falls back to the issuer legal name")
    document_id: Optional[str] = None
    generated_at: Optional[datetime] = None
    include_compliance_note: bool = Field(default=True, description="Premium layout only")


class ExportDocument(BaseModel):
    """Generic export: header, ordered blocks, footer."""
    meta: Meta = Field(default_factory=Meta, description="Document metadata")
    document_type: str = Field(default="document", description="Used for the download filename")
    record_id: str = Field(default="", description="Job or document id; first 8 chars go in the filename")
    issuer: Optional[BusinessIdentity] = None
    layout: HeaderLayout = "standard"
    header_subtitle: Optional[str] = Field(default=None, description="Subtitle for the branded header")
    recipient: Optional[Recipient] = Field(default=None, description="Premium layout only")
    project: Optional[ProjectDetails] = Field(default=None, description="Premium layout only")
    blocks: ListType[Block] = Field(..., description="Content blocks in render order")
    footer: FooterOptions = Field(default_factory=FooterOptions)

    model_config = {
        "json_schema_extra": {
            "example": {
                "document_type": "quote",
                "record_id": "3f2a9c1e-77aa-4c1b-9b7e-0d0c1f2e3a4b",
                "issuer": {"legal_name": "Acme Trades", "abn": "12345678901"},
                "blocks": [
                    {"type": "title", "text": "Bathroom renovation"},
                    {"type": "heading", "level": 1, "text": "Scope of Work"},
                    {"type": "list", "variant": "number", "items": ["Strip tiles", "Waterproof"]},
                    {"type": "totals", "subtotal": 500, "gst": 50, "total": 550},
                ],
            }
        }
    }


# ---------------------------------------------------------------------------
# Job records (per-document-type layouts)
# ---------------------------------------------------------------------------

class JobDetails(BaseModel):
    """Job fields used on document headers."""
    id: str
    title: Optional[str] = None
    client_name: Optional[str] = None
    address: Optional[str] = None
    trade_type: Optional[str] = None
    property_type: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


DocumentType = Literal["SWMS", "VARIATION", "EOT", "PROGRESS_CLAIM", "HANDOVER", "MAINTENANCE"]


class JobDocumentRequest(BaseModel):
    """Confirmed document text for one job, rendered by document type."""
    job: JobDetails
    content: str = Field(..., min_length=1)
    layout: HeaderLayout = "standard"
    issuer: Optional[BusinessIdentity] = None
    generated_at: Optional[datetime] = None


class JobMaterial(BaseModel):
    name: str
    unit_label: str = ""
    quantity: float = 0
    line_total: Optional[float] = None

    model_config = {"allow_inf_nan": False}


class ClientSignature(BaseModel):
    signed_name: str
    signed_email: Optional[str] = None
    signed_at: datetime
    image_data_url: Optional[str] = None


class JobPackJob(JobDetails):
    """Job record with generated pack content."""
    ai_summary: Optional[str] = None
    ai_quote: Optional[str] = Field(default=None, description="Quote JSON as generated")
    ai_scope_of_work: Optional[str] = None
    ai_inclusions: Optional[str] = None
    ai_exclusions: Optional[str] = None
    ai_materials: Optional[str] = Field(default=None, description="Materials JSON list as generated")
    ai_client_notes: Optional[str] = None
    materials_override_text: Optional[str] = None
    materials_total: Optional[float] = None
    client_accepted_at: Optional[datetime] = None
    client_accepted_by_name: Optional[str] = None
    client_acceptance_note: Optional[str] = None
    quote_number: Optional[str] = None
    client_accepted_quote_ver: Optional[int] = None

    model_config = {"allow_inf_nan": False}


class JobPackRequest(BaseModel):
    """Everything needed for a job pack export."""
    job: JobPackJob
    issuer: Optional[BusinessIdentity] = None
    materials: ListType[JobMaterial] = Field(default_factory=list)
    client_signature: Optional[ClientSignature] = None
    generated_at: Optional[datetime] = None
