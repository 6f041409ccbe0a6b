"""
Unit tests for tradepdf/renderer.py: layout, pagination and footers.
"""
import base64
import logging
import re

import pytest

from conftest import LOREM, JOB_ID, all_text, pages_containing, text_runs
from tradepdf.models import BusinessIdentity, ExportDocument, Recipient
from tradepdf.renderer import (
    BLANK_NAME, PREMIUM_FOOTER_NOTE, DocumentState, PdfDocument, build_document, render_document,
)
from tradepdf.serializer import DATA_URI_PREFIX
from tradepdf.text import text_width

FOOTER_PATTERN = re.compile(r"Page (\d+) of (\d+)")


def footer_lines(pdf: PdfDocument, page_number: int):
    return [t for t in pdf.c.page_text(page_number) if FOOTER_PATTERN.search(t)]


class TestEmptyContent:
    """Blank text must not consume space or draw anything."""

    @pytest.mark.parametrize("text", ["", "   ", "**"])
    def test_empty_paragraph_is_noop(self, pdf, text):
        y_before = pdf.y
        pdf.add_paragraph(text)
        assert pdf.y == y_before
        assert pdf.c.count_draw_ops() == 0
        assert pdf.page_count == 1
        assert pdf.state == DocumentState.EMPTY

    @pytest.mark.parametrize("text", ["", "  ", "## "])
    def test_empty_headings_are_noops(self, pdf, text):
        pdf.add_section_heading(text)
        pdf.add_subheading(text)
        pdf.add_title(text)
        assert pdf.y == pdf.config.page.margin_top
        assert pdf.c.count_draw_ops() == 0

    def test_empty_list_items_skipped(self, pdf):
        pdf.add_bullet_list(["", "  ", "**"])
        pdf.add_numbered_list([])
        assert pdf.y == pdf.config.page.margin_top
        assert pdf.c.count_draw_ops() == 0

    def test_add_text_returns_line_count(self, pdf):
        assert pdf.add_text("") == 0
        assert pdf.add_text("Short line") == 1
        assert pdf.add_text(LOREM * 2) > 1


class TestTextFlow:
    """Test wrapping, alignment and the width invariant."""

    def test_every_line_fits_its_box(self, pdf, config):
        right_edge = config.page.width - config.page.margin_right
        pdf.add_title("Bathroom renovation at 14 Harbour Street")
        for _ in range(5):
            pdf.add_paragraph(LOREM)
        pdf.add_text(LOREM, indent=15)
        pdf.add_text(LOREM, font_size=16, bold=True)
        pdf.add_text(LOREM, align="center")
        pdf.add_text(LOREM, align="right", max_width=90)
        pdf.add_bullet_list([LOREM] * 4)
        pdf.add_numbered_list([LOREM] * 4)
        pdf.add_paragraph("See https://example.com/" + "x" * 300)

        assert pdf.page_count >= 2
        for page in range(1, pdf.page_count + 1):
            for font, size, op in text_runs(pdf.c, page):
                x, y, text = op.args
                width = text_width(text, font, size)
                assert width <= config.content_width + 1e-6
                if op.name == "drawString":
                    assert x + width <= right_edge + 1e-6
                assert config.page.margin_top <= y <= config.content_bottom

    def test_multiline_paragraph_keeps_word_breaks(self, pdf):
        pdf.add_paragraph("Dog on site.\nUse the side gate\tafter 8am.")
        assert all_text(pdf.c) == ["Dog on site. Use the side gate after 8am."]

    def test_line_height_follows_font_size(self, pdf, config):
        start = pdf.y
        pdf.add_text("One line", font_size=10)
        assert pdf.y - start == pytest.approx(10 * 0.4)
        start = pdf.y
        pdf.add_text("One line", font_size=20)
        assert pdf.y - start == pytest.approx(20 * 0.4)

    def test_text_is_cleaned_before_drawing(self, pdf):
        pdf.add_paragraph("**Important:** isolate   power &amp; water")
        assert pdf.c.page_text(1) == ["Important: isolate power & water"]

    def test_alignment_ops(self, pdf):
        pdf.add_text("Left")
        pdf.add_text("Centre", align="center")
        pdf.add_text("Right", align="right")
        names = [op.name for op in pdf.c.draw_ops(1)]
        assert names == ["drawString", "drawCentredString", "drawRightString"]

    def test_long_paragraph_flows_onto_new_pages(self, pdf):
        pdf.add_paragraph(LOREM * 40)
        assert pdf.page_count >= 2
        assert pdf.c.page_text(2)


class TestHeadings:

    def test_section_heading_uppercased_with_rule(self, pdf):
        pdf.add_section_heading("Scope of Work")
        assert pdf.c.page_text(1) == ["SCOPE OF WORK"]
        assert [op.name for op in pdf.c.draw_ops(1)] == ["drawString", "line"]

    def test_section_heading_not_orphaned(self, pdf, config):
        pdf.set_y(config.content_bottom - 20)
        pdf.add_section_heading("Materials")
        assert pdf.page_count == 2
        assert pages_containing(pdf.c, "MATERIALS") == [2]

    def test_subheading(self, pdf):
        pdf.add_subheading("Labour")
        assert pdf.c.page_text(1) == ["Labour"]


class TestLists:

    def test_numbered_list_markers(self, pdf):
        pdf.add_numbered_list(["Isolate power", "Remove unit", "Install new unit"])
        texts = pdf.c.page_text(1)
        assert texts == ["1.", "Isolate power", "2.", "Remove unit", "3.", "Install new unit"]

    def test_bullet_list_markers(self, pdf):
        pdf.add_bullet_list(["Harness", "Hard hat"])
        assert pdf.c.page_text(1) == ["•", "Harness", "•", "Hard hat"]

    def test_items_never_split_across_pages(self, pdf):
        pdf.add_numbered_list([f"Step {i}. {LOREM}" for i in range(40)])
        assert pdf.page_count >= 2
        for page in range(2, pdf.page_count + 1):
            assert re.fullmatch(r"\d+\.", pdf.c.page_text(page)[0])

    def test_inclusions_and_exclusions_draw_glyphs(self, pdf):
        pdf.add_inclusions_list(["Labour", "Waste removal"])
        pdf.add_exclusions_list(["Painting"])
        names = [op.name for op in pdf.c.draw_ops(1)]
        assert names.count("circle") == 2
        assert names.count("line") == 2
        assert pdf.c.page_text(1) == ["Labour", "Waste removal", "Painting"]

    def test_checklist(self, pdf):
        pdf.add_checklist([("Harness inspected", True), ("Permit issued", False), ("Tagging", None)])
        names = [op.name for op in pdf.c.draw_ops(1)]
        assert names.count("line") == 4
        assert names.count("rect") == 1
        assert pdf.c.page_text(1) == ["Harness inspected", "Permit issued", "Tagging"]


class TestTable:
    """Rows are checked for space individually and never split."""

    HEADERS = ["Material", "Qty", "Unit", "Total"]

    def _rows(self, count):
        return [
            [f"Row {i:03d} " + (LOREM if i % 7 == 0 else "copper pipe"), "2", "m", "$120.00"]
            for i in range(count)
        ]

    def test_rows_never_split(self, pdf, config):
        pdf.add_table(self.HEADERS, self._rows(80), col_widths=[80, 25, 30, 35])
        assert pdf.page_count >= 2

        for i in range(80):
            assert len(pages_containing(pdf.c, f"Row {i:03d}")) == 1

        for page in range(1, pdf.page_count + 1):
            for op in pdf.c.draw_ops(page):
                if op.name == "rect":
                    _, y, _, height = op.args
                    assert y >= config.page.margin_top - 1e-6
                    assert y + height <= config.content_bottom + 1e-6

    def test_header_repeats_on_continuation_pages(self, pdf):
        pdf.add_table(self.HEADERS, self._rows(80), col_widths=[80, 25, 30, 35])
        assert pages_containing(pdf.c, "Material") == list(range(1, pdf.page_count + 1))

    def test_multi_line_cell_grows_row(self, pdf):
        pdf.add_table(["Item"], [["short"]])
        short_height = pdf.y
        other = PdfDocument(pdf.config)
        other.add_table(["Item"], [[LOREM * 2]])
        assert other.y > short_height

    def test_equal_widths_when_none_given(self, pdf, config):
        pdf.add_table(["A", "B"], [["a", "b"]])
        x_positions = [op.args[0] for op in pdf.c.draw_ops(1) if op.name == "drawString"]
        pad = config.spacing.table_cell_padding
        assert x_positions[:2] == [
            pytest.approx(config.page.margin_left + pad),
            pytest.approx(config.page.margin_left + config.content_width / 2 + pad),
        ]

    def test_short_rows_padded(self, pdf):
        pdf.add_table(["Item", "Qty", "Cost"], [["Tiles"]])
        assert "Tiles" in pdf.c.page_text(1)


class TestTotalsBox:

    def test_whole_dollar_amounts(self, pdf):
        pdf.add_totals_box(1000.0, subtotal=909.0, gst=91.0)
        texts = pdf.c.page_text(1)
        for expected in ("$909", "$91", "$1,000", "TOTAL", "Subtotal (ex GST)", "GST (10%)"):
            assert expected in texts

    def test_cents_rounded(self, pdf):
        pdf.add_totals_box(1099.5, subtotal=999.54, gst=99.96)
        texts = pdf.c.page_text(1)
        assert "$1,100" in texts
        assert "$1,000" in texts
        assert "$100" in texts

    def test_additional_lines(self, pdf):
        pdf.add_totals_box(550.0, additional_lines=[("Previous claims", 200.0, False), ("Retention", "Nil", True)])
        texts = pdf.c.page_text(1)
        assert "Previous claims" in texts
        assert "$200" in texts
        assert "Nil" in texts
        assert "Subtotal (ex GST)" not in texts

    def test_moves_to_new_page_when_no_room(self, pdf, config):
        pdf.set_y(config.content_bottom - 20)
        pdf.add_totals_box(550.0, subtotal=500.0, gst=50.0)
        assert pages_containing(pdf.c, "$550") == [2]


class TestHeaders:

    def test_business_header(self, pdf, business):
        pdf.add_business_header(business)
        texts = pdf.c.page_text(1)
        assert "Acme Trades" in texts
        assert "Trading as: Acme Plumbing" in texts
        assert "ABN: 12 345 678 901" in texts
        assert "08 9000 1234" in texts
        assert "office@acmetrades.com.au" in texts
        assert pages_containing(pdf.c, "Osborne Park WA 6017") == [1]
        assert pdf.y == 55

    def test_trading_name_hidden_when_same(self, pdf):
        pdf.add_business_header(BusinessIdentity(legal_name="Acme Trades", trading_name="Acme Trades"))
        assert not any(t.startswith("Trading as") for t in pdf.c.page_text(1))

    def test_every_field_optional(self, pdf):
        pdf.add_business_header(BusinessIdentity())
        assert pdf.c.page_text(1) == []
        assert pdf.y == 55

    def test_branded_header(self, pdf):
        pdf.add_branded_header("Job Pack")
        assert pdf.c.page_text(1) == ["OMNEXORA", "Job Pack"]
        assert pdf.y == 50

    def test_premium_header_without_identity(self, pdf):
        pdf.add_premium_header("Variation")
        assert pdf.c.page_text(1) == ["OMNEXORA", "Construction Business Management", "VARIATION"]
        assert pdf.y == 60

    def test_premium_header_panels(self, pdf, business, config):
        business.license_number = "PL 8842"
        pdf.add_premium_header(
            "Progress Claim", document_number="PROGRESS_CLAIM-3F2A9C1E", document_date="5 March 2024",
            issuer=business, recipient=Recipient(name="Jane Citizen", address="1 Main St, Fremantle WA 6160"),
            job_reference="3F2A9C1E", project_name="Kitchen renovation", project_address="1 Main St",
        )
        texts = pdf.c.page_text(1)
        assert texts[:3] == ["ACME TRADES", "Trading as: Acme Plumbing", "ABN: 12 345 678 901  |  License: PL 8842"]
        for expected in ("PROGRESS CLAIM", "Ref: PROGRESS_CLAIM-3F2A9C1E", "Date: 5 March 2024",
                         "FROM:", "08 9000 1234", "office@acmetrades.com.au", "TO:", "Jane Citizen",
                         "PROJECT DETAILS", "Project: Kitchen renovation", "Location: 1 Main St",
                         "Job Ref: 3F2A9C1E"):
            assert expected in texts
        assert pdf.y == 60 + 32 + 22

        right_edge = config.page.width - config.page.margin_right
        for font, size, op in text_runs(pdf.c, 1):
            x, _, text = op.args
            if op.name == "drawString":
                assert x + text_width(text, font, size) <= right_edge + 1e-6

    def test_premium_header_skips_empty_panels(self, pdf):
        pdf.add_premium_header("SWMS", issuer=BusinessIdentity(legal_name="Acme Trades"))
        assert "FROM:" not in pdf.c.page_text(1)
        assert "PROJECT DETAILS" not in pdf.c.page_text(1)
        assert pdf.y == 60


class TestStructuredBlocks:

    def test_signature_block_blank_names(self, pdf):
        pdf.add_signature_block()
        texts = pdf.c.page_text(1)
        assert "APPROVAL AND SIGNATURES" in texts
        assert "CONTRACTOR" in texts
        assert "CLIENT / PRINCIPAL" in texts
        assert texts.count(BLANK_NAME) == 2
        assert texts.count("Signature:") == 2

    def test_signature_block_single_column(self, pdf):
        pdf.add_signature_block(client_name="Jane Citizen", show_contractor=False)
        texts = pdf.c.page_text(1)
        assert "CONTRACTOR" not in texts
        assert "Jane Citizen" in texts

    def test_signature_block_needs_room(self, pdf, config):
        pdf.set_y(config.content_bottom - 60)
        pdf.add_signature_block()
        assert pages_containing(pdf.c, "Signature:") == [2]

    def test_metadata_skips_empty_values(self, pdf):
        pdf.add_metadata([("Client", "Jane Citizen"), ("Trade", None), ("Address", "  ")])
        assert pdf.c.page_text(1) == ["Client: Jane Citizen"]

    def test_highlight_box(self, pdf):
        pdf.add_highlight_box("Total Estimate", "$1,320 – $1,520")
        assert pdf.c.page_text(1) == ["Total Estimate", "$1,320 – $1,520"]

    def test_separator(self, pdf):
        start = pdf.y
        pdf.add_separator()
        assert [op.name for op in pdf.c.draw_ops(1)] == ["line"]
        assert pdf.y == start + 5

    def test_ai_warning(self, pdf):
        pdf.add_ai_warning()
        texts = pdf.c.page_text(1)
        assert texts[0] == "AI-GENERATED CONTENT WARNING"
        assert len(texts) > 1

    def test_export_identifiers(self, pdf, fixed_time):
        pdf.add_export_identifiers("SWMS", "SWMS-3F2A9C1E", JOB_ID[:8], generated_at=fixed_time,
                                   revision=2, contractor_name="Acme Trades")
        texts = pdf.c.page_text(1)
        assert "Document: SWMS" in texts
        assert "Generated: 5 March 2024, 09:30 am" in texts
        assert "Revision: 2" in texts
        assert "Issued by: Acme Trades" in texts

    def test_jurisdiction_label_default(self, pdf):
        pdf.add_jurisdiction_label()
        assert "Jurisdiction: Western Australia" in pdf.c.page_text(1)

    @pytest.mark.parametrize("code,state,authority", [
        ("vic", "Victoria", "WorkSafe Victoria"),
        ("NSW", "New South Wales", "SafeWork NSW"),
        ("XX", "Western Australia", "WorkSafe WA"),
        (None, "Western Australia", "WorkSafe WA"),
    ])
    def test_compliance_reference(self, pdf, code, state, authority):
        pdf.add_compliance_reference(code)
        assert f"Jurisdiction: {state}  |  Authority: {authority}" in pdf.c.page_text(1)


    def test_payment_terms(self, pdf):
        pdf.add_payment_terms(bank_name="Commonwealth Bank", bsb="066-000", account_number="1234 5678",
                              account_name="Acme Trades", payment_terms="14 days", due_date="19 March 2024",
                              payment_reference="PC-3F2A9C1E")
        texts = pdf.c.page_text(1)
        assert texts[0] == "PAYMENT DETAILS"
        for expected in ("BANK TRANSFER DETAILS", "Bank: Commonwealth Bank", "BSB: 066-000", "Account: 1234 5678",
                         "Name: Acme Trades", "PAYMENT TERMS", "Terms: 14 days", "Due Date: 19 March 2024",
                         "Reference: PC-3F2A9C1E"):
            assert expected in texts

    def test_payment_terms_partial(self, pdf):
        pdf.add_payment_terms(bsb="066-000", due_date="19 March 2024")
        texts = pdf.c.page_text(1)
        assert "BSB: 066-000" in texts
        assert "Due Date: 19 March 2024" in texts
        assert not any(t.startswith(("Bank:", "Terms:", "Reference:")) for t in texts)

    def test_payment_terms_kept_with_heading(self, pdf, config):
        pdf.set_y(config.content_bottom - 40)
        pdf.add_payment_terms(bsb="066-000")
        assert pages_containing(pdf.c, "PAYMENT DETAILS") == [2]
        assert pages_containing(pdf.c, "BSB: 066-000") == [2]


class TestImages:

    def test_valid_image_drawn(self, pdf, png_data_uri, config):
        assert pdf.add_image(png_data_uri, width=80, height=30) is True
        assert [op.name for op in pdf.c.draw_ops(1)] == ["drawImage"]
        assert pdf.y == config.page.margin_top + 38

    def test_bare_base64_accepted(self, pdf, png_data_uri):
        assert pdf.add_image(png_data_uri.split(",", 1)[1]) is True

    @pytest.mark.parametrize("source", [
        "data:image/png;base64,not-base64!!",
        "data:image/png;base64," + base64.b64encode(b"not an image").decode(),
    ])
    def test_bad_image_skipped_with_warning(self, pdf, source, caplog):
        with caplog.at_level(logging.WARNING, logger="tradepdf.renderer"):
            assert pdf.add_image(source) is False
        assert "Failed to add image" in caplog.text
        assert pdf.c.count_draw_ops() == 0
        assert pdf.y == pdf.config.page.margin_top

    def test_missing_image(self, pdf):
        assert pdf.add_image(None) is False
        assert pdf.add_image("") is False


class TestFooters:
    """Footers are stamped on every page after content is complete."""

    def test_issued_footer_on_every_page(self, pdf, fixed_time):
        for _ in range(60):
            pdf.add_paragraph(LOREM)
        pdf.add_issued_footer("Acme Trades", "SWMS-3F2A9C1E", generated_at=fixed_time)

        total = pdf.page_count
        assert total >= 3
        for page in range(1, total + 1):
            lines = footer_lines(pdf, page)
            assert len(lines) == 1
            assert lines[0] == f"Document: SWMS-3F2A9C1E | 5 Mar 2024, 09:30 am | Page {page} of {total}"
            assert "Issued by Acme Trades" in pdf.c.page_text(page)

    def test_standard_footer(self, pdf, fixed_time):
        pdf.add_page()
        pdf.add_standard_footers(job_id=JOB_ID, generated_at=fixed_time)
        for page in (1, 2):
            lines = footer_lines(pdf, page)
            assert lines == [
                f"Generated by OMNEXORA  |  5 Mar 2024, 09:30 am  |  Job 3f2a9c1e  |  Page {page} of 2"
            ]
            assert pdf.config.footer_note in pdf.c.page_text(page)

    def test_premium_footer(self, pdf, fixed_time):
        for _ in range(40):
            pdf.add_paragraph(LOREM)
        pdf.add_premium_footer("Acme Trades", "VARIATION-3F2A9C1E", generated_at=fixed_time)

        total = pdf.page_count
        assert total >= 2
        for page in range(1, total + 1):
            texts = pdf.c.page_text(page)
            assert footer_lines(pdf, page) == [f"Page {page} of {total}"]
            assert "Issued by Acme Trades" in texts
            assert "Doc: VARIATION-3F2A9C1E  |  5 Mar 2024, 09:30 am" in texts
            assert PREMIUM_FOOTER_NOTE in texts
        assert pdf.state == DocumentState.FINALIZED

    def test_premium_footer_without_note_or_issuer(self, pdf, fixed_time):
        pdf.add_premium_footer(generated_at=fixed_time, include_compliance_note=False)
        assert pdf.c.page_text(1) == ["5 Mar 2024, 09:30 am", "Page 1 of 1"]

    def test_finalize_applies_standard_footer_once(self, pdf):
        pdf.add_paragraph("Content")
        pdf.finalize()
        pdf.finalize()
        assert len(footer_lines(pdf, 1)) == 1

    def test_finalize_keeps_existing_footer(self, pdf, fixed_time):
        pdf.add_issued_footer("Acme Trades", generated_at=fixed_time)
        pdf.finalize()
        assert footer_lines(pdf, 1) == ["5 Mar 2024, 09:30 am | Page 1 of 1"]


class TestSerialization:

    def test_to_bytes_idempotent(self, pdf):
        pdf.add_paragraph(LOREM)
        pdf.finalize()
        first = pdf.to_bytes()
        assert first.startswith(b"%PDF")
        assert pdf.to_bytes() == first

    def test_identical_documents_identical_bytes(self, fixed_time):
        def build():
            doc = PdfDocument(title="Quote")
            doc.add_title("Quote")
            doc.add_paragraph(LOREM)
            doc.add_standard_footers(generated_at=fixed_time)
            return doc.to_bytes()

        assert build() == build()

    def test_data_string(self, pdf):
        pdf.add_paragraph("Content")
        pdf.finalize()
        data = pdf.to_data_string()
        assert data.startswith(DATA_URI_PREFIX)
        assert base64.b64decode(data[len(DATA_URI_PREFIX):]) == pdf.to_bytes()

    def test_state_transitions(self, pdf):
        assert pdf.state == DocumentState.EMPTY
        pdf.add_paragraph("Content")
        assert pdf.state == DocumentState.OPEN
        pdf.finalize()
        assert pdf.state == DocumentState.FINALIZED
        pdf.to_bytes()
        assert pdf.state == DocumentState.SERIALIZED


class TestEndToEnd:

    def test_header_paragraphs_totals_footer(self, fixed_time):
        pdf = PdfDocument()
        pdf.add_business_header(BusinessIdentity(legal_name="Acme Trades", abn="12345678901"))
        for i in range(40):
            pdf.add_paragraph(f"Paragraph {i}. {LOREM}")
        pdf.add_totals_box(550.0, subtotal=500.0, gst=50.0)
        pdf.add_issued_footer("Acme Trades", generated_at=fixed_time)

        total = pdf.page_count
        assert total >= 2
        for page in range(1, total + 1):
            lines = footer_lines(pdf, page)
            assert len(lines) == 1
            assert lines[0].endswith(f"Page {page} of {total}")
        assert len(pages_containing(pdf.c, "$550")) == 1
        assert "ABN: 12 345 678 901" in pdf.c.page_text(1)
        assert pdf.to_bytes().startswith(b"%PDF")


class TestBuildDocument:
    """Test payload-driven rendering via add_block dispatch."""

    def _payload(self, **overrides):
        data = {
            "document_type": "quote",
            "record_id": JOB_ID,
            "blocks": [
                {"type": "title", "text": "Bathroom renovation"},
                {"type": "heading", "level": 1, "text": "Scope of Work"},
                {"type": "heading", "level": 2, "text": "Demolition"},
                {"type": "paragraph", "text": LOREM},
                {"type": "text", "text": "Prices valid for 30 days", "color": "text_muted", "align": "right"},
                {"type": "list", "variant": "number", "items": ["Strip tiles", "Waterproof"]},
                {"type": "list", "variant": "inclusions", "items": ["Labour"]},
                {"type": "checklist", "items": [{"text": "Asbestos check", "passed": True}]},
                {"type": "table", "headers": ["Item", "Cost"], "rows": [["Tiles", "$400"]]},
                {"type": "metadata", "items": [{"label": "Client", "value": "Jane Citizen"}]},
                {"type": "separator"},
                {"type": "spacer", "height_mm": 5},
                {"type": "highlight", "label": "Deposit", "value": "$200"},
                {"type": "totals", "subtotal": 500, "gst": 50, "total": 550},
                {"type": "page_break"},
                {"type": "ai_warning"},
                {"type": "jurisdiction"},
                {"type": "compliance", "state_code": "QLD"},
                {"type": "identifiers", "document_type": "Quote", "document_id": "Q-1", "job_id": "3f2a9c1e",
                 "generated_at": "2024-03-05T09:30:00"},
                {"type": "signature", "client_name": "Jane Citizen"},
            ],
            "footer": {"generated_at": "2024-03-05T09:30:00"},
        }
        data.update(overrides)
        return ExportDocument.model_validate(data)

    def test_all_blocks_render(self):
        pdf = build_document(self._payload())
        texts = all_text(pdf.c)
        for expected in ("Bathroom renovation", "SCOPE OF WORK", "Demolition", "Prices valid for 30 days",
                         "Strip tiles", "Labour", "Asbestos check", "Tiles", "Client: Jane Citizen",
                         "Deposit", "$550", "AI-GENERATED CONTENT WARNING", "Jurisdiction: Western Australia",
                         "ID: Q-1", "Jane Citizen"):
            assert expected in texts
        assert pdf.page_count >= 2
        assert pdf.state == DocumentState.FINALIZED

    def test_branded_header_and_standard_footer_without_issuer(self):
        pdf = build_document(self._payload())
        assert pdf.c.page_text(1)[0] == "OMNEXORA"
        assert footer_lines(pdf, 1)[0].startswith("Generated by OMNEXORA")
        assert "Job 3f2a9c1e" in footer_lines(pdf, 1)[0]

    def test_business_header_and_issued_footer(self):
        pdf = build_document(self._payload(issuer={"legal_name": "Acme Trades", "abn": "12345678901"}))
        assert pdf.c.page_text(1)[0] == "Acme Trades"
        assert "Issued by Acme Trades" in pdf.c.page_text(pdf.page_count)

    def test_letter_page_size(self):
        pdf = build_document(self._payload(meta={"page_size": "LETTER"}))
        assert pdf.config.page.width == 215.9

    def test_render_document_serializes(self):
        pdf = render_document(self._payload())
        assert pdf.state == DocumentState.SERIALIZED
        assert pdf.to_bytes().startswith(b"%PDF")

    def test_premium_layout(self):
        pdf = build_document(self._payload(
            layout="premium",
            issuer={"legal_name": "Acme Trades", "abn": "12345678901", "license_number": "EC 12345",
                    "phone": "08 9000 1234"},
            recipient={"name": "Jane Citizen", "address": "1 Main St"},
            project={"name": "Bathroom renovation", "job_reference": "3F2A9C1E"},
            footer={"document_id": "Q-1", "generated_at": "2024-03-05T09:30:00", "include_compliance_note": False},
        ))
        first_page = pdf.c.page_text(1)
        assert first_page[:2] == ["ACME TRADES", "ABN: 12 345 678 901  |  License: EC 12345"]
        for expected in ("QUOTE", "Ref: Q-1", "Date: 5 March 2024", "TO:", "Job Ref: 3F2A9C1E"):
            assert expected in first_page
        for page in range(1, pdf.page_count + 1):
            texts = pdf.c.page_text(page)
            assert "Issued by Acme Trades" in texts
            assert "Doc: Q-1  |  5 Mar 2024, 09:30 am" in texts
            assert f"Page {page} of {pdf.page_count}" in texts
            assert PREMIUM_FOOTER_NOTE not in texts

    def test_payment_terms_block(self):
        blocks = [{"type": "payment_terms", "bsb": "066-000", "account_number": "1234 5678", "due_date": "Friday"}]
        texts = all_text(build_document(self._payload(blocks=blocks)).c)
        assert "PAYMENT DETAILS" in texts
        assert "BSB: 066-000" in texts
        assert "Due Date: Friday" in texts
