"""
Form 1098 Derivation Tests

Tests:
1. Box amounts from W-2 wages (4% interest capped at $10,000, 0.5%
   insurance, 3.5x principal)
2. Borrower identity and address fallbacks
3. Field-level merge of corrections
4. PDF rendering

Run with: pytest tests/test_form_1098.py -v
"""

from datetime import datetime, timezone
from io import BytesIO
from types import SimpleNamespace

import pdfplumber
import pytest

from taxfiler.modules.tax.extraction import PlaceholderW2Extractor
from taxfiler.modules.tax.forms import (
    Address,
    Form1098,
    LENDER_NAME,
    PLACEHOLDER_ADDRESS,
    PLACEHOLDER_NAME,
    PLACEHOLDER_SSN,
    build_form_1098,
    calculate_1098_amounts,
    merge_record,
)
from taxfiler.modules.tax.pdf_generator import format_currency, generate_form_1098_pdf, iter_pdf_chunks, render_form_1098_pdf


GENERATED_AT = datetime(2026, 2, 15, 12, 0, tzinfo=timezone.utc)


def make_user(**overrides):
    fields = dict(
        id="0a1b2c3d-4e5f-6789-abcd-ef0123456789",
        full_name="Jane Filer",
        ssn=None,
        address={},
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_w2(user=None, **overrides):
    record = PlaceholderW2Extractor().extract(None, user or make_user())
    return record.model_copy(update=overrides) if overrides else record


# ============================================================================
# Amounts
# ============================================================================

class TestCalculate1098Amounts:

    @pytest.mark.parametrize("wages,interest,insurance,principal", [
        (65000, 2600.00, 325.00, 227500.00),
        (0, 0.00, 0.00, 0.00),
        (250000, 10000.00, 1250.00, 875000.00),
        (300000, 10000.00, 1500.00, 1050000.00),
        (12345.67, 493.83, 61.73, 43209.85),
    ])
    def test_amounts(self, wages, interest, insurance, principal):
        amounts = calculate_1098_amounts(wages)

        assert amounts.mortgage_interest_received == interest
        assert amounts.mortgage_insurance_premiums == insurance
        assert amounts.outstanding_mortgage_principal == principal
        assert amounts.points_paid == 0
        assert amounts.refund_of_overpaid_interest == 0

    def test_missing_wages_treated_as_zero(self):
        assert calculate_1098_amounts(None).mortgage_interest_received == 0


# ============================================================================
# Building the form
# ============================================================================

class TestBuildForm1098:

    def test_uses_w2_identity(self):
        w2 = make_w2(employee_name="W2 Name", employee_ssn="987-65-4321")
        form = build_form_1098(make_user(), w2, GENERATED_AT)

        assert form.borrower_name == "W2 Name"
        assert form.borrower_ssn == "987-65-4321"
        assert form.lender_name == LENDER_NAME
        assert form.mortgage_interest_received == 2600.00
        assert form.form_year == 2026
        assert form.generated_date == GENERATED_AT
        assert form.calculation_basis.based_on_w2_income == 65000.00
        assert form.calculation_basis.interest_rate == 0.04
        assert form.calculation_basis.estimation_method == "income_based"

    def test_falls_back_to_profile_then_placeholder(self):
        w2 = make_w2(employee_name="", employee_ssn="")

        from_profile = build_form_1098(make_user(ssn="555-44-3333"), w2, GENERATED_AT)
        assert from_profile.borrower_name == "Jane Filer"
        assert from_profile.borrower_ssn == "555-44-3333"

        placeholder = build_form_1098(make_user(full_name=""), w2, GENERATED_AT)
        assert placeholder.borrower_name == PLACEHOLDER_NAME
        assert placeholder.borrower_ssn == PLACEHOLDER_SSN

    def test_address_fallbacks(self):
        blank = Address()
        profile_address = {"street": "1 Elm St", "city": "Springfield", "state": "IL", "zip": "62701"}

        w2 = make_w2(employee_address=blank)
        form = build_form_1098(make_user(address=profile_address), w2, GENERATED_AT)
        assert form.borrower_address.street == "1 Elm St"
        assert form.property_address == form.borrower_address

        form = build_form_1098(make_user(address={}), w2, GENERATED_AT)
        assert form.borrower_address == PLACEHOLDER_ADDRESS

    def test_account_number(self):
        form = build_form_1098(make_user(), make_w2(), GENERATED_AT)
        assert form.account_number == "MTG-0A1B2C3D"

    def test_wire_aliases(self):
        form = build_form_1098(make_user(), make_w2(), GENERATED_AT)
        data = form.model_dump(mode="json", by_alias=True)

        assert "borrowerSSN" in data
        assert "lenderTIN" in data
        assert data["mortgageInterestReceived"] == 2600.0
        assert Form1098.model_validate(data) == form


# ============================================================================
# Corrections
# ============================================================================

class TestMergeRecord:

    def test_changes_only_named_fields(self):
        w2 = make_w2()
        modified_at = datetime(2026, 3, 1, tzinfo=timezone.utc)

        updated = merge_record(w2, {"box1_wages": 70000.0}, modified_at)

        assert updated.box1_wages == 70000.0
        assert updated.box2_federal_tax == w2.box2_federal_tax
        assert updated.employee_name == w2.employee_name
        assert updated.last_modified == modified_at

    def test_same_changes_twice_is_idempotent(self):
        w2 = make_w2()
        modified_at = datetime(2026, 3, 1, tzinfo=timezone.utc)
        changes = {"employer_name": "Acme", "box12_codes": [{"code": "D", "amount": 1500}]}

        once = merge_record(w2, changes, modified_at)
        twice = merge_record(once, changes, modified_at)

        assert once == twice


# ============================================================================
# PDF
# ============================================================================

class TestForm1098Pdf:

    def test_format_currency(self):
        assert format_currency(227500) == "$227,500.00"
        assert format_currency(0) == "$0.00"

    def test_pdf_contains_boxes_and_parties(self):
        form = build_form_1098(make_user(), make_w2(), GENERATED_AT)
        buffer = BytesIO()
        generate_form_1098_pdf(form, buffer)
        buffer.seek(0)

        assert buffer.getvalue().startswith(b"%PDF")
        with pdfplumber.open(buffer) as pdf:
            text = "\n".join(page.extract_text() or "" for page in pdf.pages)

        assert "Form 1098" in text
        assert "Tax Year 2026" in text
        assert LENDER_NAME in text
        assert "Jane Filer" in text
        assert "$2,600.00" in text
        assert "$325.00" in text
        assert "$227,500.00" in text
        assert "Generated on: 02/15/2026" in text
        assert "This is a computer-generated document." in text
        assert "Calculation Details" in text

    def test_pdf_without_calculation_basis(self):
        form = build_form_1098(make_user(), make_w2(), GENERATED_AT).model_copy(update={"calculation_basis": None})
        pdf_bytes = b"".join(iter_pdf_chunks(render_form_1098_pdf(form), chunk_size=1024))

        with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
            text = "\n".join(page.extract_text() or "" for page in pdf.pages)

        assert "Calculation Details" not in text
        assert "$2,600.00" in text
