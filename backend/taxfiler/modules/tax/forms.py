"""
Tax Form Records - W-2 extraction snapshot and Form 1098 estimate

Typed versions of the derived documents stored on each user. Wire names
follow the paper forms: W-2 boxes keep their box-prefixed keys
(box1_wages, box2_federalTax, ...), everything else is camelCase.

Based on:
- IRS Form W-2 (Wage and Tax Statement), boxes 1-14
- IRS Form 1098 (Mortgage Interest Statement), boxes 1-5
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.alias_generators import to_camel

from taxfiler.shared.schemas import CamelModel


# 1098 estimation constants. There are no lender documents, so the
# statement is estimated from W-2 wages.
MORTGAGE_INTEREST_RATE = Decimal("0.04")
MORTGAGE_INTEREST_CAP = Decimal("10000")
MORTGAGE_INSURANCE_RATE = Decimal("0.005")
PRINCIPAL_TO_WAGES_RATIO = Decimal("3.5")
ESTIMATION_METHOD = "income_based"

CENTS = Decimal("0.01")


class Address(CamelModel):
    """Postal address as stored in the JSON columns."""
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    def is_blank(self) -> bool:
        return not any((self.street, self.city, self.state, self.zip))

    def city_line(self) -> str:
        return f"{self.city}, {self.state} {self.zip}".strip(", ")


PLACEHOLDER_NAME = "John Doe"
PLACEHOLDER_SSN = "123-45-6789"
PLACEHOLDER_ADDRESS = Address(street="123 Main St", city="Anytown", state="CA", zip="12345")

SAMPLE_EMPLOYER_NAME = "Sample Employer Inc."
SAMPLE_EMPLOYER_EIN = "12-3456789"
SAMPLE_EMPLOYER_ADDRESS = Address(street="456 Business Ave", city="Corporate City", state="CA", zip="54321")

LENDER_NAME = "First National Mortgage Bank"
LENDER_TIN = "98-7654321"
LENDER_ADDRESS = Address(street="789 Finance Blvd", city="Banking City", state="NY", zip="10001")


class Box12Entry(CamelModel):
    """W-2 box 12 code and amount (e.g. D = 401(k) deferrals)."""
    code: str
    amount: float = 0


class Box14Entry(CamelModel):
    """W-2 box 14 free-form item."""
    description: str
    amount: float = 0


class W2Record(CamelModel):
    """W-2 wage and tax statement snapshot attached to a user."""

    model_config = ConfigDict(extra="ignore")

    # Employee
    employee_name: str
    employee_ssn: str = Field(alias="employeeSSN")
    employee_address: Address

    # Employer
    employer_name: str
    employer_ein: str = Field(alias="employerEIN")
    employer_address: Address

    # Boxes
    box1_wages: float = Field(0, alias="box1_wages")  # Wages, tips, other compensation
    box2_federal_tax: float = Field(0, alias="box2_federalTax")  # Federal income tax withheld
    box3_social_security_wages: float = Field(0, alias="box3_socialSecurityWages")
    box4_social_security_tax: float = Field(0, alias="box4_socialSecurityTax")
    box5_medicare_wages: float = Field(0, alias="box5_medicareWages")
    box6_medicare_tax: float = Field(0, alias="box6_medicareTax")
    box7_social_security_tips: float = Field(0, alias="box7_socialSecurityTips")
    box8_allocated_tips: float = Field(0, alias="box8_allocatedTips")
    box9_verification_code: str = Field("", alias="box9_verificationCode")
    box10_dependent_care_benefits: float = Field(0, alias="box10_dependentCareBenefits")
    box11_nonqualified_plans: float = Field(0, alias="box11_nonqualifiedPlans")
    box12_codes: List[Box12Entry] = Field(default_factory=list, alias="box12_codes")
    box13_statutory_employee: bool = Field(False, alias="box13_statutoryEmployee")
    box13_retirement_plan: bool = Field(False, alias="box13_retirementPlan")
    box13_third_party_sick_pay: bool = Field(False, alias="box13_thirdPartySickPay")
    box14_other: List[Box14Entry] = Field(default_factory=list, alias="box14_other")

    # Derived totals
    taxable_income: float = 0
    total_tax_withheld: float = 0
    net_pay: float = 0

    # Extraction metadata
    extraction_date: datetime
    extraction_method: str
    confidence: float = Field(ge=0, le=1)

    last_modified: Optional[datetime] = None


class CalculationBasis(CamelModel):
    """How the 1098 amounts were estimated."""
    based_on_w2_income: float
    interest_rate: float
    estimation_method: str


class Form1098(CamelModel):
    """Form 1098 mortgage interest statement attached to a user."""

    model_config = ConfigDict(extra="ignore")

    # Borrower
    borrower_name: str
    borrower_ssn: str = Field(alias="borrowerSSN")
    borrower_address: Address

    # Lender
    lender_name: str
    lender_tin: str = Field(alias="lenderTIN")
    lender_address: Address

    # Boxes 1-5
    mortgage_interest_received: float = 0
    points_paid: float = 0
    refund_of_overpaid_interest: float = 0
    mortgage_insurance_premiums: float = 0
    outstanding_mortgage_principal: float = 0

    property_address: Address

    # Form metadata
    form_year: int
    generated_date: datetime
    account_number: str

    calculation_basis: Optional[CalculationBasis] = None
    last_modified: Optional[datetime] = None


def partial_model(model: Type[BaseModel], name: str, read_only: tuple = ()) -> Type[BaseModel]:
    """
    Build an all-optional variant of a record for PUT updates.

    Keeps the record's wire aliases and rejects unknown keys. Read-only
    fields are accepted so a client can send back a record it just read,
    but they never appear in model_dump() and so never reach the merge.
    """
    fields: Dict[str, Any] = {}
    for field_name, info in model.model_fields.items():
        alias = info.alias or to_camel(field_name)
        if field_name in read_only:
            fields[field_name] = (Optional[Any], Field(None, alias=alias, exclude=True))
        else:
            fields[field_name] = (Optional[info.annotation], Field(None, alias=alias))
    return create_model(
        name,
        __config__=ConfigDict(populate_by_name=True, extra="forbid"),
        **fields,
    )


W2Update = partial_model(
    W2Record, "W2Update",
    read_only=("extraction_date", "extraction_method", "last_modified"),
)

Form1098Update = partial_model(
    Form1098, "Form1098Update",
    read_only=("generated_date", "calculation_basis", "last_modified"),
)


def merge_record(record: BaseModel, changes: Dict[str, Any], modified_at: datetime) -> BaseModel:
    """
    Apply field-level changes (python field names) over a record.

    Fields not present in changes keep their stored values, so applying
    the same changes twice gives the same record apart from last_modified.
    """
    data = record.model_dump()
    data.update(changes)
    data["last_modified"] = modified_at
    return type(record).model_validate(data)


@dataclass
class MortgageEstimate:
    """Estimated Form 1098 box amounts."""
    mortgage_interest_received: float
    points_paid: float
    refund_of_overpaid_interest: float
    mortgage_insurance_premiums: float
    outstanding_mortgage_principal: float


def _cents(amount: Decimal) -> float:
    return float(amount.quantize(CENTS, rounding=ROUND_HALF_UP))


def calculate_1098_amounts(wages: float) -> MortgageEstimate:
    """
    Estimate Form 1098 boxes from W-2 box 1 wages.

    Box 1 interest is 4% of wages capped at $10,000, box 4 insurance is
    0.5% of wages and box 5 principal is 3.5x wages. Points and refunds
    are not estimated.
    """
    w = Decimal(str(wages or 0))
    interest = min(w * MORTGAGE_INTEREST_RATE, MORTGAGE_INTEREST_CAP)
    return MortgageEstimate(
        mortgage_interest_received=_cents(interest),
        points_paid=0.0,
        refund_of_overpaid_interest=0.0,
        mortgage_insurance_premiums=_cents(w * MORTGAGE_INSURANCE_RATE),
        outstanding_mortgage_principal=_cents(w * PRINCIPAL_TO_WAGES_RATIO),
    )


def first_address(*candidates: Optional[Any]) -> Address:
    """First non-blank address among the candidates, else the placeholder."""
    for candidate in candidates:
        if not candidate:
            continue
        address = candidate if isinstance(candidate, Address) else Address.model_validate(candidate)
        if not address.is_blank():
            return address
    return PLACEHOLDER_ADDRESS.model_copy()


def account_number_for(user_id: str) -> str:
    return "MTG-" + user_id[:8].upper()


def build_form_1098(user, w2: W2Record, generated_at: datetime) -> Form1098:
    """
    Assemble a Form 1098 from the user's W-2 snapshot.

    Borrower identity and address come from the W-2, then the profile,
    then a placeholder. Lender details are fixed sample values.
    """
    amounts = calculate_1098_amounts(w2.box1_wages)
    address = first_address(w2.employee_address, user.address)

    return Form1098(
        borrower_name=w2.employee_name or user.full_name or PLACEHOLDER_NAME,
        borrower_ssn=w2.employee_ssn or user.ssn or PLACEHOLDER_SSN,
        borrower_address=address,
        lender_name=LENDER_NAME,
        lender_tin=LENDER_TIN,
        lender_address=LENDER_ADDRESS.model_copy(),
        mortgage_interest_received=amounts.mortgage_interest_received,
        points_paid=amounts.points_paid,
        refund_of_overpaid_interest=amounts.refund_of_overpaid_interest,
        mortgage_insurance_premiums=amounts.mortgage_insurance_premiums,
        outstanding_mortgage_principal=amounts.outstanding_mortgage_principal,
        property_address=address.model_copy(),
        form_year=generated_at.year,
        generated_date=generated_at,
        account_number=account_number_for(user.id),
        calculation_basis=CalculationBasis(
            based_on_w2_income=w2.box1_wages,
            interest_rate=float(MORTGAGE_INTEREST_RATE),
            estimation_method=ESTIMATION_METHOD,
        ),
    )
