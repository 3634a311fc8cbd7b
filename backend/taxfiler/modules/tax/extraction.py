"""
W-2 extraction interface.

All extractors turn a stored W-2 upload into a W2Record. The shipped
PlaceholderW2Extractor does not read the file: it returns a fixed sample
statement personalised with the user's profile. A real OCR/PDF extractor
implements the same interface and is swapped in through get_w2_extractor.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from taxfiler.modules.tax.forms import (
    W2Record,
    first_address,
    PLACEHOLDER_NAME,
    PLACEHOLDER_SSN,
    SAMPLE_EMPLOYER_NAME,
    SAMPLE_EMPLOYER_EIN,
    SAMPLE_EMPLOYER_ADDRESS,
)
from taxfiler.shared.models.base import utcnow


class DocumentExtractor(ABC):
    """
    Abstract base class for W-2 extractors.
    """

    @property
    @abstractmethod
    def method(self) -> str:
        """
        Tag recorded as extractionMethod.
        Examples: 'mocked', 'ocr', 'pdf-parse'
        """
        pass

    @abstractmethod
    def extract(self, file_path: Path, user) -> W2Record:
        """
        Build a W2Record from the uploaded file.

        Args:
            file_path: Path to the stored W-2 upload
            user: Owning User, used for identity fallbacks

        Returns:
            The extracted W-2 snapshot
        """
        pass


class PlaceholderW2Extractor(DocumentExtractor):
    """
    Stand-in extractor returning a fixed sample W-2.

    Box values are constant; employee identity comes from the profile.
    """

    SAMPLE_BOXES = {
        "box1_wages": 65000.00,
        "box2_federal_tax": 8500.00,
        "box3_social_security_wages": 65000.00,
        "box4_social_security_tax": 4030.00,
        "box5_medicare_wages": 65000.00,
        "box6_medicare_tax": 942.50,
        "box7_social_security_tips": 0.00,
        "box8_allocated_tips": 0.00,
        "box9_verification_code": "",
        "box10_dependent_care_benefits": 0.00,
        "box11_nonqualified_plans": 0.00,
        "box12_codes": [],
        "box13_statutory_employee": False,
        "box13_retirement_plan": True,
        "box13_third_party_sick_pay": False,
        "box14_other": [],
    }
    CONFIDENCE = 0.95

    @property
    def method(self) -> str:
        return "mocked"

    def extract(self, file_path: Path, user) -> W2Record:
        wages = self.SAMPLE_BOXES["box1_wages"]
        withheld = self.SAMPLE_BOXES["box2_federal_tax"]
        return W2Record(
            employee_name=user.full_name or PLACEHOLDER_NAME,
            employee_ssn=user.ssn or PLACEHOLDER_SSN,
            employee_address=first_address(user.address),
            employer_name=SAMPLE_EMPLOYER_NAME,
            employer_ein=SAMPLE_EMPLOYER_EIN,
            employer_address=SAMPLE_EMPLOYER_ADDRESS.model_copy(),
            **self.SAMPLE_BOXES,
            taxable_income=wages,
            total_tax_withheld=withheld,
            net_pay=wages - withheld,
            extraction_date=utcnow(),
            extraction_method=self.method,
            confidence=self.CONFIDENCE,
        )


def get_w2_extractor() -> DocumentExtractor:
    """Dependency providing the active W-2 extractor."""
    return PlaceholderW2Extractor()
