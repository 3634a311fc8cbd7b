"""
Tax Form API Tests

Tests:
1. W-2 extraction requires an uploaded W-2 that still exists on disk
2. Extractor is swappable through dependency overrides
3. Field-level corrections to W-2 and 1098 data
4. 1098 generation and PDF download
5. Full flow: signup -> login -> upload -> extract -> generate -> download

Run with: pytest tests/test_tax_api.py -v
"""

from io import BytesIO

import pdfplumber
import pytest
from fastapi.testclient import TestClient

from taxfiler.main import app
from taxfiler.modules.tax import router as tax_router
from taxfiler.modules.tax.extraction import PlaceholderW2Extractor, get_w2_extractor

from conftest import bearer


PDF_BYTES = b"%PDF-1.4\n% sample W-2\n"
DASHBOARD = "/api/dashboard"


def upload_w2(client, headers):
    response = client.post(
        f"{DASHBOARD}/upload-w2",
        headers=headers,
        files={"w2Form": ("w2.pdf", PDF_BYTES, "application/pdf")},
    )
    assert response.status_code == 200, response.text
    return response.json()["fileName"]


@pytest.fixture
def extracted(client, auth_headers):
    """Signed-in user with an uploaded and extracted W-2."""
    upload_w2(client, auth_headers)
    response = client.post(f"{DASHBOARD}/extract-w2", headers=auth_headers)
    assert response.status_code == 200, response.text
    return auth_headers


@pytest.fixture
def generated(client, extracted):
    """Signed-in user with a generated 1098."""
    response = client.post(f"{DASHBOARD}/generate-1098", headers=extracted)
    assert response.status_code == 200, response.text
    return extracted


class HighEarnerExtractor(PlaceholderW2Extractor):
    SAMPLE_BOXES = {**PlaceholderW2Extractor.SAMPLE_BOXES, "box1_wages": 400000.00}

    @property
    def method(self):
        return "test"


# ============================================================================
# W-2 extraction
# ============================================================================

class TestExtractW2:

    def test_requires_upload(self, client, auth_headers):
        response = client.post(f"{DASHBOARD}/extract-w2", headers=auth_headers)

        assert response.status_code == 404
        assert "upload a W-2" in response.json()["message"]

    def test_file_missing_on_disk(self, client, auth_headers, document_store):
        file_name = upload_w2(client, auth_headers)
        (document_store.base_dir / "w2-forms" / file_name).unlink()

        response = client.post(f"{DASHBOARD}/extract-w2", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "W-2 file not found on server."

    def test_extracts_sample_w2(self, client, auth_headers):
        file_name = upload_w2(client, auth_headers)

        response = client.post(f"{DASHBOARD}/extract-w2", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        data = body["data"]
        assert body["fileName"] == file_name
        assert data["employeeName"] == "Jane Filer"
        assert data["box1_wages"] == 65000.0
        assert data["box2_federalTax"] == 8500.0
        assert data["netPay"] == 56500.0
        assert data["extractionMethod"] == "mocked"
        assert 0 <= data["confidence"] <= 1

    def test_extractor_can_be_overridden(self, client, auth_headers):
        app.dependency_overrides[get_w2_extractor] = HighEarnerExtractor
        upload_w2(client, auth_headers)

        data = client.post(f"{DASHBOARD}/extract-w2", headers=auth_headers).json()["data"]
        assert data["extractionMethod"] == "test"
        assert data["box1_wages"] == 400000.0

        form = client.post(f"{DASHBOARD}/generate-1098", headers=auth_headers).json()["data"]
        assert form["mortgageInterestReceived"] == 10000.0

    def test_get_w2_before_extraction(self, client, auth_headers):
        response = client.get(f"{DASHBOARD}/w2-data", headers=auth_headers)
        assert response.status_code == 404

    def test_get_w2_after_extraction(self, client, extracted):
        response = client.get(f"{DASHBOARD}/w2-data", headers=extracted)

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["employerEIN"] == "12-3456789"
        assert body["lastExtraction"] is not None


class TestUpdateW2:

    def test_partial_update(self, client, extracted):
        response = client.put(f"{DASHBOARD}/w2-data", headers=extracted, json={
            "box1_wages": 80000,
            "employerName": "Acme Corp",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["box1_wages"] == 80000.0
        assert data["employerName"] == "Acme Corp"
        assert data["box2_federalTax"] == 8500.0
        assert data["lastModified"] is not None

        stored = client.get(f"{DASHBOARD}/w2-data", headers=extracted).json()["data"]
        assert stored["box1_wages"] == 80000.0

    def test_null_means_unchanged(self, client, extracted):
        response = client.put(f"{DASHBOARD}/w2-data", headers=extracted, json={"employerName": None})

        assert response.status_code == 200
        assert response.json()["data"]["employerName"] == "Sample Employer Inc."

    @pytest.mark.parametrize("payload", [
        {"notABox": 1},
        {"box1_wages": "lots"},
        {"confidence": 2},
        {"box13_retirementPlan": "maybe"},
    ])
    def test_rejects_invalid_changes(self, client, extracted, payload):
        response = client.put(f"{DASHBOARD}/w2-data", headers=extracted, json=payload)
        assert response.status_code == 400

    def test_requires_existing_w2(self, client, auth_headers):
        response = client.put(f"{DASHBOARD}/w2-data", headers=auth_headers, json={"box1_wages": 1})
        assert response.status_code == 404

    def test_read_edit_write_round_trip(self, client, extracted):
        record = client.get(f"{DASHBOARD}/w2-data", headers=extracted).json()["data"]
        record["box1_wages"] = 70000

        response = client.put(f"{DASHBOARD}/w2-data", headers=extracted, json=record)

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["box1_wages"] == 70000.0
        assert data["employeeName"] == record["employeeName"]
        assert data["lastModified"] is not None

    def test_server_managed_fields_are_ignored(self, client, extracted):
        before = client.get(f"{DASHBOARD}/w2-data", headers=extracted).json()["data"]

        response = client.put(f"{DASHBOARD}/w2-data", headers=extracted, json={
            "extractionMethod": "manual",
            "extractionDate": "2001-01-01T00:00:00Z",
            "lastModified": "2001-01-01T00:00:00Z",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["extractionMethod"] == "mocked"
        assert data["extractionDate"] == before["extractionDate"]
        assert not data["lastModified"].startswith("2001")


# ============================================================================
# Form 1098
# ============================================================================

class TestForm1098Api:

    def test_generate_requires_w2(self, client, auth_headers):
        response = client.post(f"{DASHBOARD}/generate-1098", headers=auth_headers)
        assert response.status_code == 404

    def test_get_before_generation(self, client, auth_headers):
        response = client.get(f"{DASHBOARD}/1098-data", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_generate(self, client, extracted):
        response = client.post(f"{DASHBOARD}/generate-1098", headers=extracted)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["mortgageInterestReceived"] == 2600.0
        assert data["mortgageInsurancePremiums"] == 325.0
        assert data["outstandingMortgagePrincipal"] == 227500.0
        assert data["lenderTIN"] == "98-7654321"
        assert data["accountNumber"].startswith("MTG-")
        assert data["calculationBasis"]["estimationMethod"] == "income_based"

    def test_regenerate_uses_corrected_wages(self, client, extracted):
        client.put(f"{DASHBOARD}/w2-data", headers=extracted, json={"box1_wages": 100000})

        data = client.post(f"{DASHBOARD}/generate-1098", headers=extracted).json()["data"]
        assert data["mortgageInterestReceived"] == 4000.0

    def test_partial_update(self, client, generated):
        response = client.put(f"{DASHBOARD}/1098-data", headers=generated, json={
            "pointsPaid": 1200.5,
            "lenderName": "Local Credit Union",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pointsPaid"] == 1200.5
        assert data["lenderName"] == "Local Credit Union"
        assert data["mortgageInterestReceived"] == 2600.0

        body = client.get(f"{DASHBOARD}/1098-data", headers=generated).json()
        assert body["data"]["pointsPaid"] == 1200.5
        assert body["lastGeneration"] is not None

    def test_read_edit_write_round_trip(self, client, generated):
        record = client.get(f"{DASHBOARD}/1098-data", headers=generated).json()["data"]
        record["pointsPaid"] = 250
        record["calculationBasis"] = None

        response = client.put(f"{DASHBOARD}/1098-data", headers=generated, json=record)

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["pointsPaid"] == 250.0
        assert data["generatedDate"] == record["generatedDate"]
        assert data["calculationBasis"]["estimationMethod"] == "income_based"

    def test_update_rejects_unknown_field(self, client, generated):
        response = client.put(f"{DASHBOARD}/1098-data", headers=generated, json={"box99": 1})
        assert response.status_code == 400

    def test_download_requires_1098(self, client, auth_headers):
        response = client.get(f"{DASHBOARD}/download-1098", headers=auth_headers)
        assert response.status_code == 404

    def test_download(self, client, generated):
        response = client.get(f"{DASHBOARD}/download-1098", headers=generated)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        disposition = response.headers["content-disposition"]
        assert disposition.startswith("attachment;")
        assert "Form1098_" in disposition and "_Jane_Filer.pdf" in disposition
        assert response.content.startswith(b"%PDF")

    def test_render_failure_is_a_json_error(self, client, generated, monkeypatch):
        def broken_render(form):
            raise RuntimeError("layout failed")

        monkeypatch.setattr(tax_router, "render_form_1098_pdf", broken_render)
        lenient = TestClient(app, raise_server_exceptions=False)

        response = lenient.get(f"{DASHBOARD}/download-1098", headers=generated)

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json()["message"] == "Something went wrong!"


# ============================================================================
# End to end
# ============================================================================

def test_full_filing_flow(client):
    signup = client.post("/api/auth/signup", json={
        "email": "flow@example.com",
        "password": "flow-pass-1",
        "firstName": "Flo",
        "lastName": "Wright",
    })
    assert signup.status_code == 201

    login = client.post("/api/auth/login", json={"email": "flow@example.com", "password": "flow-pass-1"})
    headers = bearer(login.json()["token"])

    upload_w2(client, headers)
    assert client.post(f"{DASHBOARD}/extract-w2", headers=headers).status_code == 200
    assert client.post(f"{DASHBOARD}/generate-1098", headers=headers).status_code == 200

    response = client.get(f"{DASHBOARD}/download-1098", headers=headers)
    assert response.status_code == 200

    with pdfplumber.open(BytesIO(response.content)) as pdf:
        text = "\n".join(page.extract_text() or "" for page in pdf.pages)

    assert "Flo Wright" in text
    assert "$2,600.00" in text
    assert "$325.00" in text
    assert "$227,500.00" in text

    me = client.get(f"{DASHBOARD}/me", headers=headers).json()["user"]
    assert me["w2Uploaded"] is True
    assert me["formCompletionStatus"] == "in_progress"
