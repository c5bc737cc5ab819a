from typing import Any

import pytest

from app.extraction.models import Entities, ExtractionResult, UploadedFile


@pytest.fixture()
def detailed_data() -> dict[str, Any]:
    """Nested detail in the shape the extraction API returns."""
    return {
        "Name": "Asha Verma",
        "SUID": "SU-1001",
        "Form_Responses": {
            "Sections": {
                "Personal": {"Age": "34", "Gender": "Female", "Phone": "9876543210"},
            }
        },
        "ID_Cards": [
            {
                "ID_Type": "Income Tax Department",
                "Card_Holder_Name": "Asha Verma",
                "PAN_Number": "ABCPV1234D",
            },
            {
                "ID_Type": "Election Commission of India",
                "Card_Holder_Name": "Asha Verma",
                "EPIC_Number": "XYZ1234567",
            },
        ],
        "Page_Details": {
            "Page_1": {"Header": "Application Form", "Count": 3},
        },
    }


@pytest.fixture()
def extraction_result(detailed_data: dict[str, Any]) -> ExtractionResult:
    return ExtractionResult(
        id="res-1",
        file_name="asha.pdf",
        timestamp="2024-03-05T10:15:30Z",
        text="raw text",
        entities=Entities(name="Asha Verma", suid="SU-1001", pan="ABCPV1234D", epic="XYZ1234567"),
        detailed_data=detailed_data,
    )


@pytest.fixture()
def pdf_file() -> UploadedFile:
    return UploadedFile(name="scan.pdf", content=b"%PDF-1.4 test", content_type="application/pdf")
