"""Sample rows inserted by the "set up database" action."""

from typing import Any

SAMPLE_FILE_MARKER = "Sample_Document"
TEST_DOCUMENT_NAME = "test_document.pdf"


def is_sample_document(file_name: str) -> bool:
    return SAMPLE_FILE_MARKER in file_name or file_name == TEST_DOCUMENT_NAME


def _sample(
    file_name: str,
    name: str,
    suid: str,
    personal: dict[str, str],
    second_card: dict[str, str],
    aadhar: str,
) -> dict[str, Any]:
    return {
        "file_name": file_name,
        "suid": suid,
        "extracted_data": {
            "Name": name,
            "SUID": suid,
            "Form_Responses": {"Sections": {"Personal": personal}},
            "ID_Cards": [
                {
                    "ID_Type": "Government of India",
                    "Card_Holder_Name": name,
                    "Aadhar_Number": aadhar,
                    "Gender": personal["Gender"],
                    "Address": personal["Address"],
                },
                {"Card_Holder_Name": name, **second_card},
            ],
            "Page_Details": {
                "Page_1": {
                    "Text": "Sample text from page 1",
                    "Extracted_Name": name,
                    "Extracted_SUID": suid,
                }
            },
        },
        "status": "completed",
    }


SAMPLE_DOCUMENTS: list[dict[str, Any]] = [
    _sample(
        "Sample_Document.pdf",
        "John Doe",
        "4/9/2/127A_U/G/14_1",
        {"Age": "35", "DOB": "15/05/1988", "Gender": "Male", "Address": "123 Main St, Mumbai, India"},
        {"ID_Type": "Income Tax Department", "PAN_Number": "ABCDE1234F"},
        "1234 5678 9012",
    ),
    _sample(
        "Sample_Document_2.pdf",
        "Jane Smith",
        "5/10/3/128B_V/H/15_2",
        {"Age": "28", "DOB": "22/09/1995", "Gender": "Female", "Address": "456 Park Ave, Delhi, India"},
        {"ID_Type": "Election Commission of India", "EPIC_Number": "MT/10/053/017854"},
        "9876 5432 1098",
    ),
]
