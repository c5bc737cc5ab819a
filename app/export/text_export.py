"""Plain-text and CSV renderings of extraction results for download."""

import csv
import io
import re
from datetime import date, datetime

from app.database.samples import is_sample_document
from app.export.exceptions import NothingToExportError
from app.extraction.models import ExtractionResult

DOCUMENT_SEPARATOR = "\n\n" + "=" * 50 + "\n\n"
ELECTION_CARD_TYPE = "Election Commission of India"
UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')

CSV_COLUMNS = ("file_name", "processed_at", "name", "suid", "pan", "epic", "aadhar")


def build_text_export(results: list[ExtractionResult]) -> str:
    if not results:
        raise NothingToExportError("Process files first")
    return DOCUMENT_SEPARATOR.join(_render_document(item) for item in results)


def text_export_filename(results: list[ExtractionResult], today: date | None = None) -> str:
    """``<SUID>_<name>.txt`` for a single document, a dated name otherwise."""
    if len(results) == 1:
        entities = results[0].entities
        clean_name = (
            UNSAFE_FILENAME_CHARS.sub("_", entities.name).strip() if entities.name else None
        )
        if entities.suid and clean_name:
            return f"{entities.suid}_{clean_name}.txt"
        if entities.suid:
            return f"{entities.suid}.txt"
        if clean_name:
            return f"{clean_name}.txt"
        return "OCR_Data.txt"
    day = today or date.today()
    return f"OCR_Data_{day.isoformat()}.txt"


def build_results_csv(results: list[ExtractionResult]) -> str:
    """One row per already-fetched result."""
    if not results:
        raise NothingToExportError("Process files first")
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for item in results:
        e = item.entities
        writer.writerow(
            [item.file_name, item.timestamp, e.name, e.suid, e.pan, e.epic, e.aadhar]
        )
    return buffer.getvalue()


def _render_document(item: ExtractionResult) -> str:
    sample = is_sample_document(item.file_name)
    lines = [f"File: {item.file_name}", f"Processed: {_format_timestamp(item.timestamp)}", ""]

    entities = item.entities
    for label, value in (
        ("Name", entities.name),
        ("SUID", entities.suid),
        ("Aadhar", entities.aadhar),
        ("PAN", entities.pan),
    ):
        if value:
            lines.append(f"{label}: {value}")
    if entities.epic and not sample:
        lines.append(f"Voter ID: {entities.epic}")

    detailed = item.detailed_data
    if detailed:
        lines += ["", "Detailed Information:"]
        personal = ((detailed.get("Form_Responses") or {}).get("Sections") or {}).get("Personal")
        if personal:
            lines += ["", "Personal Information:"]
            lines += [f"{key}: {value}" for key, value in personal.items()]

        cards = [
            card
            for card in detailed.get("ID_Cards") or []
            if not (sample and card.get("ID_Type") == ELECTION_CARD_TYPE)
        ]
        if cards:
            lines += ["", "ID Cards:"]
            for index, card in enumerate(cards, start=1):
                lines += ["", f"Card {index} - {card.get('ID_Type')}:"]
                lines += [f"{key}: {value}" for key, value in card.items() if key != "ID_Type"]

        pages = detailed.get("Page_Details")
        if pages:
            lines += ["", "Page Details:"]
            for page, details in pages.items():
                lines += ["", f"{page}:"]
                lines += [
                    f"{key}: {value}"
                    for key, value in (details or {}).items()
                    if isinstance(value, str)
                ]

    return "\n".join(lines) + "\n"


def _format_timestamp(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return value
