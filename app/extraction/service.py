from dataclasses import dataclass, field
from typing import Any

from app.database.exceptions import StorageError
from app.database.models import DocumentRecord
from app.database.repositories.documents_repository import DocumentsRepository
from app.extraction.api_client import ExtractionApiClient
from app.extraction.exceptions import EmptyQueueError
from app.extraction.models import Entities, ExtractionResult, UploadedFile
from app.logging.logger import Log

ID_CARD_ENTITY_FIELDS = {
    "pan": ("Income Tax Department", "PAN_Number"),
    "epic": ("Election Commission of India", "EPIC_Number"),
    "aadhar": ("Government of India", "Aadhar_Number"),
}

PERSONAL_ENTITY_KEYS = {
    "age": "Age",
    "dob": "DOB",
    "gender": "Gender",
    "address": "Address",
    "phone": "Phone",
}


@dataclass
class ProcessOutcome:
    """Results of one extraction batch plus the files that could not be stored."""

    results: list[ExtractionResult]
    saved_ids: dict[str, str] = field(default_factory=dict)
    save_failures: dict[str, str] = field(default_factory=dict)


def entities_from_detailed(detailed: dict[str, Any]) -> Entities:
    """Rebuild the flat entity set from nested detail."""
    cards = [c for c in detailed.get("ID_Cards") or [] if isinstance(c, dict)]

    def card_value(id_type: str, key: str) -> str | None:
        for card in cards:
            if card.get("ID_Type") == id_type and card.get(key):
                return str(card[key])
        return None

    sections = (detailed.get("Form_Responses") or {}).get("Sections") or {}
    personal = sections.get("Personal") or {}
    values: dict[str, Any] = {
        "name": detailed.get("Name"),
        "suid": detailed.get("SUID"),
    }
    for entity, (id_type, key) in ID_CARD_ENTITY_FIELDS.items():
        values[entity] = card_value(id_type, key)
    for entity, key in PERSONAL_ENTITY_KEYS.items():
        values[entity] = personal.get(key)
    return Entities.from_dict(values)


def record_to_result(record: DocumentRecord) -> ExtractionResult:
    """Turn a stored history row back into an extraction result.

    Rows saved by the dashboard wrap the detail as
    ``{"detailedData", "entities", "text"}``; sample rows store the detail
    itself, so entities are reconstructed from it.
    """
    data = record.extracted_data
    if "entities" in data:
        entities = Entities.from_dict(data.get("entities"))
        detailed = data.get("detailedData")
    else:
        entities = entities_from_detailed(data)
        detailed = data
    return ExtractionResult(
        id=record.id,
        file_name=record.file_name,
        timestamp=record.created_at or "",
        text=str(data.get("text") or ""),
        entities=entities,
        detailed_data=detailed or None,
    )


class ExtractionService:
    """Submits documents for extraction and manages the stored history."""

    def __init__(self, client: ExtractionApiClient, documents: DocumentsRepository) -> None:
        self._client = client
        self._documents = documents

    def process_files(
        self, files: list[UploadedFile], extraction_type: str = "all"
    ) -> ProcessOutcome:
        """Extract every file, then store each result.

        A result that cannot be stored is reported in ``save_failures``; the
        batch itself still succeeds.
        """
        if not files:
            raise EmptyQueueError("No files to process")
        results = self._client.process_files(files, extraction_type)
        outcome = ProcessOutcome(results=results)
        for result in results:
            try:
                saved_id = self._documents.save_result(result)
            except StorageError as exc:
                Log.error(f"Failed to save {result.file_name!r}: {exc}")
                outcome.save_failures[result.file_name] = str(exc)
                continue
            if saved_id:
                outcome.saved_ids[result.file_name] = saved_id
        Log.info(
            f"Processed {len(results)} files, saved {len(outcome.saved_ids)}, "
            f"failed to save {len(outcome.save_failures)}"
        )
        return outcome

    def history(self) -> list[DocumentRecord]:
        return self._documents.list_history()

    def processed_file_names(self) -> set[str]:
        return {record.file_name for record in self._documents.list_history()}

    def load_history_item(self, document_id: str) -> ExtractionResult:
        return record_to_result(self._documents.find_by_id(document_id))

    def search(self, query: str) -> list[ExtractionResult]:
        """Stored documents matching the query, as extraction results."""
        return [record_to_result(r) for r in self._documents.search(query)]

    def delete(self, document_id: str) -> None:
        self._documents.delete(document_id)

    def clear_history(self) -> None:
        self._documents.clear_all()

    def setup_database(self) -> int:
        """Create the table (when possible) and insert the sample documents."""
        try:
            self._documents.create_table()
        except StorageError as exc:
            Log.warning(f"Skipping table creation: {exc}")
        self._documents.ensure_table_exists()
        return self._documents.seed_samples()
