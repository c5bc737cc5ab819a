from dataclasses import dataclass, field
from typing import Any

TERMINAL_STATUSES = frozenset({"completed", "failed"})

SUPPORTED_EXTENSIONS = (".pdf", ".png", ".jpg", ".jpeg", ".tiff")

CORE_ENTITY_FIELDS = ("name", "suid", "pan", "epic", "aadhar")
PERSONAL_ENTITY_FIELDS = ("age", "dob", "gender", "address", "phone")


@dataclass
class Entities:
    """Flat set of fields recognised in a document."""

    name: str | None = None
    suid: str | None = None
    pan: str | None = None
    epic: str | None = None
    aadhar: str | None = None
    age: str | None = None
    dob: str | None = None
    gender: str | None = None
    address: str | None = None
    phone: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Entities":
        data = data or {}
        known = CORE_ENTITY_FIELDS + PERSONAL_ENTITY_FIELDS
        return cls(**{key: _as_optional_str(data.get(key)) for key in known})

    def to_dict(self) -> dict[str, str | None]:
        """Core fields always, personal fields only when present."""
        out: dict[str, str | None] = {key: getattr(self, key) for key in CORE_ENTITY_FIELDS}
        for key in PERSONAL_ENTITY_FIELDS:
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass
class ExtractionResult:
    """Output of the extraction API for one uploaded file."""

    id: str
    file_name: str
    timestamp: str
    text: str = ""
    entities: Entities = field(default_factory=Entities)
    detailed_data: dict[str, Any] | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "ExtractionResult":
        """Build from the extraction API's camelCase payload."""
        return cls(
            id=str(payload.get("id") or ""),
            file_name=str(payload.get("fileName") or payload.get("file_name") or ""),
            timestamp=str(payload.get("timestamp") or ""),
            text=str(payload.get("text") or ""),
            entities=Entities.from_dict(payload.get("entities")),
            detailed_data=payload.get("detailedData") or payload.get("detailed_data"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "timestamp": self.timestamp,
            "text": self.text,
            "entities": self.entities.to_dict(),
            "detailed_data": self.detailed_data,
        }


@dataclass(frozen=True)
class UploadedFile:
    """A file received from the browser, held in memory until submitted."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        dot = self.name.rfind(".")
        return self.name[dot:].lower() if dot >= 0 else ""


@dataclass
class BulkUploadJob:
    """Server-tracked batch of files, polled until terminal status."""

    job_id: str
    total_files: int
    processed_files: int = 0
    status: str = "uploading"
    results: list[ExtractionResult] | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "BulkUploadJob":
        raw_results = payload.get("results")
        results = (
            [ExtractionResult.from_api(item) for item in raw_results]
            if isinstance(raw_results, list)
            else None
        )
        return cls(
            job_id=str(payload.get("job_id") or ""),
            total_files=int(payload.get("total_files") or 0),
            processed_files=int(payload.get("processed_files") or 0),
            status=str(payload.get("status") or "unknown"),
            results=results,
        )


def progress_percent(processed: int, total: int) -> int:
    """Display percentage for a bulk job, capped at 100.

    Halves round up (12.5 -> 13), matching what the browser shows.
    """
    if total <= 0 or processed <= 0:
        return 0
    return min(100, (processed * 200 + total) // (2 * total))


def _as_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
