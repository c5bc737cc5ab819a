import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class DocumentRecord:
    """Represents a row from the documents table."""

    id: str
    file_name: str
    suid: str | None = None
    extracted_data: dict[str, Any] = field(default_factory=dict)
    status: str = "completed"
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DocumentRecord":
        """Accept rows from PostgREST (JSON) and psycopg (native types) alike."""
        return cls(
            id=str(row["id"]),
            file_name=row.get("file_name") or "",
            suid=row.get("suid"),
            extracted_data=decode_json_column(row.get("extracted_data")),
            status=row.get("status") or "completed",
            created_at=_timestamp(row.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "suid": self.suid,
            "extracted_data": self.extracted_data,
            "status": self.status,
            "processed_at": self.created_at,
        }


@dataclass
class ScrapedRecord:
    """Represents a row from the scraped_content table."""

    id: str
    url: str
    mode: str
    content: str | dict[str, Any]
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ScrapedRecord":
        content = row.get("content")
        return cls(
            id=str(row["id"]),
            url=row.get("url") or "",
            mode=row.get("mode") or "",
            content=content if content is not None else "",
            created_at=_timestamp(row.get("created_at")),
        )


def decode_json_column(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return {}
    return value if isinstance(value, dict) else {}


def _timestamp(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
