from dataclasses import asdict, dataclass
from typing import Any, Literal

Variant = Literal["default", "destructive", "warning"]


@dataclass(frozen=True)
class Notice:
    """User-facing message the browser shows as a toast."""

    title: str
    description: str
    variant: Variant = "default"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def plural(count: int, singular: str, plural_form: str | None = None) -> str:
    return singular if count == 1 else (plural_form or f"{singular}s")


def with_notices(payload: dict[str, Any], *notices: Notice) -> dict[str, Any]:
    """Attach notices to a JSON response body."""
    return {**payload, "notices": [n.to_dict() for n in notices]}
