from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class User:
    id: str
    email: str | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "User":
        return cls(id=str(payload["id"]), email=payload.get("email"))


@dataclass(frozen=True)
class Session:
    """Tokens issued by the auth platform for one signed-in user."""

    access_token: str
    refresh_token: str
    expires_at: int | None
    user: User

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Session":
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or "",
            expires_at=payload.get("expires_at"),
            user=User.from_api(payload["user"]),
        )


@dataclass(frozen=True)
class PkcePair:
    verifier: str
    challenge: str
