from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.database.models import ScrapedRecord
from app.scraper.exceptions import InvalidScraperConfigError


class ScrapingMode(str, Enum):
    FULL_PAGE = "full_page"
    TARGETED = "targeted"
    PROMPT_BASED = "prompt_based"


@dataclass
class ScraperConfig:
    """What to fetch and how to extract content from it."""

    url: str
    scraping_mode: ScrapingMode = ScrapingMode.FULL_PAGE
    requires_auth: bool = False
    username: str | None = None
    password: str | None = None
    target_selectors: str = ""
    prompts: list[str] = field(default_factory=lambda: [""])

    def validate(self) -> None:
        """Raises:
        InvalidScraperConfigError: if the URL or mode-specific input is missing.
        """
        if not self.url or not self.url.strip():
            raise InvalidScraperConfigError("Please enter a URL to scrape")
        if not self.url.startswith(("http://", "https://")):
            raise InvalidScraperConfigError(f"Unsupported URL: {self.url}")
        if self.requires_auth and not self.username:
            raise InvalidScraperConfigError("A username is required for authenticated pages")
        if self.scraping_mode is ScrapingMode.TARGETED and not self.selectors:
            raise InvalidScraperConfigError("Targeted mode needs at least one CSS selector")
        if self.scraping_mode is ScrapingMode.PROMPT_BASED and not self.active_prompts:
            raise InvalidScraperConfigError("Prompt-based mode needs at least one prompt")

    @property
    def selectors(self) -> list[str]:
        return [s.strip() for s in self.target_selectors.split(",") if s.strip()]

    @property
    def active_prompts(self) -> list[str]:
        return [p.strip() for p in self.prompts if p and p.strip()]


@dataclass
class ScrapedData:
    """Stored output of one web-content extraction request."""

    id: str
    url: str
    timestamp: str
    mode: ScrapingMode
    content: str | dict[str, Any]

    @classmethod
    def from_record(cls, record: ScrapedRecord) -> "ScrapedData":
        return cls(
            id=record.id,
            url=record.url,
            timestamp=record.created_at or "",
            mode=ScrapingMode(record.mode),
            content=record.content,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "timestamp": self.timestamp,
            "mode": self.mode.value,
            "content": self.content,
        }


@dataclass
class ScrapeResult:
    success: bool
    message: str
    data: ScrapedData | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data.to_dict() if self.data else None,
        }
