class ScrapeError(Exception):
    """Base exception for web-content extraction failures."""


class InvalidScraperConfigError(ScrapeError):
    """Raised when a scrape request is missing required settings."""


class PageFetchError(ScrapeError):
    """Raised when the target page cannot be downloaded."""


class PromptExtractionError(ScrapeError):
    """Raised when the AI provider fails to answer an extraction prompt."""
