from typing import Any

from app.config.settings import Settings
from app.database.exceptions import StorageError
from app.database.repositories.scraped_content_repository import ScrapedContentRepository
from app.logging.logger import Log
from app.scraper.exceptions import ScrapeError
from app.scraper.extractors import extract_targeted, page_text
from app.scraper.fetcher import PageFetcher
from app.scraper.models import ScrapedData, ScrapeResult, ScraperConfig, ScrapingMode
from app.scraper.openai_client_adapter import OpenAIClientAdapter
from app.scraper.prompt_extractor import PromptExtractor


class ScraperService:
    """Runs web-content extraction requests and keeps their results."""

    def __init__(
        self,
        fetcher: PageFetcher,
        repository: ScrapedContentRepository,
        prompt_extractor: PromptExtractor | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._repository = repository
        self._prompt_extractor = prompt_extractor

    def scrape_website(self, config: ScraperConfig) -> ScrapeResult:
        """Fetch, extract and store. Failures come back as ``success=False``."""
        Log.info(f"Starting web scrape of {config.url} ({config.scraping_mode.value})")
        try:
            config.validate()
            content = self._extract(config, self._fetcher.fetch(config))
            record = self._repository.save(config.url, config.scraping_mode.value, content)
        except (ScrapeError, StorageError) as exc:
            Log.error(f"Error during scraping of {config.url}: {exc}")
            return ScrapeResult(success=False, message=str(exc))
        return ScrapeResult(
            success=True,
            message="Scraping completed successfully",
            data=ScrapedData.from_record(record),
        )

    def get_all_scraped_data(self) -> list[ScrapedData]:
        return [ScrapedData.from_record(r) for r in self._repository.list_all()]

    def query_scraped_data(self, query: str) -> list[ScrapedData]:
        """Blank queries return everything."""
        if not query.strip():
            return self.get_all_scraped_data()
        return [ScrapedData.from_record(r) for r in self._repository.query(query)]

    def _extract(self, config: ScraperConfig, html: str) -> str | dict[str, Any]:
        if config.scraping_mode is ScrapingMode.FULL_PAGE:
            return html
        if config.scraping_mode is ScrapingMode.TARGETED:
            return extract_targeted(html, config.selectors)
        if self._prompt_extractor is None:
            raise ScrapeError("Prompt-based scraping is not configured (OPENAI_API_KEY)")
        return self._prompt_extractor.extract(
            config.url, page_text(html), config.active_prompts
        )


def build_prompt_extractor(settings: Settings) -> PromptExtractor | None:
    """Prompt extraction is available only when an API key is configured."""
    if not settings.openai_api_key:
        return None
    client = OpenAIClientAdapter(
        api_key=settings.openai_api_key,
        timeout_seconds=settings.openai_timeout_seconds,
        base_url=settings.openai_base_url,
    )
    return PromptExtractor(client=client, model=settings.openai_model_name)
