from unittest.mock import MagicMock

import httpx
import pytest

from app.database.exceptions import StorageError
from app.database.models import ScrapedRecord
from app.scraper.exceptions import PageFetchError
from app.scraper.fetcher import PageFetcher
from app.scraper.models import ScraperConfig, ScrapingMode
from app.scraper.service import ScraperService, build_prompt_extractor

HTML = "<html><head><title>Shop</title></head><body><p class='price'>42</p></body></html>"


def _record(content, mode: str = "full_page") -> ScrapedRecord:
    return ScrapedRecord(
        id="s-1",
        url="https://example.com",
        mode=mode,
        content=content,
        created_at="2024-03-05T10:15:30+00:00",
    )


def _make_service(prompt_extractor=None) -> tuple[ScraperService, MagicMock, MagicMock]:
    fetcher = MagicMock()
    fetcher.fetch.return_value = HTML
    repository = MagicMock()
    repository.save.side_effect = lambda url, mode, content: _record(content, mode)
    return ScraperService(fetcher, repository, prompt_extractor), fetcher, repository


class TestScraperConfig:
    def test_selectors_are_split_and_trimmed(self) -> None:
        config = ScraperConfig(url="https://example.com", target_selectors=" h1 , .price,,")
        assert config.selectors == ["h1", ".price"]

    def test_blank_prompts_are_skipped(self) -> None:
        config = ScraperConfig(url="https://example.com", prompts=["", "  ", "Price?"])
        assert config.active_prompts == ["Price?"]


class TestScrapeWebsite:
    def test_full_page_stores_raw_html(self) -> None:
        service, _fetcher, repository = _make_service()

        result = service.scrape_website(ScraperConfig(url="https://example.com"))

        assert result.success
        assert result.data.content == HTML
        repository.save.assert_called_once_with("https://example.com", "full_page", HTML)

    def test_targeted_uses_selectors(self) -> None:
        service, _fetcher, _repository = _make_service()
        config = ScraperConfig(
            url="https://example.com",
            scraping_mode=ScrapingMode.TARGETED,
            target_selectors=".price",
        )

        result = service.scrape_website(config)

        assert result.success
        assert result.data.content["selectors"] == {".price": ["42"]}
        assert result.data.content["title"] == "Shop"

    def test_prompt_based_uses_extractor(self) -> None:
        extractor = MagicMock()
        extractor.extract.return_value = {"prompt_1": "42"}
        service, _fetcher, _repository = _make_service(prompt_extractor=extractor)
        config = ScraperConfig(
            url="https://example.com",
            scraping_mode=ScrapingMode.PROMPT_BASED,
            prompts=["What is the price?", ""],
        )

        result = service.scrape_website(config)

        assert result.data.content == {"prompt_1": "42"}
        args = extractor.extract.call_args.args
        assert args[0] == "https://example.com"
        assert args[2] == ["What is the price?"]

    def test_prompt_based_without_extractor_fails(self) -> None:
        service, _fetcher, repository = _make_service()
        config = ScraperConfig(
            url="https://example.com",
            scraping_mode=ScrapingMode.PROMPT_BASED,
            prompts=["Price?"],
        )

        result = service.scrape_website(config)

        assert not result.success
        assert "not configured" in result.message
        repository.save.assert_not_called()

    def test_missing_url_fails_without_fetching(self) -> None:
        service, fetcher, _repository = _make_service()

        result = service.scrape_website(ScraperConfig(url=""))

        assert not result.success
        assert result.message == "Please enter a URL to scrape"
        fetcher.fetch.assert_not_called()

    def test_fetch_error_is_reported(self) -> None:
        service, fetcher, _repository = _make_service()
        fetcher.fetch.side_effect = PageFetchError("Could not fetch https://example.com: 404")

        result = service.scrape_website(ScraperConfig(url="https://example.com"))

        assert not result.success
        assert "404" in result.message

    def test_storage_error_is_reported(self) -> None:
        service, _fetcher, repository = _make_service()
        repository.save.side_effect = StorageError("POST scraped_content failed: 500")

        result = service.scrape_website(ScraperConfig(url="https://example.com"))

        assert not result.success


class TestQueryScrapedData:
    def test_blank_query_returns_everything(self) -> None:
        service, _fetcher, repository = _make_service()
        repository.list_all.return_value = [_record("a"), _record("b")]

        assert len(service.query_scraped_data("  ")) == 2
        repository.query.assert_not_called()

    def test_query_delegates_to_repository(self) -> None:
        service, _fetcher, repository = _make_service()
        repository.query.return_value = [_record("match")]

        items = service.query_scraped_data("match")

        assert [i.content for i in items] == ["match"]
        repository.query.assert_called_once_with("match")


class TestPageFetcher:
    def test_sends_basic_auth_when_required(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=HTML)

        fetcher = PageFetcher(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
        config = ScraperConfig(
            url="https://example.com", requires_auth=True, username="u", password="p"
        )

        assert fetcher.fetch(config) == HTML
        assert seen[0].headers["Authorization"].startswith("Basic ")

    def test_error_status_raises(self) -> None:
        fetcher = PageFetcher(
            http_client=httpx.Client(
                transport=httpx.MockTransport(lambda request: httpx.Response(404))
            )
        )

        with pytest.raises(PageFetchError, match="404"):
            fetcher.fetch(ScraperConfig(url="https://example.com"))


class TestBuildPromptExtractor:
    def test_none_without_api_key(self) -> None:
        settings = MagicMock(openai_api_key="")
        assert build_prompt_extractor(settings) is None
