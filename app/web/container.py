from dataclasses import dataclass

from app.auth.client import SupabaseAuthClient
from app.config.settings import Settings
from app.database.repositories.documents_repository import DocumentsRepository
from app.database.repositories.scraped_content_repository import ScrapedContentRepository
from app.database.rest_client import SupabaseRestClient
from app.extraction.api_client import ExtractionApiClient
from app.extraction.bulk_poller import BulkProgressTracker, BulkUploadPoller
from app.extraction.service import ExtractionService
from app.scraper.fetcher import PageFetcher
from app.scraper.service import ScraperService, build_prompt_extractor
from app.web.state import DashboardStateStore


@dataclass
class Container:
    """Everything the HTTP layer needs, built once at startup."""

    settings: Settings
    auth: SupabaseAuthClient
    extraction_client: ExtractionApiClient
    extraction: ExtractionService
    scraper: ScraperService
    tracker: BulkProgressTracker
    poller: BulkUploadPoller
    states: DashboardStateStore


def build_container(settings: Settings) -> Container:
    """Build a Container with all service wrappers wired to settings."""
    rest = SupabaseRestClient(
        base_url=settings.supabase_url,
        api_key=settings.supabase_service_role_key or settings.supabase_anon_key,
        timeout_seconds=settings.supabase_timeout_seconds,
    )
    documents = DocumentsRepository(
        rest,
        table=settings.documents_table,
        sql_fallback=settings.db_fallback_enabled,
    )
    scraped = ScrapedContentRepository(
        rest,
        table=settings.scraped_table,
        sql_fallback=settings.db_fallback_enabled,
    )
    extraction_client = ExtractionApiClient(
        base_url=settings.extraction_api_url,
        timeout_seconds=settings.extraction_timeout_seconds,
    )
    tracker = BulkProgressTracker()
    scraper = ScraperService(
        PageFetcher(
            timeout_seconds=settings.scraper_timeout_seconds,
            user_agent=settings.scraper_user_agent,
        ),
        scraped,
        prompt_extractor=build_prompt_extractor(settings),
    )
    return Container(
        settings=settings,
        auth=SupabaseAuthClient(
            base_url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            timeout_seconds=settings.supabase_timeout_seconds,
        ),
        extraction_client=extraction_client,
        extraction=ExtractionService(extraction_client, documents),
        scraper=scraper,
        tracker=tracker,
        poller=BulkUploadPoller(extraction_client, tracker, settings),
        states=DashboardStateStore(),
    )
