import httpx

from app.logging.logger import Log
from app.scraper.exceptions import PageFetchError
from app.scraper.models import ScraperConfig


class PageFetcher:
    """Downloads the target page, with HTTP basic auth when requested."""

    def __init__(
        self,
        *,
        timeout_seconds: int = 30,
        user_agent: str = "AgentHub/0.1",
        http_client: httpx.Client | None = None,
    ) -> None:
        self._client = http_client or httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, config: ScraperConfig) -> str:
        auth = (
            httpx.BasicAuth(config.username or "", config.password or "")
            if config.requires_auth
            else None
        )
        Log.info(f"Fetching {config.url} (auth={'yes' if auth else 'no'})")
        try:
            response = self._client.get(config.url, auth=auth)
        except httpx.HTTPError as exc:
            raise PageFetchError(f"Could not fetch {config.url}: {exc}") from exc
        if not response.is_success:
            raise PageFetchError(
                f"Could not fetch {config.url}: {response.status_code} {response.reason_phrase}"
            )
        return response.text
