from pydantic import BaseModel, Field

from app.preferences.theme import Theme
from app.scraper.models import ScraperConfig, ScrapingMode


class SignInRequest(BaseModel):
    email: str
    password: str


class ThemeRequest(BaseModel):
    theme: Theme


class ScrapeRequest(BaseModel):
    url: str = ""
    scraping_mode: ScrapingMode = ScrapingMode.FULL_PAGE
    requires_auth: bool = False
    username: str | None = None
    password: str | None = None
    target_selectors: str = ""
    prompts: list[str] = Field(default_factory=lambda: [""])

    def to_config(self) -> ScraperConfig:
        return ScraperConfig(
            url=self.url,
            scraping_mode=self.scraping_mode,
            requires_auth=self.requires_auth,
            username=self.username,
            password=self.password,
            target_selectors=self.target_selectors,
            prompts=list(self.prompts),
        )
