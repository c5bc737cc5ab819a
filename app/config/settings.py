from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allow_origins: str = "http://localhost:5173"

    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_timeout_seconds: int = 15
    documents_table: str = "documents"
    scraped_table: str = "scraped_content"

    db_fallback_enabled: bool = False
    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "postgres"
    db_username: str = "postgres"
    db_password: str = "secret"

    extraction_api_url: str = "http://localhost:8080/api"
    extraction_timeout_seconds: int = 120

    bulk_poll_interval_seconds: float = 2.0
    bulk_max_polls: int = 1800

    scraper_timeout_seconds: int = 30
    scraper_user_agent: str = "AgentHub/0.1 (+https://github.com/agent-hub)"

    openai_api_key: str = ""
    openai_model_name: str = "gpt-4o-mini"
    openai_timeout_seconds: int = 30
    openai_base_url: str | None = None

    auth_provider: str = "google"
    auth_redirect_url: str = "http://localhost:8000/auth/callback"
    session_cookie_name: str = "agent_hub_session"
    theme_cookie_name: str = "theme"
