"""Fathom configuration — loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "FATHOM_", "env_file": ".env", "extra": "ignore"}

    # Provider API keys (server-side defaults; callers may override per request)
    firecrawl_api_key: str = ""
    openai_api_key: str = ""

    # Provider endpoints
    firecrawl_api_url: str = "https://api.firecrawl.dev"
    openai_api_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    # Retrieval
    search_limit: int = 6
    context_chars_per_source: int = 2000
    sources_render_delay: float = 0.3  # seconds between `sources` and the answer

    # Generation
    answer_temperature: float = 0.7
    answer_max_tokens: int = 2000
    follow_up_max_tokens: int = 150

    # Timeouts (seconds)
    search_timeout: float = 60.0
    generation_timeout: float = 120.0

    # Server
    cors_origins: list[str] = ["http://localhost:3000"]
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"


settings = Settings()
