"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote store (PostgREST-compatible)
    store_url: str = "http://localhost:54321"
    store_api_key: str = ""
    store_timeout: float = 30.0

    # Kinopoisk metadata API
    kinopoisk_api_url: str = "https://kinopoiskapiunofficial.tech/api/v2.1/films/search-by-keyword"
    kinopoisk_api_key: str = ""
    kinopoisk_timeout: float = 30.0

    # OpenSubtitles API
    opensubtitles_api_url: str = "https://api.opensubtitles.com/api/v1"
    opensubtitles_api_key: str = ""
    opensubtitles_user_agent: str = "Kinoteka v1.0"
    subtitles_language: str = "ru"
    subtitles_timeout: float = 10.0

    # Lists
    page_size: int = 10
    search_results_limit: int = 10

    # Background polling
    favorites_poll_interval: int = 30

    # Session persistence
    session_file: str = ".kinoteka_session.json"

    log_level: str = "INFO"


# Global settings instance
settings = Settings()
