"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - database_url None → requests run untransacted (no provider attached)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Pagination defaults live here so deployments can tune them without code changes
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from routemap.core.pagination import PaginationDefaults


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str | None = None

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str | None) -> str | None:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v or None

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Pagination (applied at RouteMap construction)
    pagination_limit: int = 10
    pagination_offset: int = 0
    pagination_page_size: int = 10
    pagination_methods: list[str] = ["GET"]

    # Authentication — API key → roles
    api_keys: dict[str, list[str]] = {}

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def pagination_defaults(self) -> PaginationDefaults:
        return PaginationDefaults(
            limit=self.pagination_limit,
            offset=self.pagination_offset,
            page_size=self.pagination_page_size,
            methods=tuple(m.upper() for m in self.pagination_methods),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
