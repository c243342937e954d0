"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="RunRealm")
    app_id: str = Field(
        default="run-realm-v1",
        description="Namespace for every document this app writes",
    )
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="'console' or 'json'")

    # Document store
    database_url: str = Field(
        default="sqlite+aiosqlite:///./runrealm.db",
        description="SQLAlchemy async URL backing the document store",
    )

    # Identity provider (JWT)
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for JWT signing and verification",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=60 * 24 * 30)

    # Territory and reward policy
    min_territory_area_m2: float = Field(
        default=100.0,
        description="Smallest enclosed area that can be claimed as a territory",
    )
    xp_per_km: float = Field(default=100.0, ge=0)
    xp_per_area_root: float = Field(
        default=1.0,
        ge=0,
        description="XP per meter of the square root of the enclosed area",
    )

    # Map
    default_latitude: float = Field(default=51.505)
    default_longitude: float = Field(default=-0.09)
    map_zoom: int = Field(default=16)
    map_tile_url: str = Field(
        default="https://{s}.basemaps.cartocdn.com/rastertiles/voyager/{z}/{x}/{y}{r}.png",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure a Postgres URL uses the asyncpg driver scheme."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def default_coordinates(self) -> tuple[float, float]:
        """Map center used before the first position fix."""
        return (self.default_latitude, self.default_longitude)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
