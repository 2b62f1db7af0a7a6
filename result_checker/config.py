"""Application configuration loaded from environment variables."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    # Server
    host: str = "0.0.0.0"
    port: int = 5050
    allowed_origins: str = "*"
    static_dir: str = "public"
    log_level: str = "INFO"

    # MongoDB
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "Ostad-DB"

    # Redis
    redis_url: str = "redis://localhost:6379"

    # Result cache: "redis", or "memory" for a process-local cache
    cache_backend: Literal["redis", "memory"] = "redis"
    cache_ttl: int = Field(default=600, gt=0)  # seconds

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def describe(self) -> dict:
        """Loggable view of the settings — connection strings are masked."""
        return {
            "port": self.port,
            "db_name": self.db_name,
            "cache_backend": self.cache_backend,
            "cache_ttl": self.cache_ttl,
            "mongo_url": "***configured***" if self.mongo_url else "not configured",
            "redis_url": "***configured***" if self.redis_url else "not configured",
        }


settings = Settings()
