"""Configuration settings for the brand RAG service."""

from pydantic_settings import BaseSettings
from typing import Optional, List
import os


class Settings(BaseSettings):
    """Process settings.

    Runtime tunables (rate limits, cleanup policy, embedding model) are not
    here; they live in the SystemConfig record of the document store and are
    read through the ConfigCache.
    """

    # API Configuration
    app_name: str = "Brand RAG Vector Service"
    app_version: str = "1.0.0"
    api_prefix: str = "/api/v1"
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 2

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    # OpenAI Configuration
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None

    # Document store
    document_store_backend: str = "sqlite"  # sqlite or memory
    sqlite_path: str = "./data/brand_rag.db"
    store_batch_limit: int = 500  # Max deletes per atomic batch

    # Caching / counters
    cache_backend: str = "redis"  # redis, memory or none
    redis_url: Optional[str] = "redis://localhost:6379"
    embedding_cache_prefix: str = "embedding"
    rate_limit_counter_enabled: bool = False  # Atomic window counters on top of the count query

    # Runtime config cache
    config_cache_ttl_seconds: int = 300  # 5 minutes

    # Admin
    admin_api_token: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    class Config:
        env_file = ".env"
        env_prefix = "BRAND_RAG_"
        case_sensitive = False
        extra = "ignore"


# Create settings instance
settings = Settings()

# Override with conventional environment variables
if os.getenv("OPENAI_API_KEY") and not settings.openai_api_key:
    settings.openai_api_key = os.getenv("OPENAI_API_KEY").strip()

if os.getenv("REDIS_URL"):
    settings.redis_url = os.getenv("REDIS_URL")

if os.getenv("ADMIN_API_TOKEN") and not settings.admin_api_token:
    settings.admin_api_token = os.getenv("ADMIN_API_TOKEN").strip()
