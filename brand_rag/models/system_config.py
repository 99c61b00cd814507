"""Runtime tunables stored in the SystemConfig record.

The record is written by the admin surface with camelCase keys; the models
accept those keys (and snake_case names) and serialize back to camelCase.
Any group or field missing from the record falls back to its default.
"""

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

SYSTEM_CONFIG_PATH = "adminSettings/ragSystemConfig"

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_EMBEDDING_DIMENSIONS = 1536


class _ConfigGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class RateLimitingConfig(_ConfigGroup):
    enabled: bool = False
    global_max_per_hour: int = Field(1000, alias="globalMaxPerHour")
    global_max_per_day: int = Field(10000, alias="globalMaxPerDay")
    user_max_per_hour: int = Field(50, alias="userMaxPerHour")
    user_max_per_day: int = Field(500, alias="userMaxPerDay")


class VectorCleanupConfig(_ConfigGroup):
    enabled: bool = True
    retention_days: int = Field(90, alias="retentionDays")
    min_performance_threshold: float = Field(0.3, alias="minPerformanceThreshold", ge=0.0, le=1.0)


class EmbeddingConfig(_ConfigGroup):
    model: str = DEFAULT_EMBEDDING_MODEL
    dimensions: int = Field(DEFAULT_EMBEDDING_DIMENSIONS, gt=0)
    cost_per_1k: float = Field(0.02, alias="costPer1K")


class PerformanceConfig(_ConfigGroup):
    similarity_threshold: float = Field(0.7, alias="similarityThreshold", ge=0.0, le=1.0)
    max_context_length: int = Field(8000, alias="maxContextLength")
    cache_enabled: bool = Field(True, alias="cacheEnabled")
    # Older records used "cacheTTL"
    cache_ttl_seconds: int = Field(
        3600,
        validation_alias=AliasChoices("cacheTTLSeconds", "cacheTTL", "cache_ttl_seconds"),
        serialization_alias="cacheTTLSeconds",
    )


class SystemConfig(BaseModel):
    """Deployment-wide tunables for the vector subsystem."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    rate_limiting: RateLimitingConfig = Field(default_factory=RateLimitingConfig, alias="rateLimiting")
    vector_cleanup: VectorCleanupConfig = Field(default_factory=VectorCleanupConfig, alias="vectorCleanup")
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)

    @classmethod
    def defaults(cls) -> "SystemConfig":
        """Configuration synthesized when no record exists."""
        return cls()

    @classmethod
    def degraded(cls) -> "SystemConfig":
        """Minimal configuration used while the store is unreadable.

        Rate limiting and cleanup are both switched off: nothing is blocked
        and nothing is deleted on the strength of a config we could not read.
        """
        return cls(
            rate_limiting=RateLimitingConfig(enabled=False),
            vector_cleanup=VectorCleanupConfig(enabled=False),
        )

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "SystemConfig":
        if record is None:
            return cls.defaults()
        return cls.model_validate(record)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class UserRateLimitOverride(BaseModel):
    """Per-user quota override stored at users/{userId}/adminSettings/ragRateLimit."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enabled: bool = False
    max_embeddings_per_hour: Optional[int] = Field(None, alias="maxEmbeddingsPerHour")
    max_embeddings_per_day: Optional[int] = Field(None, alias="maxEmbeddingsPerDay")


def user_rate_limit_path(user_id: str) -> str:
    return f"users/{user_id}/adminSettings/ragRateLimit"
