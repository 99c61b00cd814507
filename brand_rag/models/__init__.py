"""Data models for the RAG vector subsystem."""

from brand_rag.models.system_config import (
    SYSTEM_CONFIG_PATH,
    EmbeddingConfig,
    PerformanceConfig,
    RateLimitingConfig,
    SystemConfig,
    UserRateLimitOverride,
    VectorCleanupConfig,
)
from brand_rag.models.vectors import (
    ContentType,
    ContentVector,
    RateLimitDecision,
    VectorMetadata,
    user_vectors_path,
)

__all__ = [
    "SYSTEM_CONFIG_PATH",
    "ContentType",
    "ContentVector",
    "EmbeddingConfig",
    "PerformanceConfig",
    "RateLimitDecision",
    "RateLimitingConfig",
    "SystemConfig",
    "UserRateLimitOverride",
    "VectorCleanupConfig",
    "VectorMetadata",
    "user_vectors_path",
]
