"""Content vector models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentType(str, Enum):
    """Kinds of brand content that get embedded."""
    BRAND_PROFILE = "brand_profile"
    SOCIAL_MEDIA = "social_media"
    BLOG_POST = "blog_post"
    AD_CAMPAIGN = "ad_campaign"
    SAVED_IMAGE = "saved_image"
    BRAND_LOGO = "brand_logo"
    OTHER = "other"


# Metadata keys owned by the vector store; caller values for them are dropped.
RESERVED_METADATA_KEYS = frozenset(
    {"createdAt", "updatedAt", "version", "created_at", "updated_at"}
)


def user_vectors_path(user_id: str) -> str:
    """Collection holding a user's vectors."""
    return f"users/{user_id}/ragVectors"


def caller_metadata(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Caller-supplied metadata without the reserved lifecycle keys."""
    return {k: v for k, v in (metadata or {}).items() if k not in RESERVED_METADATA_KEYS}


class VectorMetadata(BaseModel):
    """Lifecycle fields plus free-form caller metadata (industry, tags, ...)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
    version: int = Field(1, ge=1)
    performance: Optional[float] = Field(None, ge=0.0, le=1.0)

    def to_record(self) -> Dict[str, Any]:
        record = self.model_dump(by_alias=True)
        # An unscored vector has no performance field at all, so it can never
        # satisfy the cleanup filter.
        if record.get("performance") is None:
            record.pop("performance", None)
        return record


class ContentVector(BaseModel):
    """One embedded unit of content, scoped to a user."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(None, description="Store document id (not persisted)")
    user_id: str = Field(..., alias="userId")
    content_type: ContentType = Field(..., alias="contentType")
    content_id: str = Field(..., alias="contentId")
    embedding: List[float]
    text_content: str = Field(..., alias="textContent")
    source_collection: str = Field(..., alias="sourceCollection")
    source_doc_id: str = Field(..., alias="sourceDocId")
    metadata: VectorMetadata

    @classmethod
    def from_record(cls, doc_id: Optional[str], record: Dict[str, Any]) -> "ContentVector":
        vector = cls.model_validate(record)
        vector.id = doc_id
        return vector

    def to_record(self) -> Dict[str, Any]:
        """Serialize for the document store (camelCase, datetimes kept native)."""
        record = self.model_dump(by_alias=True, exclude={"id", "metadata"})
        record["contentType"] = self.content_type.value
        record["metadata"] = self.metadata.to_record()
        return record


class RateLimitDecision(BaseModel):
    """Result of a quota check. Never cached."""

    allowed: bool
    reason: Optional[str] = None
