"""Turns brand content records into vectors when they are written.

Each content kind has a builder that renders the record as "Label: value"
lines (empty values dropped) plus the metadata stored with the vector.
handle_content_write() applies one before/after change: deletions and
insignificant edits are skipped, edits of an already vectorized item are
re-embedded in place, new items are stored.

Vectorization is an enhancement of the write, so nothing here raises;
the outcome is returned as a string for logging and tests.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from brand_rag.core.errors import RateLimitExceeded
from brand_rag.core.logging import get_logger
from brand_rag.models.vectors import ContentType

logger = get_logger(__name__)

BLOG_PREVIEW_CHARS = 1000
REVECTORIZE_SIMILARITY = 0.85

OUTCOME_STORED = "stored"
OUTCOME_UPDATED = "updated"
OUTCOME_SKIPPED = "skipped"
OUTCOME_RATE_LIMITED = "rate_limited"
OUTCOME_FAILED = "failed"


class ContentKind(str, Enum):
    """Source collections that feed the vector store."""
    BRAND_PROFILE = "brandProfiles"
    SOCIAL_MEDIA_POST = "socialMediaPosts"
    BLOG_POST = "blogPosts"
    AD_CAMPAIGN = "adCampaigns"
    SAVED_IMAGE = "savedLibraryImages"
    BRAND_LOGO = "brandLogos"


class _ContentRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BrandData(_ContentRecord):
    brand_name: Optional[str] = Field(None, alias="brandName")
    brand_description: Optional[str] = Field(None, alias="brandDescription")
    industry: Optional[str] = None
    target_keywords: Optional[str] = Field(None, alias="targetKeywords")
    image_style_notes: Optional[str] = Field(None, alias="imageStyleNotes")
    website_url: Optional[str] = Field(None, alias="websiteUrl")


class SocialMediaPost(_ContentRecord):
    platform: Optional[str] = None
    caption: Optional[str] = None
    hashtags: Optional[str] = None
    tone: Optional[str] = None
    post_goal: Optional[str] = Field(None, alias="postGoal")
    target_audience: Optional[str] = Field(None, alias="targetAudience")
    call_to_action: Optional[str] = Field(None, alias="callToAction")
    image_description: Optional[str] = Field(None, alias="imageDescription")


class BlogPost(_ContentRecord):
    title: Optional[str] = None
    content: str = ""
    platform: Optional[str] = None
    article_style: Optional[str] = Field(None, alias="articleStyle")
    blog_tone: Optional[str] = Field(None, alias="blogTone")
    target_audience: Optional[str] = Field(None, alias="targetAudience")
    tags: Optional[str] = None
    outline: Optional[str] = None


class AdCampaign(_ContentRecord):
    campaign_concept: Optional[str] = Field(None, alias="campaignConcept")
    headlines: List[str] = Field(default_factory=list)
    body_texts: List[str] = Field(default_factory=list, alias="bodyTexts")
    platform_guidance: Optional[str] = Field(None, alias="platformGuidance")
    target_platforms: List[str] = Field(default_factory=list, alias="targetPlatforms")
    brand_name: Optional[str] = Field(None, alias="brandName")
    industry: Optional[str] = None
    campaign_goal: Optional[str] = Field(None, alias="campaignGoal")
    target_audience: Optional[str] = Field(None, alias="targetAudience")
    call_to_action: Optional[str] = Field(None, alias="callToAction")
    target_keywords: Optional[str] = Field(None, alias="targetKeywords")


class SavedImage(_ContentRecord):
    prompt: Optional[str] = None
    style: Optional[str] = None
    storage_url: Optional[str] = Field(None, alias="storageUrl")


@dataclass
class VectorizationRequest:
    """Arguments for one store_content_vector call."""

    content_type: ContentType
    content_id: str
    text_content: str
    source_collection: str
    source_doc_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def labeled_lines(pairs: List[tuple]) -> str:
    """Join "Label: value" lines, dropping empty values."""
    return "\n".join(f"{label}: {value}" for label, value in pairs if value)


def split_keywords(value: Optional[str], sep: str = ",") -> List[str]:
    if not value:
        return []
    return [part.strip().lower() for part in value.split(sep) if part.strip()]


def _compact(metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in metadata.items() if v is not None}


def build_brand_profile(user_id: str, data: Dict[str, Any], doc_id: str) -> Optional[VectorizationRequest]:
    brand = BrandData.model_validate(data)
    text = labeled_lines([
        ("Brand", brand.brand_name or "Unnamed Brand"),
        ("Description", brand.brand_description),
        ("Industry", brand.industry),
        ("Keywords", brand.target_keywords),
        ("Style Notes", brand.image_style_notes),
        ("Website", brand.website_url),
    ])
    return VectorizationRequest(
        content_type=ContentType.BRAND_PROFILE,
        content_id=f"brand_{user_id}",
        text_content=text,
        source_collection=ContentKind.BRAND_PROFILE.value,
        source_doc_id=user_id,
        metadata=_compact({"industry": brand.industry, "performance": 1.0}),
    )


def build_social_media_post(user_id: str, data: Dict[str, Any], doc_id: str) -> Optional[VectorizationRequest]:
    post = SocialMediaPost.model_validate(data)
    text = labeled_lines([
        ("Platform", post.platform),
        ("Caption", post.caption),
        ("Hashtags", post.hashtags),
        ("Tone", post.tone),
        ("Goal", post.post_goal),
        ("Target Audience", post.target_audience),
        ("Call to Action", post.call_to_action),
        ("Image Description", post.image_description),
    ])
    if not text:
        return None
    return VectorizationRequest(
        content_type=ContentType.SOCIAL_MEDIA,
        content_id=doc_id,
        text_content=text,
        source_collection=ContentKind.SOCIAL_MEDIA_POST.value,
        source_doc_id=doc_id,
        metadata=_compact({
            "platform": post.platform,
            "tags": split_keywords(post.hashtags, sep="#"),
            "performance": 0.5,
            "engagement": 0,
        }),
    )


def build_blog_post(user_id: str, data: Dict[str, Any], doc_id: str) -> Optional[VectorizationRequest]:
    blog = BlogPost.model_validate(data)
    preview = blog.content
    if len(preview) > BLOG_PREVIEW_CHARS:
        preview = preview[:BLOG_PREVIEW_CHARS] + "..."
    text = labeled_lines([
        ("Title", blog.title),
        ("Platform", blog.platform),
        ("Style", blog.article_style),
        ("Tone", blog.blog_tone),
        ("Target Audience", blog.target_audience),
        ("Tags", blog.tags),
        ("Outline", blog.outline),
        ("Content Preview", preview),
    ])
    if not text:
        return None
    return VectorizationRequest(
        content_type=ContentType.BLOG_POST,
        content_id=doc_id,
        text_content=text,
        source_collection=ContentKind.BLOG_POST.value,
        source_doc_id=doc_id,
        metadata=_compact({
            "platform": blog.platform,
            "style": blog.article_style,
            "tags": split_keywords(blog.tags),
            "performance": 0.5,
            "engagement": 0,
        }),
    )


def build_ad_campaign(user_id: str, data: Dict[str, Any], doc_id: str) -> Optional[VectorizationRequest]:
    campaign = AdCampaign.model_validate(data)
    text = labeled_lines([
        ("Campaign Concept", campaign.campaign_concept),
        ("Headlines", " | ".join(campaign.headlines)),
        ("Body Texts", " | ".join(campaign.body_texts)),
        ("Platform Guidance", campaign.platform_guidance),
        ("Target Platforms", ", ".join(campaign.target_platforms)),
        ("Brand", campaign.brand_name),
        ("Industry", campaign.industry),
        ("Goal", campaign.campaign_goal),
        ("Target Audience", campaign.target_audience),
        ("Call to Action", campaign.call_to_action),
        ("Keywords", campaign.target_keywords),
    ])
    if not text:
        return None
    return VectorizationRequest(
        content_type=ContentType.AD_CAMPAIGN,
        content_id=doc_id,
        text_content=text,
        source_collection=ContentKind.AD_CAMPAIGN.value,
        source_doc_id=doc_id,
        metadata={
            "platform": ",".join(campaign.target_platforms),
            "tags": split_keywords(campaign.target_keywords),
            "performance": 0.5,
            "engagement": 0,
        },
    )


def build_saved_image(user_id: str, data: Dict[str, Any], doc_id: str) -> Optional[VectorizationRequest]:
    image = SavedImage.model_validate(data)
    text = labeled_lines([
        ("Prompt", image.prompt),
        ("Style", image.style),
        ("Image URL", image.storage_url),
    ])
    if not text:
        return None
    return VectorizationRequest(
        content_type=ContentType.SAVED_IMAGE,
        content_id=doc_id,
        text_content=text,
        source_collection=ContentKind.SAVED_IMAGE.value,
        source_doc_id=doc_id,
        metadata=_compact({
            "style": image.style,
            "tags": split_keywords(image.style),
            "performance": 0.5,
            "engagement": 0,
        }),
    )


def build_brand_logo(user_id: str, data: Dict[str, Any], doc_id: str) -> Optional[VectorizationRequest]:
    return VectorizationRequest(
        content_type=ContentType.BRAND_LOGO,
        content_id=doc_id,
        text_content="Brand Logo: Generated logo for brand identity",
        source_collection=ContentKind.BRAND_LOGO.value,
        source_doc_id=doc_id,
        metadata={
            "style": "logo",
            "tags": ["logo", "brand", "identity"],
            "performance": 1.0,
            "engagement": 0,
        },
    )


def _joined(*values: Any) -> str:
    return " ".join(str(v) if v else "" for v in values)


def change_signature(kind: ContentKind, data: Dict[str, Any]) -> Optional[str]:
    """Text compared between versions to decide whether an edit matters.

    None means every write is significant.
    """
    if kind == ContentKind.BRAND_PROFILE:
        return _joined(data.get("brandDescription"), data.get("targetKeywords"), data.get("imageStyleNotes"))
    if kind == ContentKind.SOCIAL_MEDIA_POST:
        return _joined(data.get("caption"), data.get("hashtags"))
    if kind == ContentKind.BLOG_POST:
        return _joined(data.get("title"), data.get("content"))
    if kind == ContentKind.AD_CAMPAIGN:
        return _joined(data.get("campaignConcept"), " ".join(data.get("headlines") or []))
    if kind == ContentKind.SAVED_IMAGE:
        return _joined(data.get("prompt"), data.get("style"))
    return None


def should_revectorize(old_content: str, new_content: str) -> bool:
    """True when the texts differ enough to justify a new embedding.

    Similarity is the share of the old words that also occur in the new
    text, over the longer word count.
    """
    if not old_content or not new_content:
        return True

    old_words = old_content.lower().split()
    new_words = set(new_content.lower().split())
    longest = max(len(old_words), len(new_content.split()))
    if longest == 0:
        return True

    common = sum(1 for word in old_words if word in new_words)
    return common / longest < REVECTORIZE_SIMILARITY


BUILDERS: Dict[ContentKind, Callable[[str, Dict[str, Any], str], Optional[VectorizationRequest]]] = {
    ContentKind.BRAND_PROFILE: build_brand_profile,
    ContentKind.SOCIAL_MEDIA_POST: build_social_media_post,
    ContentKind.BLOG_POST: build_blog_post,
    ContentKind.AD_CAMPAIGN: build_ad_campaign,
    ContentKind.SAVED_IMAGE: build_saved_image,
    ContentKind.BRAND_LOGO: build_brand_logo,
}


class AutoVectorizer:
    """Applies content writes to the vector store through the engine."""

    def __init__(self, engine):
        self.engine = engine

    async def vectorize(
        self, user_id: str, kind: ContentKind, data: Dict[str, Any], doc_id: str
    ) -> str:
        """Store a vector for a new content item."""
        try:
            request = BUILDERS[kind](user_id, data, doc_id)
            if request is None or not request.text_content.strip():
                logger.info(f"[RAG Auto-Vectorizer] No meaningful {kind.value} content to vectorize: {doc_id}")
                return OUTCOME_SKIPPED

            vector_id = await self.engine.store_content_vector(
                user_id,
                request.content_type,
                request.content_id,
                request.text_content,
                metadata=request.metadata,
                source_collection=request.source_collection,
                source_doc_id=request.source_doc_id,
            )
        except RateLimitExceeded as e:
            logger.warning(f"[RAG Auto-Vectorizer] Skipped {kind.value} {doc_id}: {e.reason}")
            return OUTCOME_RATE_LIMITED
        except Exception as e:
            logger.error(f"[RAG Auto-Vectorizer] Error vectorizing {kind.value} {doc_id}: {e}")
            return OUTCOME_FAILED

        return OUTCOME_STORED if vector_id else OUTCOME_FAILED

    async def revectorize(
        self, user_id: str, kind: ContentKind, data: Dict[str, Any], doc_id: str
    ) -> str:
        """Re-embed an item that already has a vector, or store it if it has none."""
        try:
            request = BUILDERS[kind](user_id, data, doc_id)
            if request is None or not request.text_content.strip():
                return OUTCOME_SKIPPED

            existing = await self.engine.vectors.get_by_content_id(user_id, request.content_id)
            if existing is None:
                return await self.vectorize(user_id, kind, data, doc_id)

            updated = await self.engine.update_content_vector(
                user_id, request.content_id, request.text_content, request.metadata
            )
        except Exception as e:
            logger.error(f"[RAG Auto-Vectorizer] Error re-vectorizing {kind.value} {doc_id}: {e}")
            return OUTCOME_FAILED

        return OUTCOME_UPDATED if updated else OUTCOME_FAILED

    async def handle_content_write(
        self,
        user_id: str,
        kind: ContentKind,
        doc_id: str,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
    ) -> str:
        """Apply one document write (create, edit or delete)."""
        if after is None:
            # Vectors of deleted content are left to the retention cleanup
            logger.info(f"[RAG Trigger] {kind.value} deleted: {doc_id}")
            return OUTCOME_SKIPPED

        if before is None:
            return await self.vectorize(user_id, kind, after, doc_id)

        old_signature = change_signature(kind, before)
        new_signature = change_signature(kind, after)
        if old_signature is not None and not should_revectorize(old_signature, new_signature):
            logger.info(f"[RAG Trigger] No significant changes in {kind.value}: {doc_id}")
            return OUTCOME_SKIPPED

        return await self.revectorize(user_id, kind, after, doc_id)
