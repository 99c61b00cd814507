"""Vector endpoints used by the content-generation flow."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from brand_rag.api.deps import get_auto_vectorizer, get_rag_engine
from brand_rag.core.errors import RateLimitExceeded
from brand_rag.core.logging import get_logger
from brand_rag.models.vectors import ContentType, RateLimitDecision
from brand_rag.services.auto_vectorizer import AutoVectorizer, ContentKind
from brand_rag.services.rag_engine import RAGEngine

logger = get_logger(__name__)
router = APIRouter()


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StoreVectorRequest(_Request):
    """Content to embed and store."""
    user_id: str = Field(..., alias="userId", min_length=1)
    content_type: ContentType = Field(..., alias="contentType")
    content_id: str = Field(..., alias="contentId", min_length=1)
    text_content: str = Field(..., alias="textContent")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    source_collection: str = Field("", alias="sourceCollection")
    source_doc_id: str = Field("", alias="sourceDocId")


class UpdateVectorRequest(_Request):
    """New text for an already vectorized content item."""
    user_id: str = Field(..., alias="userId", min_length=1)
    text_content: str = Field(..., alias="textContent")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ContentEventRequest(_Request):
    """A write to a brand content document."""
    user_id: str = Field(..., alias="userId", min_length=1)
    kind: ContentKind
    doc_id: str = Field(..., alias="docId", min_length=1)
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None


@router.post("/vectors", status_code=status.HTTP_201_CREATED)
async def store_vector(
    request: StoreVectorRequest,
    engine: RAGEngine = Depends(get_rag_engine),
) -> Dict[str, Any]:
    """Embed and store content. Returns 429 when the user is over quota."""
    try:
        vector_id = await engine.store_content_vector(
            request.user_id,
            request.content_type,
            request.content_id,
            request.text_content,
            metadata=request.metadata,
            source_collection=request.source_collection,
            source_doc_id=request.source_doc_id,
        )
    except RateLimitExceeded as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=e.reason)

    return {
        "status": "stored" if vector_id else "skipped",
        "vector_id": vector_id,
    }


@router.put("/vectors/{content_id}", status_code=status.HTTP_202_ACCEPTED)
async def update_vector(
    content_id: str,
    request: UpdateVectorRequest,
    engine: RAGEngine = Depends(get_rag_engine),
) -> Dict[str, Any]:
    """Re-embed an existing vector. Never fails the caller."""
    updated = await engine.update_content_vector(
        request.user_id, content_id, request.text_content, request.metadata
    )
    return {"status": "accepted", "updated": updated}


@router.get("/vectors/{user_id}/rate-limit", response_model=RateLimitDecision)
async def check_rate_limit(
    user_id: str,
    engine: RAGEngine = Depends(get_rag_engine),
) -> RateLimitDecision:
    return await engine.check_rate_limit(user_id)


@router.get("/vectors/{user_id}/count")
async def count_vectors(
    user_id: str,
    engine: RAGEngine = Depends(get_rag_engine),
) -> Dict[str, Any]:
    return {"user_id": user_id, "count": await engine.get_user_vector_count(user_id)}


@router.post("/content-events")
async def handle_content_event(
    request: ContentEventRequest,
    auto_vectorizer: AutoVectorizer = Depends(get_auto_vectorizer),
) -> Dict[str, Any]:
    """Apply a content write to the vector store (create, edit or delete)."""
    outcome = await auto_vectorizer.handle_content_write(
        request.user_id, request.kind, request.doc_id, request.before, request.after
    )
    return {"outcome": outcome}
