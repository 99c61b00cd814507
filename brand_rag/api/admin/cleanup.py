"""Vector cleanup endpoints for admin API."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from brand_rag.api.admin.dependencies import get_rag_engine
from brand_rag.api.security import verify_admin_bearer_token
from brand_rag.core.errors import PersistenceFailure
from brand_rag.core.logging import get_logger
from brand_rag.services.rag_engine import RAGEngine

logger = get_logger(__name__)
router = APIRouter(tags=["cleanup"])


@router.post("/cleanup/{user_id}")
async def cleanup_user_vectors(
    user_id: str,
    keep_days: Optional[int] = Query(None, ge=0),
    _: bool = Depends(verify_admin_bearer_token),
    engine: RAGEngine = Depends(get_rag_engine),
) -> Dict[str, Any]:
    """Retire old, low-performing vectors of one user."""
    try:
        deleted = await engine.cleanup_old_vectors(user_id, keep_days)
    except PersistenceFailure as e:
        logger.error(f"Cleanup failed for user {user_id}: {e.message}")
        raise HTTPException(status_code=500, detail=e.to_dict())

    return {"status": "success", "user_id": user_id, "deleted": deleted}


@router.post("/cleanup")
async def cleanup_all_vectors(
    keep_days: Optional[int] = Query(None, ge=0),
    _: bool = Depends(verify_admin_bearer_token),
    engine: RAGEngine = Depends(get_rag_engine),
) -> Dict[str, Any]:
    """Run the cleanup for every user."""
    try:
        result = await engine.cleanup_all_users_vectors(keep_days)
    except PersistenceFailure as e:
        logger.error(f"Cleanup sweep failed: {e.message}")
        raise HTTPException(status_code=500, detail=e.to_dict())

    return {"status": "success", **result}
