"""Health check endpoint."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from brand_rag.api.deps import get_service_container
from brand_rag.core.config import settings
from brand_rag.core.container import ServiceContainer

router = APIRouter()


@router.get("/health")
async def health_check(
    container: ServiceContainer = Depends(get_service_container),
) -> Dict[str, Any]:
    """Report service and component status."""
    cache = container.cache_backend
    return {
        "status": "healthy" if container.is_initialized else "starting",
        "service": settings.app_name,
        "version": settings.app_version,
        "components": {
            "document_store": settings.document_store_backend,
            "cache": {
                "backend": settings.cache_backend,
                "connected": bool(cache and cache.enabled),
                "stats": cache.stats.to_dict() if cache else None,
            },
        },
    }
