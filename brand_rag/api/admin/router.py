"""Main admin router combining all sub-routers."""

from fastapi import APIRouter

from brand_rag.api.admin.config import router as config_router
from brand_rag.api.admin.cleanup import router as cleanup_router

router = APIRouter()

router.include_router(config_router)
router.include_router(cleanup_router)
