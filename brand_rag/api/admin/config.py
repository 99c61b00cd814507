"""Runtime configuration endpoints for admin API."""

import copy
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from brand_rag.api.admin.dependencies import get_rag_engine
from brand_rag.api.security import verify_admin_bearer_token
from brand_rag.core.logging import get_logger
from brand_rag.models.system_config import SYSTEM_CONFIG_PATH, SystemConfig
from brand_rag.services.rag_engine import RAGEngine

logger = get_logger(__name__)
router = APIRouter(tags=["config"])


@router.get("/config")
async def get_system_config(
    _: bool = Depends(verify_admin_bearer_token),
    engine: RAGEngine = Depends(get_rag_engine),
) -> Dict[str, Any]:
    """Current runtime configuration (camelCase record shape)."""
    config = await engine.load_system_config()
    return {"status": "success", "config": config.to_record()}


@router.put("/config")
async def update_system_config(
    updates: Dict[str, Any],
    _: bool = Depends(verify_admin_bearer_token),
    engine: RAGEngine = Depends(get_rag_engine),
) -> Dict[str, Any]:
    """Merge group-level updates into the stored configuration record and save it.

    The merge starts from the record as stored, not from the effective
    config, so fixing one malformed group keeps every other setting.

    Example body: {"rateLimiting": {"enabled": true, "userMaxPerHour": 20}}
    """
    try:
        stored = await engine.store.get(SYSTEM_CONFIG_PATH)
    except Exception as e:
        logger.error(f"Failed to read system configuration: {e}")
        raise HTTPException(status_code=503, detail="System configuration is unavailable")

    current = copy.deepcopy(stored) if stored is not None else SystemConfig.defaults().to_record()
    for group, values in updates.items():
        if isinstance(values, dict) and isinstance(current.get(group), dict):
            current[group].update(values)
        else:
            current[group] = values

    try:
        config = SystemConfig.from_record(current)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))

    try:
        saved = await engine.save_system_config(config)
    except Exception as e:
        logger.error(f"Failed to save system configuration: {e}")
        raise HTTPException(status_code=500, detail="Failed to save system configuration")

    logger.info(f"System configuration updated: {sorted(updates)}")
    return {"status": "success", "config": saved.to_record()}
