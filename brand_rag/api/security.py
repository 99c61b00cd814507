"""Utility helpers for securing admin-only API endpoints."""

from fastapi import Header, HTTPException, status

from brand_rag.core.config import settings


def verify_admin_bearer_token(authorization: str = Header(None, convert_underscores=False)) -> bool:
    """Ensure that the caller supplied the correct admin bearer token."""

    expected_token = settings.admin_api_token
    if not expected_token:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Admin endpoints are disabled: ADMIN_API_TOKEN is not configured.'
        )

    if not authorization or not authorization.startswith('Bearer '):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Admin bearer token required.'
        )

    provided_token = authorization.split(' ', 1)[1].strip()
    if provided_token != expected_token:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Invalid admin bearer token.'
        )

    return True
