"""Admin API: runtime configuration and vector cleanup."""

from brand_rag.api.admin.router import router

__all__ = ["router"]
