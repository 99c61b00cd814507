"""Shared dependencies for admin API endpoints."""

from fastapi import Request

from brand_rag.services.rag_engine import RAGEngine


async def get_rag_engine(request: Request) -> RAGEngine:
    """Get the RAG engine from the container."""
    return request.app.state.container.rag_engine
