from fastapi import Request, Depends
from brand_rag.core.container import ServiceContainer, get_container
from brand_rag.services.auto_vectorizer import AutoVectorizer
from brand_rag.services.rag_engine import RAGEngine


def get_service_container(request: Request) -> ServiceContainer:
    """Get the service container."""
    # Try getting from app state first (lifespan managed)
    if hasattr(request.app.state, "container"):
        return request.app.state.container
    # Fallback to global (e.g. if testing without full app)
    return get_container()


def get_rag_engine(
    container: ServiceContainer = Depends(get_service_container)
) -> RAGEngine:
    return container.rag_engine


def get_auto_vectorizer(
    container: ServiceContainer = Depends(get_service_container)
) -> AutoVectorizer:
    return container.auto_vectorizer
