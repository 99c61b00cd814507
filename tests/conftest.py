"""Shared test fixtures for brand RAG tests."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

from brand_rag.models.system_config import SYSTEM_CONFIG_PATH
from brand_rag.models.vectors import user_vectors_path
from brand_rag.services.cache.memory_backend import MemoryBackend
from brand_rag.services.document_store.memory_store import MemoryDocumentStore
from brand_rag.services.document_store.sqlite_store import SQLiteDocumentStore
from brand_rag.services.rag_engine import RAGEngine

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class StubEmbeddingClient:
    """Embedding capability returning a constant vector."""

    def __init__(self, dimensions: int = 1536, value: float = 0.1):
        self.dimensions = dimensions
        self.value = value
        self.calls: List[tuple] = []

    async def embed(self, text: str, model: str, dimensions: Optional[int] = None) -> List[float]:
        self.calls.append((text, model, dimensions))
        return [self.value] * self.dimensions


# ============================================================================
# Cache Fixtures
# ============================================================================

@pytest.fixture
def memory_backend():
    """Create a fresh memory backend for testing."""
    return MemoryBackend()


@pytest.fixture
async def connected_memory_backend(memory_backend):
    """Create a connected memory backend."""
    await memory_backend.connect()
    yield memory_backend
    await memory_backend.disconnect()


# ============================================================================
# Store / Engine Fixtures
# ============================================================================

@pytest.fixture(params=["memory", "sqlite"])
async def document_store(request, tmp_path):
    """Empty document store. Tests built on it run against both backends."""
    if request.param == "memory":
        store = MemoryDocumentStore()
    else:
        store = SQLiteDocumentStore(str(tmp_path / "brand_rag.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def embedding_client():
    return StubEmbeddingClient()


@pytest.fixture
def failing_embedding_client():
    """Embedding client whose provider is always down."""
    mock = AsyncMock()
    mock.embed = AsyncMock(side_effect=RuntimeError("provider unavailable"))
    return mock


@pytest.fixture
def engine(document_store, embedding_client, clock):
    """RAG engine over the memory store with a stub embedding client."""
    return RAGEngine(document_store, embedding_client, clock=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================

async def _seed_config(store, **groups: Dict[str, Any]) -> None:
    await store.set(SYSTEM_CONFIG_PATH, dict(groups))


async def _seed_vector(
    store,
    user_id: str,
    content_id: str,
    created_at: datetime,
    performance: Optional[float] = None,
    dimensions: int = 4,
) -> str:
    """Add a raw vector record and return its document id."""
    metadata: Dict[str, Any] = {
        "createdAt": created_at,
        "updatedAt": created_at,
        "version": 1,
    }
    if performance is not None:
        metadata["performance"] = performance

    ref = await store.add(
        user_vectors_path(user_id),
        {
            "userId": user_id,
            "contentType": "social_media",
            "contentId": content_id,
            "embedding": [0.0] * dimensions,
            "textContent": f"content {content_id}",
            "sourceCollection": "socialMediaPosts",
            "sourceDocId": content_id,
            "metadata": metadata,
        },
    )
    return ref.id


@pytest.fixture
def sample_brand():
    """Brand profile record as written by the profile page."""
    return {
        "brandName": "Acme Roasters",
        "brandDescription": "Small batch coffee roasted in Portland",
        "industry": "Food & Beverage",
        "targetKeywords": "coffee, roastery, specialty",
        "imageStyleNotes": "warm tones, natural light",
        "websiteUrl": "",
    }


@pytest.fixture
def seed_config(document_store):
    """Write a SystemConfig record made of camelCase groups."""
    async def _seed(**groups: Dict[str, Any]) -> None:
        await _seed_config(document_store, **groups)
    return _seed


@pytest.fixture
def seed_vector(document_store):
    """Add a raw vector record; returns its document id."""
    async def _seed(user_id: str, content_id: str, created_at: datetime, performance: Optional[float] = None) -> str:
        return await _seed_vector(document_store, user_id, content_id, created_at, performance)
    return _seed


@pytest.fixture
def make_embedding_client():
    return StubEmbeddingClient
