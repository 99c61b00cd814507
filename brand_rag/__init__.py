"""Brand content RAG vector service."""

__version__ = "1.0.0"
