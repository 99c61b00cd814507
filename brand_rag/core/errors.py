"""Custom error types for the RAG vector subsystem.

Only RateLimitExceeded is meant to reach end users. The other classes
describe degraded paths that the services log and absorb (or, for
cleanup, re-raise to the operator).
"""

from typing import Optional, Dict, Any
from enum import Enum
import traceback
from datetime import datetime, timezone


class ErrorCategory(Enum):
    """Categories of errors for better handling."""
    RATE_LIMIT = "rate_limit"
    PROVIDER = "provider"
    PERSISTENCE = "persistence"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class RAGError(Exception):
    """Base exception for the vector subsystem."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.details = details or {}
        self.recoverable = recoverable
        self.timestamp = datetime.now(timezone.utc)
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/response."""
        return {
            "error": self.message,
            "category": self.category.value,
            "details": self.details,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback if self.details.get("include_traceback") else None,
        }


class RateLimitExceeded(RAGError):
    """A user has used up an embedding quota window."""

    def __init__(self, reason: str, user_id: Optional[str] = None):
        details = {"reason": reason}
        if user_id:
            details["user_id"] = user_id

        super().__init__(
            message=f"RAG rate limit exceeded: {reason}",
            category=ErrorCategory.RATE_LIMIT,
            details=details,
            recoverable=True,
        )
        self.reason = reason
        self.user_id = user_id


class ProviderDegraded(RAGError):
    """The embedding provider failed; a fallback vector was substituted."""

    def __init__(self, message: str, model: Optional[str] = None):
        details = {}
        if model:
            details["model"] = model

        super().__init__(
            message=message,
            category=ErrorCategory.PROVIDER,
            details=details,
            recoverable=True,
        )


class PersistenceFailure(RAGError):
    """A document store read or write failed."""

    def __init__(self, message: str, operation: Optional[str] = None, path: Optional[str] = None):
        details = {}
        if operation:
            details["operation"] = operation
        if path:
            details["path"] = path

        super().__init__(
            message=message,
            category=ErrorCategory.PERSISTENCE,
            details=details,
            recoverable=True,  # Store outages are usually temporary
        )


class ConfigUnavailable(RAGError):
    """The SystemConfig record could not be read or parsed."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            recoverable=True,
        )
