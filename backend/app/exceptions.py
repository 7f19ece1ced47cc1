"""Exceptions raised by the categorization services.

Services raise these; API routes translate them into HTTP responses.
Tier-local failures (store reads, AI calls) are caught by the
orchestrator and never abort a transaction's categorization.
"""

from typing import Any, Dict, Optional


class CategorizationError(Exception):
    """Base exception for the categorization engine.

    Attributes:
        message: Human-readable description
        details: Additional context for logging
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidCategoryError(CategorizationError):
    """Raised when a correction names a category outside the closed set."""

    pass


class TransactionNotFound(CategorizationError):
    pass


class LearnedStoreUnavailable(CategorizationError):
    """Raised when the learned pattern store cannot be read or written.

    Reads degrade to the rule tier. Writes during a correction are
    surfaced so the caller can retry.
    """

    pass


class AIProviderError(CategorizationError):
    """Raised when the external classifier fails or returns garbage."""

    pass


class AIProviderTimeout(AIProviderError):
    pass


class AICircuitOpen(AIProviderError):
    """Raised without calling out while the circuit breaker is open."""

    pass


class RuleTableError(CategorizationError):
    """Raised when the rule table cannot be loaded or fails validation."""

    pass


class JobNotFound(CategorizationError):
    pass


class JobStateError(CategorizationError):
    """Raised when a job operation does not apply to the job's current status."""

    pass
