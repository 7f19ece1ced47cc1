"""
AI fallback classification.

The orchestrator depends on the AIClassifier protocol only. The
LLM-backed implementation enforces a timeout and sits behind a circuit
breaker so a degraded provider fails fast instead of stalling ingestion.
"""

import asyncio
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from app.ai.client import AIClient, get_ai_client
from app.ai.prompts import CATEGORIZATION_SYSTEM, CATEGORIZATION_USER
from app.config import settings
from app.exceptions import AICircuitOpen, AIProviderError, AIProviderTimeout
from app.models.category import Category

logger = logging.getLogger(__name__)

# Confidence used when the provider omits a score or names an unknown category
UNCERTAIN_CONFIDENCE = 0.5


@dataclass(frozen=True)
class AIClassification:
    category: Category
    confidence: float


class AIClassifier(Protocol):
    async def classify(self, text: str) -> AIClassification:
        """Classify free text. Raises AIProviderError on failure or timeout."""
        ...


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    closed -> open after `failure_threshold` failures in a row.
    open -> half_open once `reset_timeout` seconds have passed; a single
    probe request is let through. A successful probe closes the circuit,
    a failed one reopens it.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.failure_threshold = max(1, failure_threshold)
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._state = self.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._probe_in_flight = False

    @property
    def state(self) -> str:
        if self._state == self.OPEN and self._clock() - self._opened_at >= self.reset_timeout:
            return self.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        state = self.state
        if state == self.CLOSED:
            return True
        if state == self.HALF_OPEN and not self._probe_in_flight:
            self._state = self.HALF_OPEN
            self._probe_in_flight = True
            return True
        return False

    def record_success(self) -> None:
        if self._state != self.CLOSED:
            logger.info("AI circuit closed")
        self._state = self.CLOSED
        self._failures = 0
        self._probe_in_flight = False

    def abandon_call(self) -> None:
        """Free the half-open slot of a call that ended without an outcome."""
        self._probe_in_flight = False

    def record_failure(self) -> None:
        self._failures += 1
        self._probe_in_flight = False
        if self._state == self.HALF_OPEN or self._failures >= self.failure_threshold:
            if self._state != self.OPEN:
                logger.warning("AI circuit opened after %d consecutive failures", self._failures)
            self._state = self.OPEN
            self._opened_at = self._clock()


def parse_classification(result: Dict[str, Any]) -> AIClassification:
    """Map a provider reply onto the closed category set."""
    if not isinstance(result, dict):
        raise AIProviderError("AI reply is not a JSON object", details={"reply": repr(result)[:200]})

    name = str(result.get("category") or "").strip()
    try:
        confidence = float(result.get("confidence", UNCERTAIN_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = UNCERTAIN_CONFIDENCE
    if not math.isfinite(confidence):
        confidence = UNCERTAIN_CONFIDENCE

    category = Category.from_value(name)
    if category is None and name:
        lowered = name.lower()
        for candidate in Category:
            value = candidate.value.lower()
            if value in lowered or lowered in value:
                category = candidate
                break

    if category is None:
        return AIClassification(category=Category.other, confidence=min(confidence, UNCERTAIN_CONFIDENCE))
    return AIClassification(category=category, confidence=confidence)


class LLMClassifier:
    """AIClassifier backed by the configured LLM provider."""

    def __init__(
        self,
        client: Optional[AIClient] = None,
        timeout: Optional[float] = None,
        breaker: Optional[CircuitBreaker] = None
    ):
        self.client = client or get_ai_client()
        self.timeout = timeout if timeout is not None else settings.ai_timeout_seconds
        self.breaker = breaker or CircuitBreaker(
            failure_threshold=settings.ai_circuit_failure_threshold,
            reset_timeout=settings.ai_circuit_reset_seconds
        )
        self._system_prompt = CATEGORIZATION_SYSTEM.format(
            categories="\n".join(f"- {c.value}" for c in Category)
        )

    async def classify(self, text: str) -> AIClassification:
        if not self.breaker.allow_request():
            raise AICircuitOpen("AI circuit is open")

        try:
            result = await asyncio.wait_for(
                self.client.complete_json(
                    system_prompt=self._system_prompt,
                    user_prompt=CATEGORIZATION_USER.format(description=text),
                    temperature=0.1,
                    max_tokens=100,
                    timeout=self.timeout
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            self.breaker.record_failure()
            raise AIProviderTimeout(f"AI classification timed out after {self.timeout}s") from e
        except asyncio.CancelledError:
            self.breaker.abandon_call()
            raise
        except json.JSONDecodeError as e:
            self.breaker.record_success()
            raise AIProviderError("AI reply was not valid JSON") from e
        except Exception as e:
            self.breaker.record_failure()
            raise AIProviderError(f"AI classification failed: {e}") from e

        self.breaker.record_success()
        return parse_classification(result)


_ai_classifier: Optional[LLMClassifier] = None


def get_ai_classifier() -> Optional[AIClassifier]:
    """Shared classifier, or None when AI categorization is switched off."""
    global _ai_classifier
    if not settings.ai_auto_categorize:
        return None
    if _ai_classifier is None:
        _ai_classifier = LLMClassifier()
    return _ai_classifier
