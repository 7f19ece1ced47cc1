"""
Static rule-based classifier.

The rule table is data (JSON), not code. Rules are authored
most-specific-first and the first matching rule wins. A miss returns
None; picking a default is the orchestrator's job.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from app.config import settings
from app.exceptions import RuleTableError
from app.models.category import Category
from app.services.merchant_normalizer import normalize_merchant_token, UNKNOWN_TOKEN

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "rules" / "default_rules.json"


class RuleSpec(BaseModel):
    """One entry of the rule table as authored in JSON."""
    name: str
    match: Literal["keyword", "regex"] = "keyword"
    patterns: List[str] = Field(..., min_length=1)
    category: Category
    confidence: float = Field(..., ge=0.0, le=1.0)

    @field_validator("patterns")
    @classmethod
    def patterns_not_blank(cls, value: List[str]) -> List[str]:
        if any(not p.strip() for p in value):
            raise ValueError("patterns must not be blank")
        return value


class RuleTable(BaseModel):
    version: int = 1
    rules: List[RuleSpec]


@dataclass(frozen=True)
class RuleMatch:
    rule_name: str
    category: Category
    confidence: float


class Rule:
    """A compiled rule: matches a normalized merchant token."""

    def __init__(self, spec: RuleSpec):
        self.name = spec.name
        self.category = spec.category
        self.confidence = spec.confidence
        self._pattern = self._compile(spec)

    @staticmethod
    def _compile(spec: RuleSpec) -> re.Pattern:
        if spec.match == "regex":
            try:
                return re.compile("|".join(f"(?:{p})" for p in spec.patterns))
            except re.error as e:
                raise RuleTableError(f"Rule {spec.name!r} has an invalid pattern: {e}") from e

        # Keywords are normalized the same way tokens are, then matched as whole words
        keywords = []
        for keyword in spec.patterns:
            normalized = normalize_merchant_token(keyword)
            if normalized == UNKNOWN_TOKEN:
                raise RuleTableError(f"Rule {spec.name!r} has keyword {keyword!r} that normalizes to nothing")
            keywords.append(re.escape(normalized))
        return re.compile(r"(?<![a-z])(?:" + "|".join(keywords) + r")(?![a-z])")

    def matches(self, token: str) -> bool:
        return self._pattern.search(token) is not None


class RuleClassifier:
    """Ordered rule table, independent of any per-user state."""

    def __init__(self, rules: List[Rule]):
        self.rules = rules

    @classmethod
    def from_specs(cls, specs: List[RuleSpec]) -> "RuleClassifier":
        return cls([Rule(spec) for spec in specs])

    @classmethod
    def from_file(cls, path: Path) -> "RuleClassifier":
        """Load and validate a rule table. A bad table fails fast."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
            table = RuleTable.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise RuleTableError(f"Could not load rule table from {path}: {e}") from e

        classifier = cls.from_specs(table.rules)
        logger.info("Loaded %d categorization rules from %s", len(classifier.rules), path)
        return classifier

    def classify(self, token: str) -> Optional[RuleMatch]:
        for rule in self.rules:
            if rule.matches(token):
                return RuleMatch(rule_name=rule.name, category=rule.category, confidence=rule.confidence)
        return None


_rule_classifier: Optional[RuleClassifier] = None


def get_rule_classifier() -> RuleClassifier:
    global _rule_classifier
    if _rule_classifier is None:
        path = settings.categorization_rules_path or DEFAULT_RULES_PATH
        _rule_classifier = RuleClassifier.from_file(Path(path))
    return _rule_classifier


def reload_rule_classifier() -> RuleClassifier:
    """Drop the cached table so an updated rule file takes effect."""
    global _rule_classifier
    _rule_classifier = None
    return get_rule_classifier()
