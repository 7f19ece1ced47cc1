"""
Merchant token normalization.

Turns a raw bank description into the stable key learned patterns are
stored under. The function is pure and idempotent:
normalize_merchant_token(normalize_merchant_token(x)) == normalize_merchant_token(x).
"""

import re
from typing import Optional

from app.config import settings

UNKNOWN_TOKEN = "_unknown_"

# Payment rail prefixes carrying a reference number, e.g. "UPI/34345345/"
_RAIL_REFERENCE = re.compile(r"\b(?:upi|imps|neft|rtgs|ach|pos)\s*/\s*\d+\s*/?")
# Masked card numbers: "xx1234", "****1234", "x-1234"
_CARD_SUFFIX = re.compile(r"(?:(?<![a-z])(?:x{2,}|x-)|\*{2,})\s*\d{4}\b")
# Store numbers: "#4821", "# 12"
_STORE_NUMBER = re.compile(r"#\s*\d+")
_LONG_NUMBER = re.compile(r"\d{5,}")
_NON_ALPHA = re.compile(r"[^a-z\s]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_merchant_token(description: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Normalize a raw description into a merchant token.

    Returns UNKNOWN_TOKEN when nothing usable is left.
    """
    if description == UNKNOWN_TOKEN:
        return UNKNOWN_TOKEN

    limit = max_length or settings.merchant_token_max_length

    text = (description or "").lower()
    text = _RAIL_REFERENCE.sub(" ", text)
    text = _CARD_SUFFIX.sub(" ", text)
    text = _STORE_NUMBER.sub(" ", text)
    text = _LONG_NUMBER.sub(" ", text)
    text = _NON_ALPHA.sub(" ", text)
    text = _WHITESPACE.sub(" ", text).strip()

    # Suffix noise past the limit (branch names, city codes) maps to one token
    text = text[:limit].strip()

    return text or UNKNOWN_TOKEN
