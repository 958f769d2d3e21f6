"""Claim Extraction — deterministic pattern fallback and model-output parsing.

Invariants:
    - Pure functions: no IO, no async
    - extract_claims_by_pattern returns 0–5 claims
    - When no sentence matches and the trimmed input is longer than 5 chars,
      the trimmed input itself is the single claim
    - parse_claim_array returns None for anything that is not a JSON array
      (None is the failure signal that triggers the pattern fallback)

Design Decisions:
    - Pattern families (copula, auxiliary, modal, reporting, definite article) kept as
      separate compiled regexes so each one is testable on its own
    - Fenced ```json blocks unwrapped before parsing: models wrap JSON despite instructions
"""

import json
import re

MIN_CLAIM_LENGTH = 10
MAX_PATTERN_CLAIMS = 5
MIN_WHOLE_TEXT_LENGTH = 5

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+|\n+")
_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)

CLAIM_PATTERNS: dict[str, re.Pattern] = {
    "copula": re.compile(r"\b(is|are|was|were|been|being)\b", re.IGNORECASE),
    "auxiliary": re.compile(r"\b(has|have|had|does|do|did)\b", re.IGNORECASE),
    "modal": re.compile(
        r"\b(will|would|can|could|shall|should|may|might|must)\b", re.IGNORECASE,
    ),
    "reporting": re.compile(
        r"\b(announced|reported|said|says|confirmed|stated|claimed|revealed|"
        r"declared|according to)\b",
        re.IGNORECASE,
    ),
    "definite_article": re.compile(r"^the\s+\w+", re.IGNORECASE),
}


def split_sentences(text: str) -> list[str]:
    """Split on sentence punctuation and newlines, dropping blanks."""
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(text) if s and s.strip()]


def matches_claim_pattern(sentence: str) -> bool:
    return any(p.search(sentence) for p in CLAIM_PATTERNS.values())


def extract_claims_by_pattern(text: str) -> list[str]:
    """Keep sentences that look like factual statements, capped at 5."""
    claims = [
        s for s in split_sentences(text)
        if len(s) >= MIN_CLAIM_LENGTH and matches_claim_pattern(s)
    ][:MAX_PATTERN_CLAIMS]
    if claims:
        return claims
    trimmed = text.strip()
    if len(trimmed) > MIN_WHOLE_TEXT_LENGTH:
        return [trimmed]
    return []


def parse_claim_array(raw: str) -> list[str] | None:
    """Parse a model reply into a claim list, or None if it is not a JSON array."""
    if not raw or not raw.strip():
        return None
    text = raw.strip()
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        text = fenced.group(1)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list):
        return None
    return [c.strip() for c in parsed if isinstance(c, str) and c.strip()]
