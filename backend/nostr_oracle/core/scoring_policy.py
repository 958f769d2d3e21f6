"""Scoring Policy — tunable weights, tiers and cutoffs for credibility scoring.

Invariants:
    - Defaults are the canonical policy; every number the scorer uses lives here
    - Outlet names are matched lower-cased
    - consensus_steps and recency_buckets are checked in declaration order

Design Decisions:
    - Frozen dataclass passed into compute_credibility: tests and deployments can swap
      a policy without touching scoring code
    - Outlet reputation tiers are integers (points), not 0-1 probabilities: they sum
      directly into the source-quality component
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# Reputation tier points per outlet (NewsAPI `source.name`, lower-cased).
# Unlisted outlets score default_outlet_tier.
OUTLET_TIERS: Mapping[str, int] = MappingProxyType({
    # Wire services
    "reuters": 10,
    "associated press": 10,
    "ap news": 10,
    "agence france-presse": 10,
    # Public broadcasters / papers of record
    "bbc news": 9,
    "npr": 9,
    "pbs": 9,
    "the new york times": 8,
    "the washington post": 8,
    "the wall street journal": 8,
    "financial times": 8,
    "bloomberg": 8,
    "the guardian": 8,
    "the economist": 8,
    # Major networks
    "cnn": 7,
    "abc news": 7,
    "cbs news": 7,
    "nbc news": 7,
    "al jazeera english": 7,
    "politico": 7,
    "axios": 7,
    # General / specialist
    "the hill": 6,
    "usa today": 6,
    "fox news": 6,
    "time": 6,
    "newsweek": 5,
    "business insider": 5,
    "the verge": 5,
    "techcrunch": 5,
    "wired": 5,
    "ars technica": 5,
})


@dataclass(frozen=True)
class ScoringPolicy:
    """All credibility-scoring parameters."""

    # Flat scores
    established_no_sources: int = 65
    general_no_sources: int = 25
    established_search_failure: int = 65
    general_search_failure: int = 30

    # Established-fact path
    established_base: int = 50
    established_bonus: int = 20
    established_relevance_cap: int = 35
    established_quality_cap: int = 25
    established_consensus_cap: int = 15
    established_relevance_floor: int = 15
    established_match_threshold: float = 0.2
    established_keyword_weight: float = 3.0

    # General path
    relevance_cap: int = 40
    quality_cap: int = 30
    consensus_cap: int = 20
    recency_cap: int = 10
    match_threshold: float = 0.3
    keyword_weight: float = 2.0

    # Source quality
    outlet_tiers: Mapping[str, int] = field(default_factory=lambda: OUTLET_TIERS)
    default_outlet_tier: int = 4

    # (minimum distinct sources, points), first match wins
    consensus_steps: tuple[tuple[int, int], ...] = ((5, 20), (3, 15), (2, 10), (1, 5))

    # (maximum article age in days, points), first match wins
    recency_buckets: tuple[tuple[int, int], ...] = ((1, 5), (7, 3), (30, 1))

    # Confidence label cutoffs (strictly greater than)
    high_confidence_above: int = 75
    medium_confidence_above: int = 50

    # Keyword extraction
    relevance_keyword_limit: int = 8
    query_keyword_limit: int = 5


DEFAULT_POLICY = ScoringPolicy()
