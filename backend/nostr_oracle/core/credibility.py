"""Credibility Scoring — pure multi-factor scoring of a claim against search hits.

Invariants:
    - Pure: no IO, `now` is passed in
    - Score always clamped to [0, 100]
    - Zero articles → flat baseline (65 established, 25 otherwise)
    - Confidence: score > 75 → high, > 50 → medium, else low (policy cutoffs)
    - Established facts take the generous path: base 50 + capped components + bonus 20

Design Decisions:
    - Four independent component functions (relevance, quality, consensus, recency)
      returning uncapped points; caps applied in compute_credibility per path
    - Relevance weights each matched keyword by its length (long keywords are
      more specific), counted only for articles whose matched share crosses the threshold
    - Query rewriting for political office claims: keyword queries for
      "X is president" return noise, canonical office terms return coverage
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from nostr_oracle.core.domain_types import Confidence, MAX_SCORE, MIN_SCORE
from nostr_oracle.core.scoring_policy import DEFAULT_POLICY, ScoringPolicy
from nostr_oracle.core.verification_types import Article

_WORD = re.compile(r"[a-z0-9][a-z0-9'\-]*")
_MIN_KEYWORD_LENGTH = 3
_KEYWORD_LENGTH_CAP = 10

STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "any", "can", "had",
    "her", "was", "one", "our", "out", "has", "have", "his", "how", "its", "may",
    "new", "now", "old", "see", "two", "who", "did", "does", "get", "got", "him",
    "she", "too", "use", "that", "this", "with", "from", "they", "will", "would",
    "there", "their", "what", "about", "which", "when", "were", "been", "being",
    "into", "than", "then", "them", "these", "those", "some", "such", "very",
    "just", "also", "said", "says", "according", "reported", "announced", "today",
    "yesterday", "is", "it", "of", "to", "in", "on", "at", "by", "an", "a", "as",
    "be", "or", "we", "he", "more", "most", "over", "after", "before", "should",
    "could", "might", "must", "shall",
})

ESTABLISHED_FACT_PATTERNS: tuple[re.Pattern, ...] = (
    # Current office holders
    re.compile(
        r"\b(donald trump|joe biden|kamala harris|jd vance|keir starmer|emmanuel macron)\b"
        r".*\b(is|was|serves as)\b.*\b(president|vice president|prime minister)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\bcurrent (us |u\.s\. )?(president|vice president|prime minister)\b", re.IGNORECASE),
    # Elementary science
    re.compile(r"\bthe earth (is|orbits|revolves around)\b", re.IGNORECASE),
    re.compile(r"\bwater (boils|freezes) at\b", re.IGNORECASE),
    re.compile(r"\bthe sun is a star\b", re.IGNORECASE),
    re.compile(r"\bspeed of light\b", re.IGNORECASE),
    # Geography
    re.compile(r"\b[a-z .]+ is the capital (city )?of\b", re.IGNORECASE),
    re.compile(r"\b(mount everest|the nile|the pacific)\b.*\b(highest|longest|largest)\b", re.IGNORECASE),
    # Arithmetic
    re.compile(r"\b\d+\s*(\+|plus|-|minus|\*|x|times)\s*\d+\s*(=|equals|is)\s*\d+\b", re.IGNORECASE),
)

POLITICAL_QUERY_REWRITES: tuple[tuple[re.Pattern, str], ...] = (
    (
        re.compile(r"\bvice president\b", re.IGNORECASE),
        "US vice president White House",
    ),
    (
        re.compile(
            r"\b(president of the (united states|us|u\.s\.)|us president|u\.s\. president|"
            r"(is|as) (the )?president)\b",
            re.IGNORECASE,
        ),
        "US president White House",
    ),
    (
        re.compile(r"\b(prime minister of the (uk|united kingdom)|uk prime minister|british prime minister)\b", re.IGNORECASE),
        "UK prime minister Downing Street",
    ),
)


@dataclass(frozen=True)
class CredibilityBreakdown:
    """Final score plus the uncapped component points that produced it."""
    score: int
    confidence: Confidence
    established: bool
    relevance: float = 0.0
    quality: float = 0.0
    consensus: float = 0.0
    recency: float = 0.0


# ─── Query preparation ───────────────────────────────────────────

def extract_keywords(text: str, limit: int) -> list[str]:
    """Distinct non-stop-words, longest first, at most `limit`."""
    seen: dict[str, None] = {}
    for word in _WORD.findall(text.lower()):
        word = word.strip("'-")
        if len(word) >= _MIN_KEYWORD_LENGTH and word not in STOP_WORDS:
            seen.setdefault(word, None)
    return sorted(seen, key=len, reverse=True)[:limit]


def optimize_search_query(claim: str, policy: ScoringPolicy = DEFAULT_POLICY) -> str:
    for pattern, rewrite in POLITICAL_QUERY_REWRITES:
        if pattern.search(claim):
            return rewrite
    keywords = extract_keywords(claim, policy.query_keyword_limit)
    if keywords:
        return " ".join(keywords)
    return claim.strip()[:100]


def is_established_fact(claim: str) -> bool:
    return any(p.search(claim) for p in ESTABLISHED_FACT_PATTERNS)


# ─── Components ──────────────────────────────────────────────────

def relevance_points(
    keywords: list[str], articles: list[Article], *, threshold: float, weight: float,
) -> float:
    """Length-weighted keyword overlap, summed over articles above the threshold."""
    if not keywords:
        return 0.0
    total_length = sum(len(k) for k in keywords)
    points = 0.0
    for article in articles:
        haystack = f"{article.title} {article.description}".lower()
        matched = [k for k in keywords if k in haystack]
        if not matched:
            continue
        if sum(len(k) for k in matched) / total_length < threshold:
            continue
        points += sum(
            weight * min(len(k), _KEYWORD_LENGTH_CAP) / 5 for k in matched
        )
    return points


def _distinct_outlets(articles: list[Article]) -> set[str]:
    return {
        (a.source or a.url).strip().lower() for a in articles if (a.source or a.url)
    }


def source_quality_points(
    articles: list[Article], policy: ScoringPolicy = DEFAULT_POLICY,
) -> float:
    return float(sum(
        policy.outlet_tiers.get(outlet, policy.default_outlet_tier)
        for outlet in _distinct_outlets(articles)
    ))


def consensus_points(
    articles: list[Article], policy: ScoringPolicy = DEFAULT_POLICY,
) -> float:
    count = len(_distinct_outlets(articles))
    for minimum, points in policy.consensus_steps:
        if count >= minimum:
            return float(points)
    return 0.0


def recency_points(
    articles: list[Article], now: datetime, policy: ScoringPolicy = DEFAULT_POLICY,
) -> float:
    points = 0.0
    for article in articles:
        if article.published_at is None:
            continue
        published = article.published_at
        if published.tzinfo is None:
            published = published.replace(tzinfo=timezone.utc)
        age_days = (now - published).total_seconds() / 86_400
        if age_days < 0:
            continue  # future-dated: no recency credit
        for max_age, bucket_points in policy.recency_buckets:
            if age_days <= max_age:
                points += bucket_points
                break
    return points


# ─── Scoring ─────────────────────────────────────────────────────

def confidence_for(score: int, policy: ScoringPolicy = DEFAULT_POLICY) -> Confidence:
    if score > policy.high_confidence_above:
        return Confidence.HIGH
    if score > policy.medium_confidence_above:
        return Confidence.MEDIUM
    return Confidence.LOW


def clamp_score(value: float) -> int:
    return int(max(MIN_SCORE, min(MAX_SCORE, math.floor(value + 0.5))))


def search_failure_score(claim: str, policy: ScoringPolicy = DEFAULT_POLICY) -> int:
    if is_established_fact(claim):
        return policy.established_search_failure
    return policy.general_search_failure


def compute_credibility(
    claim: str,
    articles: list[Article],
    now: datetime,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> CredibilityBreakdown:
    """Score a claim against its search hits."""
    established = is_established_fact(claim)

    if not articles:
        score = policy.established_no_sources if established else policy.general_no_sources
        return CredibilityBreakdown(
            score=score, confidence=confidence_for(score, policy), established=established,
        )

    keywords = extract_keywords(claim, policy.relevance_keyword_limit)
    quality = source_quality_points(articles, policy)
    consensus = consensus_points(articles, policy)
    recency = recency_points(articles, now, policy)

    if established:
        relevance = max(
            relevance_points(
                keywords, articles,
                threshold=policy.established_match_threshold,
                weight=policy.established_keyword_weight,
            ),
            policy.established_relevance_floor,
        )
        raw = (
            policy.established_base
            + min(relevance, policy.established_relevance_cap)
            + min(quality, policy.established_quality_cap)
            + min(consensus, policy.established_consensus_cap)
            + min(recency, policy.recency_cap)
            + policy.established_bonus
        )
    else:
        relevance = relevance_points(
            keywords, articles,
            threshold=policy.match_threshold, weight=policy.keyword_weight,
        )
        raw = (
            min(relevance, policy.relevance_cap)
            + min(quality, policy.quality_cap)
            + min(consensus, policy.consensus_cap)
            + min(recency, policy.recency_cap)
        )

    score = clamp_score(raw)
    return CredibilityBreakdown(
        score=score,
        confidence=confidence_for(score, policy),
        established=established,
        relevance=relevance,
        quality=quality,
        consensus=consensus,
        recency=recency,
    )
