"""Credibility Scoring — baselines, components, paths and clamping.

Invariants:
    - Zero articles → 65 established / 25 general
    - Score within [0, 100]; confidence > 75 high, > 50 medium
    - Established path always scores at least base + floor + bonus
"""

from fakes import NOW, article

from nostr_oracle.core.credibility import (
    compute_credibility, confidence_for, consensus_points, extract_keywords,
    is_established_fact, optimize_search_query, recency_points, search_failure_score,
    source_quality_points,
)
from nostr_oracle.core.domain_types import Confidence
from nostr_oracle.core.scoring_policy import ScoringPolicy


def test_zero_sources_general_baseline():
    b = compute_credibility("Acme Corp acquired Globex for 3 billion", [], NOW)
    assert b.score == 25
    assert b.confidence == Confidence.LOW
    assert not b.established


def test_zero_sources_established_baseline():
    b = compute_credibility("Paris is the capital of France", [], NOW)
    assert b.established
    assert b.score == 65
    assert b.confidence == Confidence.MEDIUM


def test_search_failure_scores():
    assert search_failure_score("Paris is the capital of France") == 65
    assert search_failure_score("Acme acquired Globex") == 30


def test_established_fact_detection():
    assert is_established_fact("Water boils at 100 degrees")
    assert is_established_fact("2 + 2 = 4")
    assert not is_established_fact("Acme shares fell 4% on Monday")


def test_political_query_rewrite():
    assert optimize_search_query("Joe Biden is president of the United States") == (
        "US president White House"
    )
    assert optimize_search_query("JD Vance is the vice president") == (
        "US vice president White House"
    )


def test_keyword_query_drops_stop_words():
    query = optimize_search_query("The central bank announced that inflation is falling")
    assert "the" not in query.split()
    assert "announced" not in query.split()
    assert "inflation" in query


def test_extract_keywords_longest_first_and_distinct():
    assert extract_keywords("inflation inflation rate bank", 5) == ["inflation", "rate", "bank"]


def test_quality_counts_distinct_outlets_with_tiers():
    arts = [article(source="Reuters"), article(source="reuters"), article(source="Unknown Blog")]
    assert source_quality_points(arts) == 10 + 4


def test_consensus_steps():
    assert consensus_points([]) == 0
    assert consensus_points([article(source="A")]) == 5
    assert consensus_points([article(source=s) for s in "AB"]) == 10
    assert consensus_points([article(source=s) for s in "ABCD"]) == 15
    assert consensus_points([article(source=s) for s in "ABCDE"]) == 20


def test_recency_buckets():
    arts = [article(age_days=0.5), article(age_days=3), article(age_days=20), article(age_days=90)]
    assert recency_points(arts, NOW) == 5 + 3 + 1


def test_future_dated_articles_earn_no_recency():
    arts = [article(age_days=-2), article(age_days=-0.01), article(age_days=0.5)]
    assert recency_points(arts, NOW) == 5


def test_general_path_strong_coverage():
    claim = "Inflation slowed to three percent in September"
    arts = [
        article(
            title="Inflation slowed to three percent in September",
            source=s,
        )
        for s in ("Reuters", "Associated Press", "BBC News", "Bloomberg", "NPR")
    ]
    b = compute_credibility(claim, arts, NOW)
    # relevance, quality and consensus all hit their caps; recency capped at 10
    assert b.score == 40 + 30 + 20 + 10
    assert b.confidence == Confidence.HIGH


def test_general_path_irrelevant_articles_score_low():
    arts = [article(title="Football results", source="Unknown Blog", age_days=60)]
    b = compute_credibility("Inflation slowed to three percent", arts, NOW)
    assert b.relevance == 0
    assert b.score == 4 + 5
    assert b.confidence == Confidence.LOW


def test_established_path_is_clamped():
    arts = [
        article(title="Paris is the capital of France", source=s)
        for s in ("Reuters", "Associated Press", "BBC News", "Bloomberg", "NPR")
    ]
    b = compute_credibility("Paris is the capital of France", arts, NOW)
    assert b.established
    assert b.score == 100


def test_established_relevance_floor():
    arts = [article(title="Unrelated", source="Unknown Blog", age_days=90)]
    b = compute_credibility("Paris is the capital of France", arts, NOW)
    assert b.relevance == 15
    assert b.score == 50 + 15 + 4 + 5 + 0 + 20


def test_confidence_cutoffs_are_strict():
    assert confidence_for(76) == Confidence.HIGH
    assert confidence_for(75) == Confidence.MEDIUM
    assert confidence_for(51) == Confidence.MEDIUM
    assert confidence_for(50) == Confidence.LOW


def test_custom_policy_changes_baseline():
    policy = ScoringPolicy(general_no_sources=10)
    assert compute_credibility("Acme acquired Globex", [], NOW, policy).score == 10
