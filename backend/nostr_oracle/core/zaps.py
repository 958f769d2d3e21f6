"""Zap Rules — reward eligibility, amount and NIP-57 zap request template.

Invariants:
    - Reward only for results with an event id and score strictly above the threshold
    - amount_sats = floor(score / 100 * base_amount_sats), computed in integers
    - Zap request amount tag is in millisats

Design Decisions:
    - Integer arithmetic for the amount: 85 / 100 * 1000 in floats is 849.999...
"""

from nostr_oracle.core.domain_types import ZAP_REQUEST_KIND

DEFAULT_ZAP_THRESHOLD = 80
SUPPORTED_FEATURES = ("NIP-57 Zaps", "Automated tipping", "Quality-based rewards")


def is_zap_eligible(event_id: str | None, score: int, threshold: int = DEFAULT_ZAP_THRESHOLD) -> bool:
    return bool(event_id) and score > threshold


def zap_amount_sats(score: int, base_amount_sats: int) -> int:
    return (int(score) * base_amount_sats) // 100


def zap_description(score: int) -> str:
    return f"NostrOracle tip for high-quality content (score: {score})"


def zap_comment(score: int) -> str:
    return f"Automated tip from NostrOracle for credible content (score: {score}/100)"


def build_zap_request(
    recipient_pubkey: str,
    event_id: str,
    amount_msats: int,
    relays: list[str],
    comment: str,
    created_at: int,
) -> dict:
    """Unsigned kind 9734 zap request."""
    return {
        "kind": ZAP_REQUEST_KIND,
        "created_at": created_at,
        "tags": [
            ["p", recipient_pubkey],
            ["e", event_id],
            ["amount", str(amount_msats)],
            ["relays", *relays],
        ],
        "content": comment,
    }


def wallet_info(address: str, base_amount_sats: int, threshold: int, mode: str) -> dict:
    return {
        "address": address,
        "default_zap_amount": base_amount_sats,
        "supported_features": list(SUPPORTED_FEATURES),
        "zap_threshold": threshold,
        "status": mode,
    }
