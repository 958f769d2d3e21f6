"""Nostr Signer — service identity and BIP-340 Schnorr signing of event templates.

Invariants:
    - pubkey is the 32-byte x-only public key, hex encoded
    - sign() returns a complete event: template fields + id + pubkey + sig
    - An absent or invalid NOSTR_PRIV_KEY yields a fresh per-process key (logged once,
      never the secret itself)

Design Decisions:
    - coincurve (libsecp256k1 bindings) for Schnorr: the only signature scheme relays accept
    - Event id computed by core/nostr_events.py so id rules stay pure and testable
"""

import logging
import secrets

from coincurve import PrivateKey, PublicKeyXOnly

from nostr_oracle.core.nostr_events import compute_event_id

logger = logging.getLogger(__name__)


def _load_secret(secret_hex: str | None) -> bytes | None:
    if not secret_hex or len(secret_hex) != 64:
        return None
    try:
        return bytes.fromhex(secret_hex)
    except ValueError:
        return None


class NostrSigner:
    """Holds the service key pair and signs Nostr events."""

    def __init__(self, secret_hex: str | None = None):
        secret = _load_secret(secret_hex)
        if secret is None:
            if secret_hex:
                logger.warning("NOSTR_PRIV_KEY is not 64 hex chars, using an ephemeral key")
            else:
                logger.warning("NOSTR_PRIV_KEY not set, using an ephemeral key")
            secret = secrets.token_bytes(32)
        self._private_key = PrivateKey(secret)
        self.pubkey = PublicKeyXOnly.from_secret(secret).format().hex()

    def sign(self, template: dict) -> dict:
        """Compute id and Schnorr signature for an unsigned event template."""
        event_id = compute_event_id(
            self.pubkey,
            template["created_at"],
            template["kind"],
            template["tags"],
            template["content"],
        )
        sig = self._private_key.sign_schnorr(bytes.fromhex(event_id))
        return {**template, "id": event_id, "pubkey": self.pubkey, "sig": sig.hex()}


def verify_event(event: dict) -> bool:
    """Check an event's id and signature."""
    expected_id = compute_event_id(
        event["pubkey"], event["created_at"], event["kind"], event["tags"], event["content"],
    )
    if expected_id != event.get("id"):
        return False
    public_key = PublicKeyXOnly(bytes.fromhex(event["pubkey"]))
    return public_key.verify(bytes.fromhex(event["sig"]), bytes.fromhex(event["id"]))
