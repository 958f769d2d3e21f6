"""Reward Trigger — Lightning tips for credible posts via NIP-57 zap requests.

Invariants:
    - Eligible only with an event id and score strictly above the threshold
    - amount_sats = floor(score / 100 * base amount); zap request amount in millisats
    - process_content_zap() never raises: failures return {success: False, error}
    - reward() merges {amount_sats, message} into result.metadata["zap"] on success only

Design Decisions:
    - LightningBackend protocol (mock by default): invoice issuance is the only
      payment capability the service needs
    - The zap request is signed with the service key so wallets can attribute tips
"""

import asyncio
import logging
import time
from typing import Callable

from nostr_oracle.core.errors import RewardError
from nostr_oracle.core.verification_types import VerificationResult
from nostr_oracle.core.zaps import (
    build_zap_request, is_zap_eligible, wallet_info, zap_amount_sats,
    zap_comment, zap_description,
)
from nostr_oracle.infrastructure.lightning import LightningBackend
from nostr_oracle.infrastructure.nostr_signer import NostrSigner

logger = logging.getLogger(__name__)


class RewardTrigger:
    """Decides on, sizes and prepares zaps."""

    def __init__(
        self,
        backend: LightningBackend,
        signer: NostrSigner,
        address: str,
        base_amount_sats: int = 1000,
        threshold: int = 80,
        relays: list[str] | None = None,
        timeout_seconds: float = 8.0,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.signer = signer
        self.address = address
        self.base_amount_sats = base_amount_sats
        self.threshold = threshold
        self.relays = list(relays or [])
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    def wallet_info(self) -> dict:
        return wallet_info(self.address, self.base_amount_sats, self.threshold, self.backend.mode)

    async def process_content_zap(self, event_id: str, author_pubkey: str, score: int) -> dict:
        if not is_zap_eligible(event_id, score, self.threshold):
            return {
                "success": False,
                "reason": "Content score too low for zap",
                "score": score,
                "threshold": self.threshold,
            }
        amount = zap_amount_sats(score, self.base_amount_sats)
        try:
            invoice = await self._create_invoice(amount, zap_description(score))
            zap_request = self.signer.sign(build_zap_request(
                recipient_pubkey=author_pubkey,
                event_id=event_id,
                amount_msats=amount * 1000,
                relays=self.relays,
                comment=zap_comment(score),
                created_at=int(self.clock()),
            ))
        except (RewardError, ValueError) as e:
            logger.error(f"Zap failed: {e}", extra={"event_id": event_id})
            return {"success": False, "error": str(e)}

        logger.info(
            f"Zap prepared: {amount} sats",
            extra={"event_id": event_id, "amount_sats": amount},
        )
        return {
            "success": True,
            "amount_sats": amount,
            "invoice": invoice.bolt11,
            "zap_request": zap_request,
            "message": f"Zapped {amount} sats for high-quality content",
        }

    async def _create_invoice(self, amount: int, description: str):
        try:
            return await asyncio.wait_for(
                self.backend.create_invoice(amount, description), self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise RewardError("invoice request timed out") from e

    async def reward(self, result: VerificationResult, author_pubkey: str | None) -> dict | None:
        """Zap the author of a result if it qualifies. Never raises."""
        if not author_pubkey or not is_zap_eligible(result.event_id, result.score, self.threshold):
            return None
        try:
            outcome = await self.process_content_zap(result.event_id, author_pubkey, result.score)
        except Exception as e:
            logger.error(f"Reward failed: {e}", extra={"event_id": result.event_id}, exc_info=True)
            return None
        if not outcome.get("success"):
            return None
        result.metadata["zap"] = {
            "amount_sats": outcome["amount_sats"],
            "message": outcome["message"],
        }
        return outcome
