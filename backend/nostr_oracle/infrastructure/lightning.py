"""Lightning Backend — invoice generation contract and the mock implementation.

Invariants:
    - create_invoice() returns an Invoice or raises RewardError
    - MockLightningBackend never contacts a network; invoices are placeholders

Design Decisions:
    - Protocol boundary so a real LND/CLN/LNbits backend can replace the mock
      without touching RewardTrigger
"""

import logging
import time
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

INVOICE_EXPIRY_SECONDS = 3600


@dataclass(frozen=True)
class Invoice:
    bolt11: str
    payment_hash: str
    amount_sats: int
    description: str
    expires_at: int


class LightningBackend(Protocol):
    """Contract for invoice issuance."""
    mode: str

    async def create_invoice(self, amount_sats: int, description: str) -> Invoice: ...


class MockLightningBackend:
    """Issues placeholder invoices (no settlement)."""

    mode = "mock_mode"

    def __init__(self, clock=time.time):
        self._clock = clock

    async def create_invoice(self, amount_sats: int, description: str) -> Invoice:
        now = self._clock()
        stamp = int(now * 1000)
        logger.info(
            f"Mock invoice for {amount_sats} sats: {description}",
            extra={"amount_sats": amount_sats},
        )
        return Invoice(
            bolt11=f"lnbc{amount_sats}u1p...mock_invoice_{stamp}",
            payment_hash=f"mock_hash_{stamp}",
            amount_sats=amount_sats,
            description=description,
            expires_at=int(now) + INVOICE_EXPIRY_SECONDS,
        )
