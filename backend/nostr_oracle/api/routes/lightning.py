"""Lightning Routes — wallet info and manual zap requests.

Invariants:
    - POST /lightning/zap with any of eventId, authorPubkey, credibilityScore
      missing → 400 MISSING_FIELDS
    - Below-threshold scores return success False with the threshold (HTTP 200)
    - Successful zaps are announced on the lightning_zaps topic
"""

from fastapi import APIRouter, Depends

from nostr_oracle.api.dependencies import get_oracle
from nostr_oracle.core.errors import MissingFieldError
from nostr_oracle.schemas.requests import ZapRequest
from nostr_oracle.services.context import OracleContext

router = APIRouter(prefix="/lightning", tags=["lightning"])


@router.get("/info")
async def lightning_info(oracle: OracleContext = Depends(get_oracle)):
    return oracle.reward.wallet_info()


@router.post("/zap")
async def lightning_zap(body: ZapRequest, oracle: OracleContext = Depends(get_oracle)):
    missing = body.missing_fields()
    if missing:
        raise MissingFieldError(missing)
    outcome = await oracle.reward.process_content_zap(
        body.event_id, body.author_pubkey, body.credibility_score,
    )
    if outcome.get("success"):
        await oracle.broadcaster.publish_zap({
            "eventId": body.event_id,
            "amount_sats": outcome["amount_sats"],
            "message": outcome["message"],
            "invoice": outcome["invoice"],
        })
    return outcome
