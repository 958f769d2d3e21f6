"""Verify Route — manual verification of submitted text.

Invariants:
    - Runs the same pipeline as relay events (persist, broadcast included)
    - Collaborator failures are absorbed by the pipeline; anything else surfaces as
      VerificationFailedError (HTTP 500) with the structured error body
"""

import logging

from fastapi import APIRouter, Depends

from nostr_oracle.api.dependencies import get_oracle
from nostr_oracle.core.errors import ErrorContext, OracleError, VerificationFailedError
from nostr_oracle.schemas.requests import VerifyRequest
from nostr_oracle.services.context import OracleContext

logger = logging.getLogger(__name__)
router = APIRouter(tags=["verification"])


@router.post("/verify")
async def verify_content(
    body: VerifyRequest, oracle: OracleContext = Depends(get_oracle),
):
    try:
        result = await oracle.pipeline.verify(body.content, event_id=body.event_id)
    except OracleError:
        raise
    except Exception as e:
        logger.error(f"Manual verification failed: {e}", exc_info=True)
        raise VerificationFailedError(
            "Verification failed", ErrorContext(event_id=body.event_id),
        ) from e
    return result.to_dict()
