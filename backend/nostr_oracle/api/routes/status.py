"""Status Routes — service overview and recent scores.

Invariants:
    - GET / reports uptime, stats, live feed status and relay connectivity
    - GET /scores returns at most recent_results_limit results, newest first
"""

from fastapi import APIRouter, Depends

from nostr_oracle.api.dependencies import get_oracle
from nostr_oracle.services.context import OracleContext

router = APIRouter(tags=["status"])


@router.get("/")
async def service_status(oracle: OracleContext = Depends(get_oracle)):
    stats = await oracle.store.stats()
    return {
        "status": "online",
        "uptime": round(oracle.uptime, 3),
        "stats": stats.to_dict(),
        "liveFeedStatus": oracle.broadcaster.status(),
        "relays": {
            "connected": oracle.relay.connected_count if oracle.relay else 0,
            "urls": oracle.settings.relay_urls,
        },
    }


@router.get("/scores")
async def recent_scores(oracle: OracleContext = Depends(get_oracle)):
    results = await oracle.store.recent()
    return {"scores": [r.to_dict() for r in results]}
