"""API test fixtures — the real app over a test OracleContext.

Invariants:
    - ASGITransport does not run the lifespan: the context is installed on
      app.state directly, so no relay connections or background loops start
    - Search is faked; extraction uses patterns (no Anthropic credential)
"""

import pytest
from httpx import ASGITransport, AsyncClient

from fakes import build_oracle

from nostr_oracle.main import app


@pytest.fixture
async def oracle(db_manager):
    ctx = build_oracle(db_manager)
    yield ctx
    await ctx.shutdown()


@pytest.fixture
async def client(oracle):
    app.state.oracle = oracle
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
