"""Resilient Anthropic client — retry on transient failures, fail fast on client errors."""

import httpx
import pytest
from anthropic import APIConnectionError, APITimeoutError, BadRequestError, InternalServerError

from fakes import FakeMessage

from nostr_oracle.core.errors import AnthropicAPIError
from nostr_oracle.infrastructure.anthropic_client import (
    ResilientAnthropicClient, classify_error, response_text,
)

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class ScriptedMessages:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def create(self, **kwargs):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(messages, max_retries=2):
    client = ResilientAnthropicClient("sk-ant-test", max_retries=max_retries, base_delay_ms=1, max_delay_ms=2)
    client.client.messages = messages
    return client


async def _call(client):
    return await client.create_message(
        model="m", max_tokens=10, system="s", messages=[{"role": "user", "content": "x"}],
    )


async def test_retries_transient_then_succeeds():
    messages = ScriptedMessages(APIConnectionError(request=REQUEST), FakeMessage('["ok"]'))
    response = await _call(_client(messages))
    assert messages.calls == 2
    assert response_text(response) == '["ok"]'


async def test_gives_up_after_retries():
    messages = ScriptedMessages(*[APIConnectionError(request=REQUEST)] * 3)
    with pytest.raises(AnthropicAPIError) as exc:
        await _call(_client(messages))
    assert exc.value.api_error_type == "connection_error"
    assert messages.calls == 3


async def test_client_error_fails_fast():
    error = BadRequestError("bad", response=httpx.Response(400, request=REQUEST), body=None)
    messages = ScriptedMessages(error)
    with pytest.raises(AnthropicAPIError) as exc:
        await _call(_client(messages))
    assert exc.value.api_error_type == "client_error"
    assert messages.calls == 1


def test_classify_error():
    server = InternalServerError("boom", response=httpx.Response(500, request=REQUEST), body=None)
    overloaded = InternalServerError("busy", response=httpx.Response(529, request=REQUEST), body=None)
    bad = BadRequestError("bad", response=httpx.Response(400, request=REQUEST), body=None)
    assert classify_error(APITimeoutError(request=REQUEST)) == ("timeout", False)
    assert classify_error(APIConnectionError(request=REQUEST)) == ("connection_error", True)
    assert classify_error(server) == ("connection_error", True)
    assert classify_error(overloaded) == ("connection_error", True)
    assert classify_error(bad) == ("client_error", False)
