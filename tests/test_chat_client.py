"""
Tests for the HTTP chat-completion client.

A real aiohttp test server stands in for the chat endpoint.
"""

import asyncio
import json
import os
from unittest.mock import patch

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from audio.playback import SpeechPlayback
from chat_core.models.http_chat import HTTPChatClient
from config import SessionConfig
from exceptions import ChatTransportError, TransportError
from fakes import FakePlayer, FakeView
from sessions.conversation import ConversationStateMachine, TurnOutcome

MESSAGES = [
    {"role": "system", "content": "You are a fortune teller."},
    {"role": "user", "content": "The visitor says: \"Bonjour\""},
]

# Latin-1 "é" inside a body served as UTF-8 JSON
LATIN1_BODY = (
    b'{"choices":[{"message":{"content":"caf\xe9 '
    b'{\\"spoken\\":\\"Bonsoir\\",\\"score\\":50,\\"insults\\":false}"}}]}'
)


class TestHTTPChatClient(AioHTTPTestCase):
    async def get_application(self):
        self.received = []

        async def chat(request: web.Request) -> web.Response:
            self.received.append(
                {"json": await request.json(), "authorization": request.headers.get("Authorization")}
            )
            return web.Response(text='{"choices":[{"message":{"content":"ok"}}]}', content_type="application/json")

        async def broken(request: web.Request) -> web.Response:
            return web.Response(status=500, text="model crashed")

        async def latin1(request: web.Request) -> web.Response:
            return web.Response(body=LATIN1_BODY, content_type="application/json")

        app = web.Application()
        app.router.add_post("/v1/chat/completions", chat)
        app.router.add_post("/broken", broken)
        app.router.add_post("/latin1", latin1)
        return app

    async def test_returns_raw_body(self):
        async with HTTPChatClient(str(self.server.make_url("/v1/chat/completions")), "llama3") as client:
            body = await client.complete(MESSAGES)

        assert body == '{"choices":[{"message":{"content":"ok"}}]}'

    async def test_sends_model_and_full_history(self):
        async with HTTPChatClient(str(self.server.make_url("/v1/chat/completions")), "llama3") as client:
            await client.complete(MESSAGES)

        assert self.received[0]["json"] == {"model": "llama3", "messages": MESSAGES}

    async def test_bearer_token_when_key_configured(self):
        async with HTTPChatClient(
            str(self.server.make_url("/v1/chat/completions")), "llama3", api_key="secret"
        ) as client:
            await client.complete(MESSAGES)

        assert self.received[0]["authorization"] == "Bearer secret"

    async def test_no_authorization_without_key(self):
        with patch.dict(os.environ):
            os.environ.pop("CHAT_API_KEY", None)
            async with HTTPChatClient(str(self.server.make_url("/v1/chat/completions")), "llama3") as client:
                await client.complete(MESSAGES)

        assert self.received[0]["authorization"] is None

    async def test_error_status_raises_transport_error(self):
        async with HTTPChatClient(str(self.server.make_url("/broken")), "llama3") as client:
            with self.assertRaises(ChatTransportError) as ctx:
                await client.complete(MESSAGES)

        assert ctx.exception.status == 500
        assert ctx.exception.body == "model crashed"
        assert isinstance(ctx.exception, TransportError)

    async def test_invalid_utf8_body_is_replaced_not_raised(self):
        async with HTTPChatClient(str(self.server.make_url("/latin1")), "llama3") as client:
            body = await client.complete(MESSAGES)

        assert "caf\ufffd" in body
        assert r'\"spoken\":\"Bonsoir\"' in body

    async def test_invalid_utf8_body_still_completes_turn(self):
        view = FakeView()
        config = SessionConfig(system_prompt="Tu es Madame Zelda.")
        async with HTTPChatClient(str(self.server.make_url("/latin1")), "llama3") as client:
            playback = SpeechPlayback(view, FakePlayer(), tick_seconds=0.001)
            machine = ConversationStateMachine(config, client, playback, view)

            result = await machine.advance_conversation("Bonjour")

        assert result.outcome is TurnOutcome.COMPLETED
        assert result.reply.spoken == "Bonsoir"
        assert view.input_interactable is True


class _RaisingSession:
    """Minimal stand-in for aiohttp.ClientSession whose post() fails."""

    def __init__(self, error: Exception):
        self.error = error
        self.closed = False
        self.close_calls = 0

    def post(self, *args, **kwargs):
        raise self.error

    async def close(self):
        self.close_calls += 1
        self.closed = True


class TestTransportFailures:
    async def test_connection_error_wrapped(self):
        session = _RaisingSession(aiohttp.ClientConnectionError("connection refused"))
        client = HTTPChatClient("http://localhost:9/v1/chat/completions", "llama3", session=session)

        with pytest.raises(ChatTransportError, match="ClientConnectionError") as exc_info:
            await client.complete(MESSAGES)

        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    async def test_timeout_wrapped(self):
        session = _RaisingSession(asyncio.TimeoutError())
        client = HTTPChatClient("http://localhost:9/v1/chat/completions", "llama3", session=session)

        with pytest.raises(ChatTransportError, match="timed out"):
            await client.complete(MESSAGES)

    async def test_close_leaves_injected_session_open(self):
        session = _RaisingSession(RuntimeError("unused"))
        client = HTTPChatClient("http://localhost:9/v1/chat/completions", "llama3", session=session)

        await client.close()

        assert session.close_calls == 0


def test_build_payload_copies_messages():
    client = HTTPChatClient("http://localhost:9/v1/chat/completions", "llama3")
    payload = client.build_payload(MESSAGES)

    assert payload == {"model": "llama3", "messages": MESSAGES}
    assert json.loads(json.dumps(payload)) == payload
