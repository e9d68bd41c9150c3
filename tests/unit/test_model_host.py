# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Unit tests for the OpenAI-compatible model host."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from checkx_core.llm.errors import ModelUnavailable
from checkx_core.llm.model_host import (
    OpenAIChatSession,
    OpenAIModelHost,
    SessionDestroyedError,
    SessionOptions,
)


def _completion(content):
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def _client(content="ok"):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_completion(content))
    return client


OPTIONS = SessionOptions(system_prompt="sys", temperature=0.3, top_k=10, max_tokens=256)


def test_availability():
    assert OpenAIModelHost(api_key=None, model="m").available() is False
    assert OpenAIModelHost(api_key="sk-test", model="m").available() is True
    assert OpenAIModelHost(api_key=None, model="m", base_url="http://localhost:8080/v1").available() is True


@pytest.mark.asyncio
async def test_create_without_endpoint_raises():
    host = OpenAIModelHost(api_key=None, model="m")
    with pytest.raises(ModelUnavailable):
        await host.create(OPTIONS)


@pytest.mark.asyncio
async def test_prompt_sends_system_and_user():
    client = _client('{"confidence": 5}')
    session = OpenAIChatSession(client, model="gpt-4o-mini", options=OPTIONS, send_top_k=False, timeout_sec=30.0)

    assert await session.prompt("analyze") == '{"confidence": 5}'

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "analyze"},
    ]
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 256
    assert "extra_body" not in kwargs


@pytest.mark.asyncio
async def test_local_endpoint_gets_top_k():
    client = _client()
    session = OpenAIChatSession(client, model="local", options=OPTIONS, send_top_k=True, timeout_sec=30.0)
    await session.prompt("x")
    assert client.chat.completions.create.call_args.kwargs["extra_body"] == {"top_k": 10}


@pytest.mark.asyncio
async def test_empty_content_raises():
    session = OpenAIChatSession(_client("   "), model="m", options=OPTIONS, send_top_k=False, timeout_sec=30.0)
    with pytest.raises(ValueError):
        await session.prompt("x")


@pytest.mark.asyncio
async def test_destroyed_session_refuses_prompts():
    session = OpenAIChatSession(_client(), model="m", options=OPTIONS, send_top_k=False, timeout_sec=30.0)
    session.destroy()
    with pytest.raises(SessionDestroyedError):
        await session.prompt("x")


@pytest.mark.asyncio
async def test_host_builds_session_lazily():
    host = OpenAIModelHost(api_key="sk-test", model="gpt-4o-mini", base_url="http://localhost:8080/v1")
    assert host._client is None
    session = await host.create(OPTIONS)
    assert isinstance(session, OpenAIChatSession)
    assert host._client is not None
    await host.close()
    assert host._client is None
