# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.


import asyncio
from typing import Callable, Union

import pytest
from unittest.mock import AsyncMock, MagicMock

from checkx_core.llm.model_host import SessionDestroyedError, SessionOptions
from checkx_core.runtime_config import EngineRuntimeConfig
from checkx_core.schema import PostRecord
from checkx_core.tools.newsdata_client import NewsDataClient

Reply = Union[str, Exception]


class FakeSession:
    """Scripted session: pops one reply per prompt; exceptions are raised."""

    def __init__(self, replies: list[Reply], options: SessionOptions):
        self._replies = replies
        self.options = options
        self.prompts: list[str] = []
        self.destroyed = False

    async def prompt(self, text: str) -> str:
        if self.destroyed:
            raise SessionDestroyedError("Session has been destroyed")
        self.prompts.append(text)
        await asyncio.sleep(0)
        if not self._replies:
            raise RuntimeError("no scripted reply")
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def destroy(self) -> None:
        self.destroyed = True


class FakeModelHost:
    """
    In-process ModelHost.

    All sessions share one reply queue, so a retry on a fresh session
    consumes the next scripted reply.
    """

    def __init__(
        self,
        replies: list[Reply] | None = None,
        *,
        available: bool = True,
        create_error: Exception | None = None,
        responder: Callable[[str], str] | None = None,
    ):
        self.replies: list[Reply] = list(replies or [])
        self.is_available = available
        self.create_error = create_error
        self.responder = responder
        self.create_calls = 0
        self.sessions: list[FakeSession] = []

    def available(self) -> bool:
        return self.is_available

    async def create(self, options: SessionOptions) -> FakeSession:
        self.create_calls += 1
        await asyncio.sleep(0)
        if self.create_error is not None:
            raise self.create_error
        session = FakeSession(self.replies, options)
        if self.responder is not None:
            responder = self.responder

            async def _respond(text: str) -> str:
                session.prompts.append(text)
                return responder(text)

            session.prompt = _respond  # type: ignore[method-assign]
        self.sessions.append(session)
        return session


@pytest.fixture
def runtime():
    return EngineRuntimeConfig.default()


@pytest.fixture
def make_host():
    """Factory for scripted hosts: make_host(replies, available=..., create_error=...)."""
    return FakeModelHost


@pytest.fixture
def sample_post():
    return PostRecord(
        id="1790000000000000001",
        content="BREAKING: New COVID vaccine study published by WHO researchers in Geneva",
        author="@healthdesk",
        timestamp="2025-03-14T09:30:00.000Z",
        url="https://x.com/healthdesk/status/1790000000000000001",
    )


@pytest.fixture
def sensational_post():
    return PostRecord(
        id="1790000000000000002",
        content="URGENT!!! The hidden truth about the miracle cure THEY don't want you to know. SHARE NOW",
        author="@truthseeker",
        timestamp="2025-03-14T10:00:00.000Z",
    )


@pytest.fixture
def mock_news_client():
    """Matches the interface of NewsDataClient, returning AsyncMocks."""
    client = MagicMock(spec=NewsDataClient)
    client.latest = AsyncMock(return_value=[
        {
            "title": "WHO publishes COVID vaccine study",
            "link": "https://news.example.com/who-vaccine-study",
            "description": "Researchers in Geneva released new vaccine data.",
            "source_id": "reuters",
            "pubDate": "2025-03-14 08:00:00",
        },
        {
            "title": "Markets close higher",
            "link": "https://news.example.com/markets",
            "description": "Stocks rallied on Friday.",
            "source_id": "bloomberg",
            "pubDate": "2025-03-14 07:00:00",
        },
    ])
    client.close = AsyncMock()
    return client
