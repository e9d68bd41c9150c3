# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# CheckX Engine is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with CheckX Engine. If not, see <https://www.gnu.org/licenses/>.

"""
Model host capability.

The detector never talks to a model SDK directly. It asks a `ModelHost` for a
session configured with a system prompt and sampling options, then issues
single-shot prompts against it. `OpenAIModelHost` implements the capability on
top of any OpenAI-compatible chat endpoint: a local server (llama.cpp, vLLM,
Ollama) for on-device use, or the hosted OpenAI API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from openai import AsyncOpenAI

from checkx_core.llm.errors import ModelUnavailable
from checkx_core.utils.trace import Trace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOptions:
    system_prompt: str
    temperature: float = 0.3
    top_k: int = 10
    max_tokens: int | None = None


@runtime_checkable
class ModelSession(Protocol):
    async def prompt(self, text: str) -> str:
        """Single-shot prompt; returns the raw model text."""
        ...

    def destroy(self) -> None:
        ...


@runtime_checkable
class ModelHost(Protocol):
    def available(self) -> bool:
        """True iff the environment exposes a usable model. Must not have side effects."""
        ...

    async def create(self, options: SessionOptions) -> ModelSession:
        ...


class SessionDestroyedError(RuntimeError):
    pass


class OpenAIChatSession:
    """
    Session over chat completions.

    Every prompt is sent as [system, user]; no conversation history is kept.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str,
        options: SessionOptions,
        send_top_k: bool,
        timeout_sec: float,
    ):
        self._client = client
        self._model = model
        self._options = options
        self._send_top_k = send_top_k
        self._timeout_sec = timeout_sec
        self._destroyed = False

    @property
    def options(self) -> SessionOptions:
        return self._options

    async def prompt(self, text: str) -> str:
        if self._destroyed:
            raise SessionDestroyedError("Session has been destroyed")

        params: dict = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": self._options.system_prompt},
                {"role": "user", "content": text},
            ],
            "temperature": self._options.temperature,
            "timeout": self._timeout_sec,
        }
        if self._options.max_tokens:
            params["max_tokens"] = self._options.max_tokens
        # top_k is not part of the OpenAI API; local OpenAI-compatible servers accept it.
        if self._send_top_k and self._options.top_k:
            params["extra_body"] = {"top_k": self._options.top_k}

        Trace.event("model.prompt", {"model": self._model, "input_chars": len(text)})
        response = await self._client.chat.completions.create(**params)

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        if not content.strip():
            raise ValueError("Empty response from model")

        Trace.event("model.response", {"model": self._model, "content_chars": len(content)})
        return content

    def destroy(self) -> None:
        self._destroyed = True


class OpenAIModelHost:
    """
    ModelHost backed by an OpenAI-compatible endpoint.

    Available when either an API key or a local base URL is configured.
    The SDK client is built lazily so that constructing the host never fails.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str | None = None,
        timeout_sec: float = 60.0,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._timeout_sec = timeout_sec
        self._client: AsyncOpenAI | None = None

    def available(self) -> bool:
        return bool(self._api_key or self._base_url)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # Local servers usually ignore the key but the SDK insists on one.
            self._client = AsyncOpenAI(
                api_key=self._api_key or "local",
                base_url=self._base_url,
            )
        return self._client

    async def create(self, options: SessionOptions) -> OpenAIChatSession:
        if not self.available():
            raise ModelUnavailable("No model endpoint configured")
        logger.debug("[ModelHost] Creating session model=%s local=%s", self._model, bool(self._base_url))
        return OpenAIChatSession(
            self._get_client(),
            model=self._model,
            options=options,
            send_top_k=bool(self._base_url),
            timeout_sec=self._timeout_sec,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
