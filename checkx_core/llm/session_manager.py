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
Model session lifecycle.

Owns at most one live session and hides initialization cost and transient
failures from callers:
- Concurrent initialize() calls share one in-flight attempt
- execute_prompt() reinitializes and retries on failure
- Every public method degrades to False/None instead of raising

"No session" is an expected outcome, not an exceptional one.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from checkx_core.analysis.prompts import DETECTOR_SYSTEM_PROMPT
from checkx_core.llm.failures import LLMFailureKind, classify_llm_failure, failure_kind_to_trace_data
from checkx_core.llm.model_host import ModelHost, ModelSession, SessionOptions
from checkx_core.runtime_config import EngineRuntimeConfig
from checkx_core.utils.trace import Trace

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


class SessionManager:
    """
    Explicitly owned model session manager.

    Example:
        manager = SessionManager(OpenAIModelHost(api_key="sk-...", model="gpt-4o-mini"))
        text = await manager.execute_prompt("Analyze this post: ...")
        if text is None:
            ...  # fall back to a cheaper strategy
    """

    def __init__(
        self,
        host: ModelHost,
        *,
        runtime: EngineRuntimeConfig | None = None,
        system_prompt: str = DETECTOR_SYSTEM_PROMPT,
    ):
        self._host = host
        self._runtime = runtime or EngineRuntimeConfig.load_from_env()
        self._system_prompt = system_prompt

        self._session: ModelSession | None = None
        self._is_initializing = False
        self._init_task: asyncio.Future[bool] | None = None
        self._state = SessionState.UNINITIALIZED
        self._last_failure_kind: LLMFailureKind | None = None

        # Optional serialization of prompts on the shared session (off by default).
        self._prompt_lock: asyncio.Lock | None = (
            asyncio.Lock() if self._runtime.features.serialize_prompts else None
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_failure_kind(self) -> LLMFailureKind | None:
        """Kind of the most recent failed prompt attempt; reset when a prompt succeeds."""
        return self._last_failure_kind

    async def check_availability(self) -> bool:
        """True iff the host exposes the model capability."""
        try:
            available = bool(self._host.available())
        except Exception as e:
            logger.error("[Session] Error checking model availability: %s", e)
            return False

        if not available:
            logger.warning("[Session] Model capability not available")
        return available

    async def initialize(self, force: bool = False) -> bool:
        if self._session is not None and not force:
            return True

        if self._is_initializing and self._init_task is not None:
            return await self._init_task

        self._is_initializing = True
        self._state = SessionState.INITIALIZING
        task = asyncio.ensure_future(self._perform_initialization())
        self._init_task = task

        try:
            return await task
        finally:
            self._is_initializing = False
            self._init_task = None

    async def _perform_initialization(self) -> bool:
        try:
            if not await self.check_availability():
                logger.warning("[Session] Model not available for initialization")
                self._state = SessionState.READY if self._session is not None else SessionState.ERROR
                return False

            if self._session is not None:
                self._destroy_quietly(self._session)
                self._session = None

            options = SessionOptions(
                system_prompt=self._system_prompt,
                temperature=self._runtime.llm.temperature,
                top_k=self._runtime.llm.top_k,
                max_tokens=self._runtime.llm.max_tokens,
            )
            self._session = await self._host.create(options)
            self._state = SessionState.READY

            logger.info("[Session] Model session created")
            Trace.event("session.init.ok", {
                "temperature": options.temperature,
                "top_k": options.top_k,
                "max_tokens": options.max_tokens,
            })
            return True
        except Exception as e:
            logger.error("[Session] Failed to initialize model session: %s", e)
            Trace.event("session.init.error", {"error_type": type(e).__name__, "error": str(e)[:200]})
            self._session = None
            self._state = SessionState.ERROR
            return False

    async def get_session(self) -> ModelSession | None:
        if self._session is None:
            if not await self.initialize():
                return None
        return self._session

    def is_ready(self) -> bool:
        return self._session is not None

    async def execute_prompt(self, prompt: str, retries: int = 1) -> str | None:
        """
        Run a prompt, reinitializing the session between failed attempts.

        Returns None when no session can be obtained or every attempt fails.
        """
        self._last_failure_kind = None
        session = await self.get_session()
        if session is None:
            logger.warning("[Session] No model session available for prompt execution")
            return None

        retries = max(0, int(retries))
        for attempt in range(retries + 1):
            try:
                text = await self._prompt(session, prompt)
            except Exception as e:
                kind = classify_llm_failure(e)
                self._last_failure_kind = kind
                logger.warning(
                    "[Session] Prompt attempt %d/%d failed: %s (kind=%s)",
                    attempt + 1, retries + 1, e, kind.value if kind else "unknown",
                )
                Trace.event("session.prompt.error", {
                    "attempt": attempt + 1,
                    **failure_kind_to_trace_data(kind, e),
                })

                if attempt < retries:
                    await self.initialize(force=True)
                    if self._session is None:
                        logger.warning("[Session] Reinitialization failed; giving up on prompt")
                        break
                    session = self._session
                continue

            self._last_failure_kind = None
            return text

        return None

    async def _prompt(self, session: ModelSession, prompt: str) -> str:
        if self._prompt_lock is None:
            return await session.prompt(prompt)
        async with self._prompt_lock:
            return await session.prompt(prompt)

    async def cleanup(self) -> None:
        """Best-effort session destruction; safe to call repeatedly."""
        if self._session is not None:
            self._destroy_quietly(self._session)
            self._session = None
        self._state = SessionState.UNINITIALIZED

    @staticmethod
    def _destroy_quietly(session: ModelSession) -> None:
        try:
            session.destroy()
        except Exception as e:
            logger.warning("[Session] Error destroying session: %s", e)
