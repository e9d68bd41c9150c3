# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Model failure classification.

Tells logs and traces why a prompt (and with it a tier) was abandoned.
Typed checks against the openai/httpx exception hierarchy run first; the
message heuristics cover local hosts that raise plain exceptions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx
import openai


class LLMFailureKind(Enum):
    SESSION_LOST = "session_lost"
    CONNECTION_ERROR = "connection_error"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"


# Order matters: APITimeoutError is an APIConnectionError.
_TYPED: tuple[tuple[tuple[type[BaseException], ...], LLMFailureKind], ...] = (
    ((openai.APITimeoutError, httpx.TimeoutException, TimeoutError), LLMFailureKind.TIMEOUT),
    ((openai.RateLimitError, openai.InternalServerError), LLMFailureKind.PROVIDER_ERROR),
    ((openai.APIConnectionError, httpx.TransportError, ConnectionError), LLMFailureKind.CONNECTION_ERROR),
)

# (kind, message fragments, exception type-name fragments), checked in order.
# Provider before connection so "Service unavailable (503)" is not a network issue.
_HEURISTICS: tuple[tuple[LLMFailureKind, tuple[str, ...], tuple[str, ...]], ...] = (
    (
        LLMFailureKind.SESSION_LOST,
        ("session destroyed", "session has been destroyed", "session is closed", "no session"),
        ("sessiondestroyed",),
    ),
    (
        LLMFailureKind.PROVIDER_ERROR,
        ("rate limit", "rate_limit", "quota", "capacity", "overloaded", "unavailable",
         "internal server", "500", "502", "503", "504"),
        ("ratelimit", "internalserver"),
    ),
    (
        LLMFailureKind.TIMEOUT,
        ("timeout", "timed out", "deadline exceeded"),
        ("timeout",),
    ),
    (
        LLMFailureKind.CONNECTION_ERROR,
        ("connection", "connect", "network", "socket", "refused", "unreachable", "dns", "ssl"),
        ("connection", "network"),
    ),
)


def classify_llm_failure(exc: Exception) -> LLMFailureKind | None:
    """Return the failure kind for a model call exception, or None if unrecognized."""
    for types, kind in _TYPED:
        if isinstance(exc, types):
            return kind

    message = str(exc).lower()
    type_name = type(exc).__name__.lower()
    for kind, fragments, type_fragments in _HEURISTICS:
        if any(f in message for f in fragments) or any(t in type_name for t in type_fragments):
            return kind
    return None


def failure_kind_to_trace_data(kind: LLMFailureKind | None, exc: Exception) -> dict[str, Any]:
    return {
        "failure_kind": kind.value if kind else "unknown",
        "error_type": type(exc).__name__,
        "error_message": str(exc)[:200],
    }
