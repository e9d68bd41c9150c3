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
Per-analysis JSONL trace.

Each analyze() call gets a trace id; events emitted anywhere below it land in
<CHECKX_TRACE_DIR or data/trace>/<trace_id>.jsonl. Only active on local runs.
Credentials are masked and post text is cut down to a preview before writing.
"""

from __future__ import annotations

import contextvars
import hashlib
import json
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from checkx_core.runtime_config import EngineRuntimeConfig
from checkx_core.utils.runtime import is_local_run

_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("checkx_trace_id", default=None)
_trace_enabled_var: contextvars.ContextVar[bool] = contextvars.ContextVar("checkx_trace_enabled", default=False)

_SECRET_FIELDS = frozenset({
    "authorization", "api_key", "apikey", "key", "x-access-key", "openai_api_key", "newsdata_api_key",
})

# Fields carrying user or model text: kept as a short preview only.
_TEXT_FIELDS = frozenset({"content", "prompt", "raw_response"})
_TEXT_PREVIEW = 200

_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"([?&](?:apikey|api_key|key)=)[^&\s]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(Authorization:\s*Bearer\s+)\S+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(Bearer\s+)[A-Za-z0-9._-]+"), r"\1***"),
    (re.compile(r"\b(sk|pub)[-_][A-Za-z0-9_-]{8,}"), r"\1-***"),
)


def _redact_text(s: str) -> str:
    for pattern, repl in _REDACTIONS:
        s = pattern.sub(repl, s)
    return s


def _digest(s: str, keep: int) -> dict[str, Any]:
    return {
        "len": len(s),
        "sha256": hashlib.sha256(s.encode("utf-8")).hexdigest(),
        "head": s[:keep],
        "tail": s[-keep:] if keep else "",
    }


def _sanitize(obj: Any, *, max_str: int = 4000, max_list: int = 100, max_dict: int = 200) -> Any:
    """Make a payload safe and bounded for the trace file."""
    if obj is None or isinstance(obj, (bool, int, float)):
        return obj

    if isinstance(obj, str):
        s = _redact_text(obj)
        return s if len(s) <= max_str else _digest(s, min(300, max_str // 2))

    if isinstance(obj, bytes):
        return f"<bytes:{len(obj)}>"

    limits = {"max_str": max_str, "max_list": max_list, "max_dict": max_dict}

    if isinstance(obj, (list, tuple)):
        items = [_sanitize(x, **limits) for x in obj[:max_list]]
        if len(obj) > max_list:
            items.append(f"...(+{len(obj) - max_list} more)")
        return items

    if isinstance(obj, dict):
        out: dict[str, Any] = {}
        for i, (k, v) in enumerate(obj.items()):
            if i >= max_dict:
                out["..."] = f"(+{len(obj) - max_dict} more keys)"
                break
            key = str(k)
            lowered = key.lower()
            if lowered in _SECRET_FIELDS:
                out[key] = "***"
            elif lowered in _TEXT_FIELDS and isinstance(v, str) and len(v) > _TEXT_PREVIEW:
                out[key] = _digest(_redact_text(v), _TEXT_PREVIEW // 2)
            else:
                out[key] = _sanitize(v, **limits)
        return out

    return _sanitize(str(obj), **limits)


def _trace_dir() -> Path:
    p = Path(os.getenv("CHECKX_TRACE_DIR") or "data/trace")
    p.mkdir(parents=True, exist_ok=True)
    return p


def _file_name(trace_id: str) -> str:
    return "".join(c if c.isalnum() or c in "._-" else "_" for c in trace_id) + ".jsonl"


def trace_enabled() -> bool:
    return _trace_enabled_var.get()


def current_trace_id() -> str | None:
    return _trace_id_var.get()


@dataclass(frozen=True)
class TraceContext:
    trace_id: str
    enabled: bool


class Trace:
    """Local-only trace sink; disabled unless CHECKX_ENV marks a local run."""

    @staticmethod
    def start(trace_id: str, *, runtime: EngineRuntimeConfig | None = None) -> TraceContext:
        runtime = runtime or EngineRuntimeConfig.load_from_env()
        enabled = is_local_run() and runtime.features.trace_enabled
        _trace_id_var.set(trace_id)
        _trace_enabled_var.set(enabled)
        Trace.event("trace.start", {
            "trace_id": trace_id,
            "started_at": time.strftime("%Y-%m-%d %H:%M:%S"),
        })
        return TraceContext(trace_id=trace_id, enabled=enabled)

    @staticmethod
    def stop() -> None:
        trace_id = current_trace_id()
        if trace_id:
            Trace.event("trace.stop", {"trace_id": trace_id})
        _trace_enabled_var.set(False)
        _trace_id_var.set(None)

    @staticmethod
    def event(name: str, data: Any | None = None) -> None:
        trace_id = current_trace_id()
        if not trace_id or not trace_enabled():
            return

        line = json.dumps({
            "ts_ms": int(time.time() * 1000),
            "trace_id": trace_id,
            "event": str(name),
            "data": _sanitize(data),
        }, ensure_ascii=False)
        try:
            with (_trace_dir() / _file_name(trace_id)).open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Tracing never breaks analysis.
            return
