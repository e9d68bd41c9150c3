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
Tolerant parsing of model answers.

The model is asked for one JSON object but regularly returns smart quotes,
unescaped inner quotes or trailing prose. Strategies are tried in order and
the first one that yields a value wins:

1. strict: first `{...}` block -> json.loads -> ModelVerdict schema
2. fields: per-field regex extraction (result tagged `degraded=True`)

Both paths end in the same ModelVerdict schema, so the output invariants
(confidence int in [0,100], <= 3 topics, non-empty reasoning) hold no matter
which path produced the values. Nothing in this module raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from checkx_core.schema import MAX_TOPICS, ParsedVerdict, clamp_confidence
from checkx_core.utils.trace import Trace

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 50
DEFAULT_REASONING = "AI analysis completed"
FALLBACK_REASONING = "Analysis completed but format unclear"

COMMON_TOPICS = (
    "health",
    "politics",
    "technology",
    "climate",
    "economy",
    "science",
    "entertainment",
    "sports",
    "breaking news",
)

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*?\}")
_CONFIDENCE_RE = re.compile(r"confidence[\"']?\s*:\s*(\d+)", re.IGNORECASE)
_TOPICS_RE = re.compile(r"topics[\"']?\s*:\s*\[(.*?)\]", re.IGNORECASE | re.DOTALL)
_QUOTED_ITEM_RE = re.compile(r"[\"']([^\"']+)[\"']")
_REASONING_KEY_RE = re.compile(r"reasoning[\"']?\s*:\s*", re.IGNORECASE)
_UNQUOTED_VALUE_RE = re.compile(r"^([^,}]*)")


class ModelVerdict(BaseModel):
    """Schema every parse path goes through."""

    model_config = ConfigDict(extra="ignore")

    confidence: int = DEFAULT_CONFIDENCE
    topics: list[str] = Field(default_factory=list)
    reasoning: str = DEFAULT_REASONING

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, v: Any) -> int:
        if v is None:
            return DEFAULT_CONFIDENCE
        return clamp_confidence(v)

    @field_validator("topics", mode="before")
    @classmethod
    def _coerce_topics(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("topics must be an array")
        if not all(isinstance(t, str) for t in v):
            raise ValueError("topics must be an array of strings")
        return v[:MAX_TOPICS]

    @field_validator("reasoning", mode="before")
    @classmethod
    def _check_reasoning(cls, v: Any) -> str:
        if v is None:
            return DEFAULT_REASONING
        if not isinstance(v, str):
            raise ValueError("reasoning must be a string")
        v = v.strip()
        if not v:
            raise ValueError("reasoning must not be empty")
        return v


_FIELD_DEFAULTS: dict[str, Any] = {
    "confidence": DEFAULT_CONFIDENCE,
    "topics": [],
    "reasoning": FALLBACK_REASONING,
}


# ─────────────────────────────────────────────────────────────────────────────
# Field extractors (str -> value | None)
# ─────────────────────────────────────────────────────────────────────────────


def extract_confidence(text: str) -> Optional[int]:
    m = _CONFIDENCE_RE.search(text)
    return int(m.group(1)) if m else None


def topics_from_text(text: str) -> list[str]:
    """Vocabulary scan used when no topics array can be read."""
    lower = text.lower()
    return [t for t in COMMON_TOPICS if t in lower][:MAX_TOPICS]


def extract_topics(text: str) -> Optional[list[str]]:
    m = _TOPICS_RE.search(text)
    if m:
        items = [s.strip() for s in _QUOTED_ITEM_RE.findall(m.group(1)) if s.strip()]
        if items:
            return items[:MAX_TOPICS]
    return topics_from_text(text)


def extract_reasoning(text: str) -> Optional[str]:
    """
    Recover the reasoning value even when it contains unescaped quotes.

    The real closing quote is the last quote that is followed (after
    whitespace) by `,`, `}` or the end of the text.
    """
    m = _REASONING_KEY_RE.search(text)
    if not m:
        return None

    remaining = text[m.end():]
    if not remaining:
        return None

    quote = remaining[0]
    if quote not in ("\"", "'"):
        um = _UNQUOTED_VALUE_RE.match(remaining)
        value = um.group(1).strip() if um else ""
        return value or None

    endings = [i for i in range(1, len(remaining)) if remaining[i] == quote]

    for end in reversed(endings):
        after = remaining[end + 1:].strip()
        if not after or after.startswith((",", "}")):
            return remaining[1:end].strip() or None

    if endings:
        return remaining[1:endings[-1]].strip() or None

    return remaining[1:].strip() or None


def _safe(extractor: Callable[[str], Any], text: str) -> Any:
    try:
        return extractor(text)
    except Exception as e:
        logger.debug("[Parser] Extractor %s failed: %s", getattr(extractor, "__name__", "?"), e)
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Strategies (str -> ParsedVerdict | None)
# ─────────────────────────────────────────────────────────────────────────────


def _strict_json_strategy(text: str) -> Optional[ParsedVerdict]:
    block = _JSON_BLOCK_RE.search(text)
    if not block:
        logger.debug("[Parser] No JSON block found in response")
        return None

    try:
        data = json.loads(block.group(0))
    except json.JSONDecodeError as e:
        logger.debug("[Parser] JSON parse failed: %s", e)
        return None
    if not isinstance(data, dict):
        return None

    try:
        verdict = ModelVerdict.model_validate(data)
    except ValidationError as e:
        logger.debug("[Parser] Schema validation failed: %s", e.errors(include_url=False))
        return None

    return ParsedVerdict(
        confidence=verdict.confidence,
        topics=verdict.topics,
        reasoning=verdict.reasoning,
        degraded=False,
        raw_response=text,
    )


def _validate_lenient(fields: dict[str, Any]) -> ModelVerdict:
    """Validate extracted fields; any field that still fails falls back to its default."""
    try:
        return ModelVerdict.model_validate(fields)
    except ValidationError as e:
        repaired = dict(fields)
        for err in e.errors(include_url=False):
            loc = err.get("loc") or ()
            if loc and loc[0] in _FIELD_DEFAULTS:
                repaired[loc[0]] = _FIELD_DEFAULTS[loc[0]]
        try:
            return ModelVerdict.model_validate(repaired)
        except ValidationError:
            return ModelVerdict.model_validate(_FIELD_DEFAULTS)


def _field_extraction_strategy(text: str) -> ParsedVerdict:
    confidence = _safe(extract_confidence, text)
    topics = _safe(extract_topics, text)
    reasoning = _safe(extract_reasoning, text)

    verdict = _validate_lenient({
        "confidence": DEFAULT_CONFIDENCE if confidence is None else confidence,
        "topics": topics or [],
        "reasoning": reasoning or FALLBACK_REASONING,
    })

    logger.info("[Parser] Used field-level extraction (confidence=%d)", verdict.confidence)
    Trace.event("parser.degraded", {
        "raw_chars": len(text),
        "confidence_found": confidence is not None,
        "topics_found": bool(topics),
        "reasoning_found": reasoning is not None,
    })
    return ParsedVerdict(
        confidence=verdict.confidence,
        topics=verdict.topics,
        reasoning=verdict.reasoning,
        degraded=True,
        raw_response=text,
    )


_STRATEGIES: tuple[Callable[[str], Optional[ParsedVerdict]], ...] = (
    _strict_json_strategy,
    _field_extraction_strategy,
)


def parse_model_response(raw: str) -> ParsedVerdict:
    """Convert raw model text into a validated verdict. Never raises."""
    text = raw if isinstance(raw, str) else str(raw or "")

    for strategy in _STRATEGIES:
        try:
            verdict = strategy(text)
        except Exception as e:
            logger.warning("[Parser] Strategy %s crashed: %s", strategy.__name__, e)
            continue
        if verdict is not None:
            return verdict

    return ParsedVerdict(
        confidence=DEFAULT_CONFIDENCE,
        topics=[],
        reasoning=FALLBACK_REASONING,
        degraded=True,
        raw_response=text,
    )
