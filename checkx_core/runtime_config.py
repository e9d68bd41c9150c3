from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

N = TypeVar("N", int, float)

_TRUE = frozenset({"1", "true", "yes", "y", "on"})
_FALSE = frozenset({"0", "false", "no", "n", "off"})


def _parse_bool(raw: Any, *, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    s = str(raw or "").strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return default


def _clamped(raw: Any, cast: Callable[[Any], N], default: N, min_v: N, max_v: N) -> N:
    """Env values are untrusted: unparseable means default, out of range means clamp."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        v = default
    else:
        try:
            v = cast(str(raw).strip() if isinstance(raw, str) else raw)
        except (TypeError, ValueError):
            v = default
    return max(min_v, min(max_v, v))


def _parse_int(raw: Any, *, default: int, min_v: int, max_v: int) -> int:
    return _clamped(raw, int, default, min_v, max_v)


def _parse_float(raw: Any, *, default: float, min_v: float, max_v: float) -> float:
    return _clamped(raw, float, default, min_v, max_v)


def _parse_lang(raw: Any, *, default: str) -> str:
    s = str(raw or "").strip().lower()
    if not s or len(s) > 5 or not s.replace("-", "").isalpha():
        return default
    return s


@dataclass(frozen=True)
class EngineFeatureFlags:
    # Tier 1 (news evidence) can be switched off without touching the model tiers.
    evidence_enabled: bool = True
    # Prompts on a shared session are NOT serialized unless explicitly enabled.
    serialize_prompts: bool = False
    # Trace is a local-only debug feature; it is enabled by default and can be disabled via env.
    trace_enabled: bool = True


@dataclass(frozen=True)
class EngineLLMConfig:
    temperature: float = 0.3
    top_k: int = 10
    max_tokens: int = 512
    prompt_retries: int = 1
    timeout_sec: float = 60.0


@dataclass(frozen=True)
class EngineSearchConfig:
    news_max_results: int = 5
    news_language: str = "en"
    timeout_sec: float = 10.0


@dataclass(frozen=True)
class EngineBatchConfig:
    analysis_concurrency: int = 4


@dataclass(frozen=True)
class EngineRuntimeConfig:
    llm: EngineLLMConfig
    features: EngineFeatureFlags
    search: EngineSearchConfig
    batch: EngineBatchConfig

    @staticmethod
    def default() -> "EngineRuntimeConfig":
        return EngineRuntimeConfig(
            llm=EngineLLMConfig(),
            features=EngineFeatureFlags(),
            search=EngineSearchConfig(),
            batch=EngineBatchConfig(),
        )

    @staticmethod
    def load_from_env() -> "EngineRuntimeConfig":
        llm = EngineLLMConfig(
            temperature=_parse_float(os.getenv("CHECKX_LLM_TEMPERATURE"), default=0.3, min_v=0.0, max_v=2.0),
            top_k=_parse_int(os.getenv("CHECKX_LLM_TOP_K"), default=10, min_v=1, max_v=100),
            max_tokens=_parse_int(os.getenv("CHECKX_LLM_MAX_TOKENS"), default=512, min_v=64, max_v=4000),
            prompt_retries=_parse_int(os.getenv("CHECKX_LLM_PROMPT_RETRIES"), default=1, min_v=0, max_v=5),
            timeout_sec=_parse_float(os.getenv("OPENAI_TIMEOUT"), default=60.0, min_v=5.0, max_v=300.0),
        )

        features = EngineFeatureFlags(
            evidence_enabled=_parse_bool(os.getenv("CHECKX_EVIDENCE_ENABLED"), default=True),
            serialize_prompts=_parse_bool(os.getenv("CHECKX_SERIALIZE_PROMPTS"), default=False),
            trace_enabled=not _parse_bool(os.getenv("CHECKX_TRACE_DISABLE"), default=False),
        )

        search = EngineSearchConfig(
            news_max_results=_parse_int(os.getenv("CHECKX_NEWS_MAX_RESULTS"), default=5, min_v=1, max_v=10),
            news_language=_parse_lang(os.getenv("CHECKX_NEWS_LANGUAGE"), default="en"),
            timeout_sec=_parse_float(os.getenv("CHECKX_NEWS_TIMEOUT"), default=10.0, min_v=1.0, max_v=60.0),
        )

        batch = EngineBatchConfig(
            analysis_concurrency=_parse_int(
                os.getenv("CHECKX_ANALYSIS_CONCURRENCY"), default=4, min_v=1, max_v=32
            ),
        )

        return EngineRuntimeConfig(llm=llm, features=features, search=search, batch=batch)

    def to_safe_log_dict(self) -> dict[str, Any]:
        return {
            "features": {
                "evidence_enabled": bool(self.features.evidence_enabled),
                "serialize_prompts": bool(self.features.serialize_prompts),
                "trace_enabled": bool(self.features.trace_enabled),
            },
            "llm": {
                "temperature": float(self.llm.temperature),
                "top_k": int(self.llm.top_k),
                "max_tokens": int(self.llm.max_tokens),
                "prompt_retries": int(self.llm.prompt_retries),
                "timeout_sec": float(self.llm.timeout_sec),
            },
            "search": {
                "news_max_results": int(self.search.news_max_results),
                "news_language": str(self.search.news_language),
                "timeout_sec": float(self.search.timeout_sec),
            },
            "batch": {
                "analysis_concurrency": int(self.batch.analysis_concurrency),
            },
        }
