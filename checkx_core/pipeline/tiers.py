# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 CheckX Contributors
"""
Analysis Tiers

Defines the AnalysisTier protocol and the TierChain driver.

Design Principles:
- A tier either returns a complete AnalysisResult or raises
- The chain tries tiers in order; the first result wins
- Every failure is recorded, nothing is silently dropped
- Tiers are ordered from most to least capable:
  evidence_enhanced -> ai -> rule_based

Usage:
    chain = TierChain(tiers=[
        EvidenceEnhancedTier(sessions, keywords, retriever),
        ModelOnlyTier(sessions),
        RuleBasedTier(),
    ])
    outcome = await chain.run(post)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from checkx_core.analysis.keywords import KeywordExtractor
from checkx_core.analysis.prompts import build_analysis_prompt, build_evidence_prompt
from checkx_core.analysis.rating import append_note, fuse
from checkx_core.analysis.response_parser import parse_model_response
from checkx_core.analysis.rule_based import rule_based_analysis
from checkx_core.llm.errors import LLMCallError, ModelUnavailable
from checkx_core.llm.failures import classify_llm_failure
from checkx_core.llm.session_manager import SessionManager
from checkx_core.pipeline.errors import AllTiersExhausted, TierFailure
from checkx_core.runtime_config import EngineRuntimeConfig
from checkx_core.schema import AnalysisResult, AnalysisSource, ParsedVerdict, PostRecord
from checkx_core.utils.trace import Trace
from checkx_core.verification.evidence import EvidenceRetriever, build_evidence_context

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Tier Protocol
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class AnalysisTier(Protocol):
    """One strategy for producing a verdict."""

    name: str

    async def attempt(self, post: PostRecord) -> AnalysisResult:
        """Return a result or raise; the chain moves on after a raise."""
        ...


def _failure_kind(exc: Exception) -> str:
    if isinstance(exc, LLMCallError):
        if exc.kind is not None:
            return exc.kind.value
        if isinstance(exc, ModelUnavailable):
            return "model_unavailable"
    kind = classify_llm_failure(exc)
    return kind.value if kind else type(exc).__name__


# ─────────────────────────────────────────────────────────────────────────────
# Model tiers
# ─────────────────────────────────────────────────────────────────────────────


class _ModelTierBase:
    def __init__(self, sessions: SessionManager, runtime: EngineRuntimeConfig | None = None):
        self._sessions = sessions
        self._runtime = runtime or EngineRuntimeConfig.load_from_env()

    async def _ensure_session(self) -> None:
        if not await self._sessions.initialize():
            raise ModelUnavailable("Model session could not be initialized")

    async def _ask(self, prompt: str) -> ParsedVerdict:
        raw = await self._sessions.execute_prompt(prompt, retries=self._runtime.llm.prompt_retries)
        if raw is None:
            raise ModelUnavailable("Model returned no response", self._sessions.last_failure_kind)
        verdict = parse_model_response(raw)
        if verdict.degraded:
            logger.info("[Detector] Model response needed field-level extraction")
        return verdict


class EvidenceEnhancedTier(_ModelTierBase):
    """Model verdict informed by news coverage, then fused with the evidence status."""

    name = AnalysisSource.EVIDENCE_ENHANCED.value

    def __init__(
        self,
        sessions: SessionManager,
        keywords: KeywordExtractor,
        retriever: EvidenceRetriever,
        runtime: EngineRuntimeConfig | None = None,
    ):
        super().__init__(sessions, runtime)
        self._keywords = keywords
        self._retriever = retriever

    async def attempt(self, post: PostRecord) -> AnalysisResult:
        await self._ensure_session()

        keywords = await self._keywords.extract_keywords(post.content)
        articles = await self._retriever.fetch_evidence(keywords)
        evidence = build_evidence_context(articles)

        verdict = await self._ask(build_evidence_prompt(post, evidence))
        fused = fuse(verdict.confidence, evidence)

        logger.debug(
            "[Detector] Fusion: model=%d -> %d (status=%s, articles=%d)",
            verdict.confidence, fused.confidence, fused.status.value, len(articles),
        )
        return AnalysisResult(
            confidence=fused.confidence,
            topics=verdict.topics,
            reasoning=append_note(verdict.reasoning, fused.note),
            source=AnalysisSource.EVIDENCE_ENHANCED,
            evidence=evidence,
        )


class ModelOnlyTier(_ModelTierBase):
    """Model verdict on the post alone."""

    name = AnalysisSource.AI.value

    async def attempt(self, post: PostRecord) -> AnalysisResult:
        await self._ensure_session()
        verdict = await self._ask(build_analysis_prompt(post))
        return AnalysisResult(
            confidence=verdict.confidence,
            topics=verdict.topics,
            reasoning=verdict.reasoning,
            source=AnalysisSource.AI,
        )


class RuleBasedTier:
    name = AnalysisSource.RULE_BASED.value

    async def attempt(self, post: PostRecord) -> AnalysisResult:
        return rule_based_analysis(post.content)


# ─────────────────────────────────────────────────────────────────────────────
# Chain driver
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TierOutcome:
    result: AnalysisResult
    tier: str
    failures: list[TierFailure] = field(default_factory=list)


@dataclass
class TierChain:
    """
    Tries tiers in order until one returns a result.

    Raises:
        AllTiersExhausted: every tier raised (failures attached)
    """

    tiers: list[AnalysisTier]

    async def run(self, post: PostRecord) -> TierOutcome:
        failures: list[TierFailure] = []

        for tier in self.tiers:
            try:
                result = await tier.attempt(post)
            except Exception as e:
                failure = TierFailure(tier=tier.name, kind=_failure_kind(e), message=str(e))
                failures.append(failure)
                logger.warning(
                    "[Detector] Tier %s failed for post %s: %s (kind=%s)",
                    tier.name, post.id, e, failure.kind,
                )
                Trace.event("tier.failed", {"post_id": post.id, **failure.to_trace_dict()})
                continue

            return TierOutcome(result=result, tier=tier.name, failures=failures)

        raise AllTiersExhausted(failures=failures)

    def __repr__(self) -> str:
        return f"TierChain(tiers={[t.name for t in self.tiers]})"
