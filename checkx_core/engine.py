# CheckX Engine - main entry point

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Iterable, Optional
from uuid import uuid4

from pydantic import ValidationError

from checkx_core import PROMPT_VERSION
from checkx_core.analysis.keywords import KeywordExtractor
from checkx_core.analysis.rule_based import rule_based_analysis
from checkx_core.config import CheckXConfig
from checkx_core.llm.model_host import OpenAIModelHost
from checkx_core.llm.session_manager import SessionManager
from checkx_core.pipeline import (
    AllTiersExhausted,
    AnalysisTier,
    EvidenceEnhancedTier,
    ModelOnlyTier,
    RuleBasedTier,
    TierChain,
)
from checkx_core.runtime_config import EngineRuntimeConfig
from checkx_core.schema import AnalysisResult, PostRecord
from checkx_core.storage import AnalysisStore
from checkx_core.tools.newsdata_client import NewsDataClient
from checkx_core.utils.trace import Trace
from checkx_core.verification.evidence import EvidenceRetriever

logger = logging.getLogger(__name__)


def _coerce_post(raw: Any) -> PostRecord:
    """Accept a PostRecord or a dict; malformed input becomes a best-effort record."""
    if isinstance(raw, PostRecord):
        return raw
    try:
        return PostRecord.from_dict(raw)
    except (TypeError, ValidationError) as e:
        logger.warning("[Detector] Malformed post input (%s); analyzing what is usable", type(e).__name__)
    data = raw if isinstance(raw, dict) else {}
    content = data.get("content")
    return PostRecord(
        id=str(data.get("id") or f"anon-{uuid4().hex[:12]}"),
        content=content if isinstance(content, str) else "",
    )


class MisinformationDetector:
    """The main entry point for post analysis."""

    def __init__(
        self,
        session_manager: SessionManager,
        *,
        retriever: Optional[EvidenceRetriever] = None,
        store: Optional[AnalysisStore] = None,
        runtime: Optional[EngineRuntimeConfig] = None,
        model_host: Any = None,
        news_client: Optional[NewsDataClient] = None,
    ):
        self.runtime = runtime or EngineRuntimeConfig.load_from_env()
        self.sessions = session_manager
        self.store = store
        self._model_host = model_host
        self._news_client = news_client

        tiers: list[AnalysisTier] = []
        if self.runtime.features.evidence_enabled and retriever is not None:
            keywords = KeywordExtractor(session_manager, self.runtime)
            tiers.append(EvidenceEnhancedTier(session_manager, keywords, retriever, self.runtime))
        tiers.append(ModelOnlyTier(session_manager, self.runtime))
        tiers.append(RuleBasedTier())
        self.chain = TierChain(tiers=tiers)

        try:
            logger.debug("Effective config: %s", json.dumps(self.runtime.to_safe_log_dict(), ensure_ascii=False))
        except (TypeError, ValueError):
            pass

    @classmethod
    def from_config(cls, config: CheckXConfig, *, store: Optional[AnalysisStore] = None) -> "MisinformationDetector":
        runtime = config.resolved_runtime()
        host = OpenAIModelHost(
            api_key=config.openai_api_key,
            model=config.openai_model,
            base_url=config.local_llm_url,
            timeout_sec=runtime.llm.timeout_sec,
        )
        sessions = SessionManager(host, runtime=runtime)
        news_client = NewsDataClient(
            api_key=config.newsdata_api_key,
            timeout_s=runtime.search.timeout_sec,
            language=runtime.search.news_language,
            concurrency=runtime.batch.analysis_concurrency,
        )
        retriever = EvidenceRetriever(news_client, runtime)
        return cls(
            sessions,
            retriever=retriever,
            store=store,
            runtime=runtime,
            model_host=host,
            news_client=news_client,
        )

    async def analyze(self, post: PostRecord | dict, user_id: str | None = None) -> AnalysisResult:
        """
        Analyze one post. Never raises, malformed dict input included.

        Tiers are tried in order (evidence_enhanced -> ai -> rule_based);
        the result is saved to the store when one is configured.
        """
        post = _coerce_post(post)

        trace_id = f"{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}_{str(uuid4())[:6]}"
        Trace.start(trace_id, runtime=self.runtime)
        try:
            Trace.event("analysis.start", {
                "post_id": post.id,
                "content_len": len(post.content),
                "prompt_version": PROMPT_VERSION,
                "tiers": [t.name for t in self.chain.tiers],
            })

            try:
                outcome = await self.chain.run(post)
                result = outcome.result
                tier = outcome.tier
                failures = outcome.failures
            except AllTiersExhausted as e:
                logger.error("[Detector] %s; returning minimal rule-based result", e)
                result = rule_based_analysis("")
                tier = result.source.value
                failures = e.failures

            logger.info(
                "[Detector] Post %s: %s (confidence=%d, source=%s)",
                post.id, result.rating.value, result.confidence, result.source.value,
            )
            Trace.event("analysis.done", {
                "post_id": post.id,
                "tier": tier,
                "confidence": result.confidence,
                "rating": result.rating.value,
                "failures": [f.to_trace_dict() for f in failures],
            })

            await self._persist(post, result, user_id)
            return result
        finally:
            Trace.stop()

    async def _persist(self, post: PostRecord, result: AnalysisResult, user_id: str | None) -> None:
        if self.store is None:
            return
        try:
            await self.store.save(post, result, user_id)
        except Exception as e:
            logger.warning("[Detector] Failed to store analysis for post %s: %s", post.id, e)

    async def analyze_many(
        self,
        posts: Iterable[PostRecord | dict],
        user_id: str | None = None,
    ) -> list[AnalysisResult]:
        """
        Analyze a batch of posts concurrently.

        Posts whose id was already seen in this batch are skipped. Results
        follow the order of first occurrence.
        """
        unique: list[PostRecord] = []
        seen: set[str] = set()
        for p in posts:
            post = _coerce_post(p)
            if post.id in seen:
                logger.debug("[Detector] Skipping duplicate post %s", post.id)
                continue
            seen.add(post.id)
            unique.append(post)

        if not unique:
            return []

        sem = asyncio.Semaphore(max(1, self.runtime.batch.analysis_concurrency))

        async def _one(post: PostRecord) -> AnalysisResult:
            async with sem:
                return await self.analyze(post, user_id)

        return list(await asyncio.gather(*(_one(p) for p in unique)))

    async def close(self) -> None:
        """Release the model session and HTTP clients. Safe to call more than once."""
        await self.sessions.cleanup()
        if self._news_client is not None:
            try:
                await self._news_client.close()
            except Exception as e:
                logger.warning("[Detector] Error closing news client: %s", e)
        close = getattr(self._model_host, "close", None)
        if close is not None:
            try:
                await close()
            except Exception as e:
                logger.warning("[Detector] Error closing model host: %s", e)
