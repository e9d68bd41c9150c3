# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Persistence of finished analyses.

The detector only needs `save()`; the read side serves history views
(most recent first, lookup by post id, count, clear).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol, runtime_checkable

from pydantic import Field

from checkx_core.schema import AnalysisResult, FrozenSchemaModel, PostRecord

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class StoredAnalysis(FrozenSchemaModel):
    """Flattened post + verdict record."""

    post_id: str
    content: str = ""
    author: str = ""
    post_timestamp: str = ""
    url: str = ""
    confidence: int
    rating: str
    topics: list[str] = Field(default_factory=list)
    reasoning: str
    source: str
    analysis_timestamp: str
    user_id: Optional[str] = None

    @classmethod
    def build(cls, post: PostRecord, result: AnalysisResult, user_id: str | None = None) -> "StoredAnalysis":
        return cls(
            post_id=post.id,
            content=post.content,
            author=post.author,
            post_timestamp=post.timestamp,
            url=post.url,
            confidence=result.confidence,
            rating=result.rating.value,
            topics=list(result.topics),
            reasoning=result.reasoning,
            source=result.source.value,
            analysis_timestamp=result.timestamp,
            user_id=user_id,
        )


@runtime_checkable
class AnalysisStore(Protocol):
    async def save(self, post: PostRecord, result: AnalysisResult, user_id: str | None = None) -> None:
        ...


def _ts_key(record: StoredAnalysis) -> datetime:
    try:
        ts = datetime.fromisoformat(record.analysis_timestamp.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class InMemoryAnalysisStore:
    """Process-local store; one record per post id."""

    def __init__(self):
        self._records: list[StoredAnalysis] = []
        self._lock = asyncio.Lock()

    async def save(self, post: PostRecord, result: AnalysisResult, user_id: str | None = None) -> None:
        record = StoredAnalysis.build(post, result, user_id)
        async with self._lock:
            for i, existing in enumerate(self._records):
                if existing.post_id == record.post_id:
                    self._records[i] = record
                    break
            else:
                self._records.insert(0, record)
        logger.debug("[Store] Saved analysis for post %s", post.id)

    async def get_all(self) -> list[StoredAnalysis]:
        """All records, most recent analysis first."""
        return sorted(self._records, key=_ts_key, reverse=True)

    async def get_by_id(self, post_id: str) -> StoredAnalysis | None:
        for record in self._records:
            if record.post_id == post_id:
                return record
        return None

    async def count(self) -> int:
        return len(self._records)

    async def clear(self) -> None:
        async with self._lock:
            self._records.clear()
        logger.info("[Store] Cleared all stored analyses")
