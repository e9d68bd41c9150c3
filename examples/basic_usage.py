# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Basic Usage Example

Analyze a couple of posts with CheckX Engine. Without keys the detector
still answers, using the rule-based tier.
"""

import asyncio
import logging
import os

from checkx_core.config import CheckXConfig
from checkx_core.engine import MisinformationDetector
from checkx_core.schema import PostRecord
from checkx_core.storage import InMemoryAnalysisStore


async def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Configure the detector
    config = CheckXConfig(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        local_llm_url=os.getenv("CHECKX_LOCAL_LLM_URL"),  # e.g. http://localhost:8080/v1
        newsdata_api_key=os.getenv("NEWSDATA_API_KEY"),
    )
    store = InMemoryAnalysisStore()
    detector = MisinformationDetector.from_config(config, store=store)

    posts = [
        PostRecord(
            id="1",
            content="BREAKING!!! Doctors hate this miracle cure for COVID. They don't want you to know!",
            author="@truthseeker",
            timestamp="2025-03-14T10:00:00.000Z",
        ),
        PostRecord(
            id="2",
            content="Senate passes climate bill after marathon session",
            author="@capitolwatch",
            timestamp="2025-03-14T07:00:00.000Z",
        ),
    ]

    try:
        print("Analyzing posts...")
        results = await detector.analyze_many(posts)
    finally:
        await detector.close()

    # Print results
    for post, result in zip(posts, results):
        print("\n" + "=" * 60)
        print(f"POST {post.id}: {post.content[:60]}")
        print("=" * 60)
        print(f"  Rating:     {result.rating.value}")
        print(f"  Confidence: {result.confidence}%")
        print(f"  Source:     {result.source.value}")
        print(f"  Topics:     {', '.join(result.topics) or '-'}")
        print(f"  Reasoning:  {result.reasoning}")
        if result.evidence:
            print(f"\n  Evidence ({result.evidence.verification_status.value}):")
            for article in result.evidence.articles[:3]:
                print(f"  - {article.title} [{article.source}] {article.relevance_score:.2f}")
                print(f"    {article.url}")

    print(f"\nStored analyses: {await store.count()}")


if __name__ == "__main__":
    asyncio.run(main())
