# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Tier chain for post analysis.

Usage:
    from checkx_core.pipeline import TierChain, RuleBasedTier
"""

from checkx_core.pipeline.errors import AllTiersExhausted, TierFailure
from checkx_core.pipeline.tiers import (
    AnalysisTier,
    EvidenceEnhancedTier,
    ModelOnlyTier,
    RuleBasedTier,
    TierChain,
    TierOutcome,
)

__all__ = [
    "AllTiersExhausted",
    "TierFailure",
    "AnalysisTier",
    "EvidenceEnhancedTier",
    "ModelOnlyTier",
    "RuleBasedTier",
    "TierChain",
    "TierOutcome",
]
