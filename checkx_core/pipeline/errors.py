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
Tier Chain Errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TierFailure:
    """
    One failed tier attempt.

    Attributes:
        tier: Name of the tier that failed
        kind: Failure category (LLMFailureKind value, "model_unavailable", or exception type)
        message: Short human-readable error
    """

    tier: str
    kind: str
    message: str

    def to_trace_dict(self) -> dict[str, Any]:
        return {"tier": self.tier, "kind": self.kind, "message": self.message[:300]}


@dataclass
class AllTiersExhausted(Exception):
    """Raised by the tier chain when no tier produced a result."""

    failures: list[TierFailure] = field(default_factory=list)

    def __post_init__(self) -> None:
        tiers = ", ".join(f.tier for f in self.failures) or "none"
        super().__init__(f"All analysis tiers failed ({tiers})")
