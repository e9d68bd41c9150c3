from __future__ import annotations

from dataclasses import dataclass

from checkx_core.llm.failures import LLMFailureKind


@dataclass
class LLMCallError(Exception):
    message: str
    kind: LLMFailureKind | None = None

    def __str__(self) -> str:
        kind = self.kind.value if self.kind else "unknown"
        return f"{self.message} (kind={kind})"


class ModelUnavailable(LLMCallError):
    """No usable model session: capability absent, init failed, or every prompt attempt failed."""
