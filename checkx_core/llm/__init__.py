# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Model session package."""

from .failures import (
    LLMFailureKind,
    classify_llm_failure,
    failure_kind_to_trace_data,
)
from .errors import LLMCallError, ModelUnavailable

__all__ = [
    "LLMFailureKind",
    "classify_llm_failure",
    "failure_kind_to_trace_data",
    "LLMCallError",
    "ModelUnavailable",
]
