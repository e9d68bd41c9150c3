# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 CheckX Contributors
from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound="SchemaModel")


class SchemaModel(BaseModel):
    """
    Canonical base for schema models (Pydantic v2).

    - Ignores extra fields so records written by older versions still load.
    - Provides `to_dict()` / `from_dict()` for consistent serialization.
    """

    model_config = ConfigDict(extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls: type[T], data: dict[str, Any]) -> T:
        if not isinstance(data, dict):
            raise TypeError(f"Schema input must be a dict, got: {type(data)!r}")
        return cls.model_validate(data)


class FrozenSchemaModel(SchemaModel):
    """Immutable record: assignment after construction raises."""

    model_config = ConfigDict(extra="ignore", frozen=True)
