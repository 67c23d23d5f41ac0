"""Shared pydantic base for document models."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Base model with camelCase aliases matching the mapping registries' data paths."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_document(self) -> Dict[str, Any]:
        """Return the nested camelCase dict the engine resolves data paths against."""

        return self.model_dump(by_alias=True)
