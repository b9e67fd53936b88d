"""Shared model configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase document keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self, exclude_none: bool = False) -> dict:
        """Serialize to a JSON-ready dict using document key names."""
        return self.model_dump(by_alias=True, exclude_none=exclude_none, mode="json")
