"""Shared Pydantic schema configuration."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base schema emitting camelCase JSON while accepting snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_payload(self) -> dict:
        """Serialize for the realtime gateway exactly as the HTTP API would."""
        return self.model_dump(mode="json", by_alias=True)
