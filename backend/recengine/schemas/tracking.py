"""Pydantic schemas for interaction tracking."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TrackedInteraction(BaseModel):
    """One client-side event. Accepts camelCase keys as sent by the browser tracker."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: UUID
    interaction_type: str
    user_id: UUID | None = None
    product_id: UUID | None = None
    dwell_time_seconds: int = Field(0, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None


class TrackingRequest(BaseModel):
    interactions: list[TrackedInteraction]


class TrackingResponse(BaseModel):
    success: bool = True
    processed: int
