"""Pydantic schemas for rows returned by a record source."""
import json
from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Row(BaseModel):
    """Common row settings: unknown columns are ignored, numeric ids become strings."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    timestamp: datetime = Field(description="When the record happened")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        # SQLite returns "YYYY-MM-DD HH:MM:SS" text; a trailing Z means UTC
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                return value
        return value


class _RowWithMetadata(_Row):
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form JSON metadata")

    @field_validator("metadata", mode="before")
    @classmethod
    def _decode_metadata(cls, value: Any) -> Any:
        if value is None or value == "":
            return {}
        if isinstance(value, (str, bytes)):
            return json.loads(value)
        return value


class PageViewRow(_Row):
    """Pydantic schema for a page_views row."""
    id: Optional[str] = None
    path: str = Field(description="Requested path")
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    session_id: Optional[str] = None


class EventRow(_RowWithMetadata):
    """Pydantic schema for an event_details row."""
    event_id: str = Field(description="Event identifier")
    event_type: Optional[str] = None
    participants: Optional[Union[int, float]] = Field(default=None, description="Current participant count")


class UserActivityRow(_RowWithMetadata):
    """Pydantic schema for a user_activities row."""
    user_id: str = Field(description="Acting user")
    activity_type: Optional[str] = None
