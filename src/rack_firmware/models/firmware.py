"""Persisted rack firmware configuration."""

from datetime import datetime, timezone
from typing import Any, Optional
from pydantic import BaseModel, Field, SecretStr


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FirmwareConfig(BaseModel):
    """Persistent record of one submitted firmware manifest.

    ``available`` flips to True exactly once, when the background download
    run for this id finished without a single failed file. The same write
    replaces ``parsed_components`` (the parsed manifest) with the firmware
    lookup table.
    """

    id: str = Field(..., min_length=1, description="Manifest 'Id' field")
    raw_manifest: dict[str, Any] = Field(..., description="Manifest as submitted")
    parsed_components: Optional[dict[str, Any]] = Field(
        None, description="Parsed manifest, or lookup table once available"
    )
    available: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Credentials(BaseModel):
    """Artifact repository credentials for one firmware id."""

    username: str
    token: SecretStr
