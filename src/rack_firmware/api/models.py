"""Pydantic models for HTTP API requests and responses."""

from typing import Any, Optional
from pydantic import BaseModel, Field


class CreateFirmwareRequest(BaseModel):
    """POST /api/v1/rack-firmware payload.

    Example:
        {
            "config_json": "{\\"Id\\": \\"8d6f...\\", \\"BoardSKUs\\": [...]}",
            "artifactory_token": "AKCp8..."
        }
    """

    config_json: str = Field(..., description="Vendor manifest JSON (must contain 'Id')")
    artifactory_token: Optional[str] = Field(
        None,
        description=(
            "Token for authenticated artifact downloads; omit when every artifact "
            "is served anonymously"
        ),
    )


class ApplyFirmwareRequest(BaseModel):
    """POST /api/v1/rack-firmware/{firmware_id}/apply payload."""

    rack_id: str = Field(..., min_length=1, description="Target rack", examples=["rack-01"])
    firmware_type: str = Field(
        "prod", description="Build variant to apply", examples=["prod", "dev"]
    )


class FirmwareConfigSummary(BaseModel):
    """Firmware config as returned by the API (raw manifest omitted)."""

    id: str
    available: bool
    created_at: str
    updated_at: str
    parsed_components: Optional[dict[str, Any]] = None


class ApiResponse(BaseModel):
    """Envelope for all endpoints.

    HTTP status code is always 200, real status in 'code' field.
    """

    code: int = Field(default=200, description="Application-level status code")
    msg: str = Field(default="success", description="Status message or error description")
    data: Optional[Any] = Field(None, description="Response payload")
