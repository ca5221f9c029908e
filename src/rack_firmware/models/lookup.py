"""Firmware lookup table models."""

from typing import Optional
from pydantic import BaseModel, Field

from rack_firmware.models.manifest import SubComponent


class LookupEntry(BaseModel):
    """Resolved firmware file for one component/variant of a device type."""

    filename: str = Field(..., description="Cached file name (relative to the firmware cache dir)")
    target: str = Field(..., description="Fleet manager target identifier")
    component: str = Field(..., description="Manifest component name (e.g. 'HMC')")
    bundle: str = ""
    variant: str = Field("prod", description="Normalized build channel: 'prod' or 'dev'")
    version: Optional[str] = None
    subcomponents: list[SubComponent] = Field(default_factory=list)


class FirmwareLookupTable(BaseModel):
    """device_key -> "{lookup_key}_{variant}" -> LookupEntry."""

    devices: dict[str, dict[str, LookupEntry]] = Field(default_factory=dict)
