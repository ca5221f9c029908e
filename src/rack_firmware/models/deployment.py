"""Result models for download runs and firmware apply operations."""

from pydantic import BaseModel, Field

from rack_firmware.models.fleet import NodeJob


class RackDevices(BaseModel):
    """Devices of each tracked type present in a rack."""

    rack_id: str
    compute_trays: list[str] = Field(default_factory=list)
    power_shelves: list[str] = Field(default_factory=list)
    switches: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.compute_trays or self.power_shelves or self.switches)


class DownloadSummary(BaseModel):
    """Outcome of one background download run."""

    firmware_id: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    available: bool = False


class DeviceUpdateResult(BaseModel):
    """Outcome of dispatching one device-type bucket."""

    device_id: str = Field(..., description="Rack the update was issued for")
    device_type: str
    success: bool
    message: str
    job_id: str = ""
    node_jobs: list[NodeJob] = Field(default_factory=list)


class ApplyResult(BaseModel):
    """Aggregate outcome of applying firmware to a rack.

    Partial failure is reported through ``failed``; the apply call itself
    still succeeds.
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    device_results: list[DeviceUpdateResult] = Field(default_factory=list)
