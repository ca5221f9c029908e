"""Fleet manager wire models and job state mapping."""

from enum import Enum, IntEnum
from pydantic import BaseModel, Field

# Fleet manager ReturnCode for a successfully accepted request
RETURN_CODE_SUCCESS = 0


class NodeType(str, Enum):
    """Node types understood by the fleet manager."""

    COMPUTE = "compute"
    POWERSHELF = "powershelf"
    SWITCH = "switch"


class FirmwareJobState(IntEnum):
    """Remote firmware job states.

    The fleet manager owns the state machine; we only translate the code.
    """

    QUEUED = 0
    RUNNING = 1
    COMPLETED = 2
    FAILED = 3


def job_state_name(code: int) -> str:
    """Map a remote job-state code to its name, "UNKNOWN" for anything else."""
    try:
        return FirmwareJobState(code).name
    except ValueError:
        return "UNKNOWN"


class FirmwareTarget(BaseModel):
    """One firmware slot to flash and the on-disk file to flash it with."""

    target: str
    filename: str = Field(..., description="Absolute path of the cached firmware file")


class UpdateFirmwareRequest(BaseModel):
    """Batch update for every node of one type in a rack."""

    node_type: NodeType
    rack_id: str
    firmware_targets: list[FirmwareTarget]
    activate: bool = False


class NodeJob(BaseModel):
    node_id: str = ""
    job_id: str = ""


class UpdateFirmwareResponse(BaseModel):
    status: int = Field(..., description="Fleet manager return code (0 = success)")
    job_id: str = ""
    total_nodes: int = 0
    message: str = ""
    node_jobs: list[NodeJob] = Field(default_factory=list)


class FirmwareJobStatusResponse(BaseModel):
    """Raw job status as returned by the fleet manager."""

    job_id: str = ""
    job_state: int = -1
    state_description: str = ""
    rack_id: str = ""
    node_id: str = ""
    error_message: str = ""
    result_json: str = ""


class JobStatus(BaseModel):
    """Job status relayed to our callers, with the state code translated."""

    job_id: str
    state: str
    state_description: str = ""
    rack_id: str = ""
    node_id: str = ""
    error_message: str = ""
    result_json: str = ""
