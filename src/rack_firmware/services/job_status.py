"""Relay firmware job status from the fleet manager."""

import logging
from typing import Optional

from rack_firmware.errors import PreconditionError
from rack_firmware.models.fleet import JobStatus, job_state_name
from rack_firmware.services.fleet_manager import FleetManagerClient


class JobStatusRelay:
    """Forwards job status queries and translates the state code."""

    def __init__(self, fleet_client: Optional[FleetManagerClient]):
        self.logger = logging.getLogger("rack_firmware.job_status")
        self.fleet_client = fleet_client

    async def get_job_status(self, job_id: str) -> JobStatus:
        """Get the status of an async firmware update job.

        Raises:
            PreconditionError: If job_id is empty or no fleet manager is configured
            TransportError: If the fleet manager call fails
        """
        if not job_id:
            raise PreconditionError("job_id is required")
        if self.fleet_client is None:
            raise PreconditionError("Fleet manager client not configured")

        response = await self.fleet_client.get_firmware_job_status(job_id)
        state = job_state_name(response.job_state)
        self.logger.debug(f"Job {job_id} state: {response.job_state} -> {state}")

        return JobStatus(
            job_id=response.job_id,
            state=state,
            state_description=response.state_description,
            rack_id=response.rack_id,
            node_id=response.node_id,
            error_message=response.error_message,
            result_json=response.result_json,
        )
