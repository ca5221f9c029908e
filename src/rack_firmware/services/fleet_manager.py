"""HTTP client for the fleet manager that flashes rack hardware."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx
import pydantic

from rack_firmware.errors import TransportError
from rack_firmware.models.fleet import (
    FirmwareJobStatusResponse,
    UpdateFirmwareRequest,
    UpdateFirmwareResponse,
)


class FleetManagerClient:
    """Calls the fleet manager firmware API.

    The fleet manager fans each batch request out to every node of the
    requested type and owns the resulting per-node jobs.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize fleet manager client.

        Args:
            base_url: Fleet manager base URL (e.g. http://fleet-manager:8000)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.logger = logging.getLogger("rack_firmware.fleet_manager")
        self.base_url = base_url.rstrip("/")
        self.update_endpoint = f"{self.base_url}/api/v1/firmware/update-by-node-type"
        self.jobs_endpoint = f"{self.base_url}/api/v1/firmware/jobs"
        self.timeout = timeout
        self.transport = transport

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Fleet manager {method} {url} failed ({e.response.status_code}): {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Fleet manager {method} {url} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Fleet manager {method} {url} returned invalid JSON: {e}") from e

    async def update_firmware_by_node_type_async(
        self, request: UpdateFirmwareRequest
    ) -> UpdateFirmwareResponse:
        """Start an async firmware update for all nodes of one type in a rack.

        Raises:
            TransportError: If the request fails or the response is malformed
        """
        self.logger.debug(
            f"Requesting firmware update: node_type={request.node_type.value}, "
            f"rack_id={request.rack_id}, targets={len(request.firmware_targets)}"
        )
        data = await self._request(
            "POST", self.update_endpoint, json=request.model_dump(mode="json")
        )
        try:
            return UpdateFirmwareResponse.model_validate(data)
        except pydantic.ValidationError as e:
            raise TransportError(f"Malformed fleet manager update response: {e}") from e

    async def get_firmware_job_status(self, job_id: str) -> FirmwareJobStatusResponse:
        """Fetch the state of a firmware job.

        Raises:
            TransportError: If the request fails or the response is malformed
        """
        data = await self._request("GET", f"{self.jobs_endpoint}/{quote(job_id, safe='')}")
        try:
            return FirmwareJobStatusResponse.model_validate(data)
        except pydantic.ValidationError as e:
            raise TransportError(f"Malformed fleet manager job status response: {e}") from e
