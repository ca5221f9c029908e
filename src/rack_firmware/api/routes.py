"""API route handlers for rack firmware endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from rack_firmware.api.models import (
    ApiResponse,
    ApplyFirmwareRequest,
    CreateFirmwareRequest,
    FirmwareConfigSummary,
)
from rack_firmware.errors import RackFirmwareError
from rack_firmware.models.firmware import FirmwareConfig
from rack_firmware.services.firmware_service import FirmwareService, get_firmware_service

router = APIRouter(prefix="/api/v1")

# Application-level code for an apply in which some device types failed
CODE_PARTIAL_FAILURE = 207


def _ok(data=None, code: int = 200, msg: str = "success") -> JSONResponse:
    return JSONResponse(status_code=200, content={"code": code, "msg": msg, "data": data})


def _error(error: RackFirmwareError) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={"code": error.code, "msg": str(error), "data": None},
    )


def _summary(config: FirmwareConfig) -> dict:
    return FirmwareConfigSummary(
        id=config.id,
        available=config.available,
        created_at=config.created_at.isoformat(),
        updated_at=config.updated_at.isoformat(),
        parsed_components=config.parsed_components,
    ).model_dump(mode="json")


@router.post("/rack-firmware", response_model=ApiResponse)
async def create_rack_firmware(
    request: CreateFirmwareRequest,
    service: FirmwareService = Depends(get_firmware_service),
):
    """POST /api/v1/rack-firmware - Register a manifest and start caching its firmware.

    Returns immediately; poll GET /api/v1/rack-firmware/{id} until
    ``available`` is true.
    """
    try:
        config = await service.create(request.config_json, request.artifactory_token)
    except RackFirmwareError as e:
        return _error(e)
    return _ok(_summary(config))


@router.get("/rack-firmware", response_model=ApiResponse)
async def list_rack_firmware(
    only_available: bool = False,
    service: FirmwareService = Depends(get_firmware_service),
):
    """GET /api/v1/rack-firmware - List firmware configs."""
    try:
        configs = service.list_configs(only_available)
    except RackFirmwareError as e:
        return _error(e)
    return _ok([_summary(config) for config in configs])


@router.get("/rack-firmware/jobs/{job_id}", response_model=ApiResponse)
async def get_rack_firmware_job_status(
    job_id: str,
    service: FirmwareService = Depends(get_firmware_service),
):
    """GET /api/v1/rack-firmware/jobs/{job_id} - Relay fleet manager job status.

    Response format:
        {
            "code": 200,
            "msg": "success",
            "data": {
                "job_id": "job-42",
                "state": "RUNNING",
                "state_description": "Flashing BMC",
                "rack_id": "rack-01",
                "node_id": "node-3",
                "error_message": "",
                "result_json": ""
            }
        }
    """
    try:
        status = await service.get_job_status(job_id)
    except RackFirmwareError as e:
        return _error(e)
    return _ok(status.model_dump(mode="json"))


@router.get("/rack-firmware/{firmware_id}", response_model=ApiResponse)
async def get_rack_firmware(
    firmware_id: str,
    service: FirmwareService = Depends(get_firmware_service),
):
    """GET /api/v1/rack-firmware/{firmware_id} - Get one firmware config."""
    try:
        config = service.get(firmware_id)
    except RackFirmwareError as e:
        return _error(e)
    return _ok(_summary(config))


@router.delete("/rack-firmware/{firmware_id}", response_model=ApiResponse)
async def delete_rack_firmware(
    firmware_id: str,
    service: FirmwareService = Depends(get_firmware_service),
):
    """DELETE /api/v1/rack-firmware/{firmware_id} - Delete a firmware config."""
    try:
        service.delete(firmware_id)
    except RackFirmwareError as e:
        return _error(e)
    return _ok()


@router.post("/rack-firmware/{firmware_id}/apply", response_model=ApiResponse)
async def apply_rack_firmware(
    firmware_id: str,
    request: ApplyFirmwareRequest,
    service: FirmwareService = Depends(get_firmware_service),
):
    """POST /api/v1/rack-firmware/{firmware_id}/apply - Apply firmware to a rack.

    Device types that could not be dispatched do not fail the request; they
    are reported with code 207 and counted in ``data.failed``.
    """
    try:
        result = await service.apply(request.rack_id, firmware_id, request.firmware_type)
    except RackFirmwareError as e:
        return _error(e)

    data = result.model_dump(mode="json")
    if result.failed:
        return _ok(data, code=CODE_PARTIAL_FAILURE, msg=f"{result.failed} firmware updates failed")
    return _ok(data)
