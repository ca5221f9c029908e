"""Rack firmware operations: create, get, list, delete, apply, job status."""

import json
import logging
from typing import Any, Optional, Union

from rack_firmware.config.settings import Settings, get_settings
from rack_firmware.errors import RackFirmwareError, ValidationError
from rack_firmware.models.catalog import load_catalog
from rack_firmware.models.deployment import ApplyResult
from rack_firmware.models.firmware import FirmwareConfig
from rack_firmware.models.fleet import JobStatus
from rack_firmware.models.manifest import ParsedComponents
from rack_firmware.services.background import BackgroundRunner
from rack_firmware.services.dispatch import DeploymentDispatcher
from rack_firmware.services.download import DownloadService
from rack_firmware.services.fleet_manager import FleetManagerClient
from rack_firmware.services.inventory import FileRackInventory
from rack_firmware.services.job_status import JobStatusRelay
from rack_firmware.services.parser import parse_manifest
from rack_firmware.services.repository import FirmwareRepository
from rack_firmware.services.secrets import InMemorySecretStore, SecretStore

VARIANTS = ("prod", "dev")


class FirmwareService:
    """Entry point for rack firmware operations.

    ``create`` returns as soon as the config is persisted; the download run
    continues in the background and is only observable through the config's
    ``available`` flag and the logs.

    Firmware ids must be unique per submission: there is no guard against two
    concurrent runs for the same id.
    """

    def __init__(
        self,
        repository: FirmwareRepository,
        secret_store: SecretStore,
        downloader: DownloadService,
        dispatcher: DeploymentDispatcher,
        job_relay: JobStatusRelay,
        runner: Optional[BackgroundRunner] = None,
    ):
        self.logger = logging.getLogger("rack_firmware.service")
        self.repository = repository
        self.secret_store = secret_store
        self.downloader = downloader
        self.dispatcher = dispatcher
        self.job_relay = job_relay
        self.runner = runner or BackgroundRunner()

    async def create(
        self, config_json: Union[str, dict[str, Any]], token: Optional[str] = None
    ) -> FirmwareConfig:
        """Register a firmware manifest and start caching its artifacts.

        The token is optional: manifests whose artifacts are served anonymously
        need none. Without a stored token the download run still answers a 401
        with a single retry carrying an empty X-JFrog-Art-Api header, so files
        that require authentication fail and the config stays unavailable.

        Args:
            config_json: Manifest as JSON text or decoded object; must carry an 'Id'
            token: Artifact repository token; omit for anonymous-only artifacts

        Returns:
            The stored FirmwareConfig (available=False)

        Raises:
            ValidationError: If the JSON, its 'Id' or its 'BoardSKUs' is invalid
            PersistenceError: If the config cannot be stored
        """
        if isinstance(config_json, str):
            try:
                document = json.loads(config_json)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON: {e}") from e
        else:
            document = config_json

        if not isinstance(document, dict):
            raise ValidationError("Manifest must be a JSON object")

        firmware_id = document.get("Id")
        if not isinstance(firmware_id, str) or not firmware_id:
            raise ValidationError("JSON must contain 'Id' field to use as identifier")

        parsed = parse_manifest(document)
        self.logger.info(
            f"Parsed {len(parsed.board_skus)} board SKUs from rack firmware config {firmware_id}"
        )

        config = self.repository.create(
            firmware_id, document, parsed.model_dump(mode="json")
        )

        if token:
            self.secret_store.set_credentials(firmware_id, firmware_id, token)

        self.runner.submit(
            f"firmware-download-{firmware_id}",
            self._download_workflow(firmware_id, parsed),
        )
        self.logger.info(f"Spawned background task to download firmware files for {firmware_id}")

        return config

    async def _download_workflow(self, firmware_id: str, parsed: ParsedComponents) -> None:
        """Background task for the download workflow."""
        try:
            await self.downloader.download_firmware(firmware_id, parsed)
        except RackFirmwareError as e:
            self.logger.error(f"Failed to download firmware files for {firmware_id}: {e}")

    def get(self, firmware_id: str) -> FirmwareConfig:
        return self.repository.find_by_id(firmware_id)

    def list_configs(self, only_available: bool = False) -> list[FirmwareConfig]:
        return self.repository.list_all(only_available)

    def delete(self, firmware_id: str) -> None:
        self.repository.delete(firmware_id)

    async def apply(self, rack_id: str, firmware_id: str, variant: str = "prod") -> ApplyResult:
        """Apply an available firmware config to a rack.

        Raises:
            ValidationError: If rack_id is empty or the variant is not prod/dev
            PreconditionError: If the firmware is not available or the rack is empty
            NotFoundError: If the rack does not exist
        """
        if not rack_id:
            raise ValidationError("rack_id is required")
        if variant.lower() not in VARIANTS:
            raise ValidationError(f"Invalid firmware variant '{variant}', expected one of {VARIANTS}")

        return await self.dispatcher.apply(rack_id, firmware_id, variant.lower())

    async def get_job_status(self, job_id: str) -> JobStatus:
        return await self.job_relay.get_job_status(job_id)


def build_firmware_service(settings: Settings) -> FirmwareService:
    """Wire a FirmwareService from settings."""
    catalog = load_catalog(settings.catalog_file)
    repository = FirmwareRepository(settings.data_dir)
    secret_store = InMemorySecretStore()

    fleet_client = None
    if settings.fleet_manager_url:
        fleet_client = FleetManagerClient(
            settings.fleet_manager_url, timeout=settings.fleet_manager_timeout_seconds
        )

    downloader = DownloadService(
        repository=repository,
        secret_store=secret_store,
        cache_root=settings.cache_root,
        catalog=catalog,
        connect_timeout=settings.download_connect_timeout_seconds,
        timeout=settings.download_timeout_seconds,
    )
    dispatcher = DeploymentDispatcher(
        repository=repository,
        inventory=FileRackInventory(settings.inventory_file),
        fleet_client=fleet_client,
        cache_root=settings.cache_root,
        catalog=catalog,
    )

    return FirmwareService(
        repository=repository,
        secret_store=secret_store,
        downloader=downloader,
        dispatcher=dispatcher,
        job_relay=JobStatusRelay(fleet_client),
    )


_service: Optional[FirmwareService] = None


def get_firmware_service() -> FirmwareService:
    global _service

    if _service is None:
        _service = build_firmware_service(get_settings())

    return _service
