"""Apply cached firmware to the devices of a rack via the fleet manager."""

import logging
from pathlib import Path
from typing import Optional

import pydantic

from rack_firmware.errors import NotFoundError, PreconditionError, TransportError
from rack_firmware.models.catalog import DEFAULT_CATALOG, DeviceCatalog, DispatchBucket
from rack_firmware.models.deployment import ApplyResult, DeviceUpdateResult
from rack_firmware.models.firmware import FirmwareConfig
from rack_firmware.models.fleet import (
    RETURN_CODE_SUCCESS,
    FirmwareTarget,
    UpdateFirmwareRequest,
)
from rack_firmware.models.lookup import FirmwareLookupTable, LookupEntry
from rack_firmware.services.fleet_manager import FleetManagerClient
from rack_firmware.services.inventory import RackInventory
from rack_firmware.services.repository import FirmwareRepository
from rack_firmware.utils.paths import firmware_cache_dir

logger = logging.getLogger("rack_firmware.dispatch")


def find_firmware_components(
    lookup_table: FirmwareLookupTable, device_key: str, variant: str
) -> list[LookupEntry]:
    """Entries of one lookup bucket whose variant matches (case-insensitive)."""
    variant = variant.lower()
    results = []
    for key, entry in lookup_table.devices.get(device_key, {}).items():
        if entry.variant.lower() != variant:
            logger.debug(f"Skipping {device_key}/{key}: variant {entry.variant} != {variant}")
            continue
        results.append(entry)
    return results


def sort_by_flash_order(
    entries: list[LookupEntry], flash_order: list[str]
) -> list[LookupEntry]:
    """Stable-sort entries by target position in ``flash_order``.

    Targets missing from the order list go last, keeping their relative order.
    """
    position = {target: index for index, target in enumerate(flash_order)}
    return sorted(entries, key=lambda entry: position.get(entry.target, len(flash_order)))


class DeploymentDispatcher:
    """Dispatches one batch firmware update per device type present in a rack.

    Buckets run sequentially in catalog order (compute, power shelf, switch);
    fan-out to individual nodes is left to the fleet manager.
    """

    def __init__(
        self,
        repository: FirmwareRepository,
        inventory: RackInventory,
        fleet_client: Optional[FleetManagerClient],
        cache_root: Path,
        catalog: DeviceCatalog = DEFAULT_CATALOG,
    ):
        self.logger = logger
        self.repository = repository
        self.inventory = inventory
        self.fleet_client = fleet_client
        self.cache_root = Path(cache_root)
        self.catalog = catalog

    async def apply(self, rack_id: str, firmware_id: str, variant: str) -> ApplyResult:
        """Apply a firmware config to every tracked device type of a rack.

        Args:
            rack_id: Target rack
            firmware_id: Available firmware config to apply
            variant: Build channel to apply ('prod' or 'dev')

        Returns:
            ApplyResult; buckets that could not be dispatched are counted in ``failed``

        Raises:
            PreconditionError: If the firmware is unknown or not available, or the rack is empty
            NotFoundError: If the rack does not exist
        """
        self.logger.info(
            f"Starting firmware apply: rack_id={rack_id}, firmware_id={firmware_id}, "
            f"variant={variant}"
        )

        try:
            config = self.repository.find_by_id(firmware_id)
        except NotFoundError as e:
            raise PreconditionError(str(e)) from e
        if not config.available:
            raise PreconditionError(
                f"Firmware configuration '{firmware_id}' is not marked as available"
            )
        lookup_table = self._load_lookup_table(config)

        rack = self.inventory.get_rack(rack_id)
        if rack.is_empty():
            raise PreconditionError(f"Rack '{rack_id}' contains no devices")

        self.logger.info(
            f"Found devices in rack {rack_id}: compute_trays={len(rack.compute_trays)}, "
            f"power_shelves={len(rack.power_shelves)}, switches={len(rack.switches)}"
        )

        result = ApplyResult()
        for bucket in self.catalog.dispatch_buckets:
            if not getattr(rack, bucket.inventory_field):
                continue

            device_result = await self._dispatch_bucket(
                bucket, lookup_table, rack_id, firmware_id, variant
            )
            result.device_results.append(device_result)
            if device_result.success:
                result.succeeded += 1
            else:
                result.failed += 1

        result.total = len(result.device_results)
        self.logger.info(
            f"Firmware apply completed: rack_id={rack_id}, firmware_id={firmware_id}, "
            f"successful={result.succeeded}, failed={result.failed}, total={result.total}"
        )
        return result

    def _load_lookup_table(self, config: FirmwareConfig) -> FirmwareLookupTable:
        try:
            return FirmwareLookupTable.model_validate(config.parsed_components or {})
        except pydantic.ValidationError as e:
            self.logger.warning(
                f"Failed to parse firmware lookup table of {config.id}, "
                f"no firmware will be applied: {e}"
            )
            return FirmwareLookupTable()

    async def _dispatch_bucket(
        self,
        bucket: DispatchBucket,
        lookup_table: FirmwareLookupTable,
        rack_id: str,
        firmware_id: str,
        variant: str,
    ) -> DeviceUpdateResult:
        components = sort_by_flash_order(
            find_firmware_components(lookup_table, bucket.device_key, variant),
            self.catalog.flash_order_for(bucket.device_key),
        )

        if not components:
            self.logger.warning(
                f"No matching firmware found in config: rack_id={rack_id}, "
                f"device_type={bucket.display_name}"
            )
            return DeviceUpdateResult(
                device_id=rack_id,
                device_type=bucket.display_name,
                success=False,
                message=f"No matching firmware found in config for {bucket.display_name}",
            )

        if self.fleet_client is None:
            self.logger.warning(
                f"Fleet manager client not configured, cannot update {bucket.display_name} "
                f"in rack {rack_id}"
            )
            return DeviceUpdateResult(
                device_id=rack_id,
                device_type=bucket.display_name,
                success=False,
                message="Fleet manager client not configured",
            )

        cache_dir = firmware_cache_dir(self.cache_root, firmware_id)
        request = UpdateFirmwareRequest(
            node_type=bucket.node_type,
            rack_id=rack_id,
            firmware_targets=[
                FirmwareTarget(target=entry.target, filename=str(cache_dir / entry.filename))
                for entry in components
            ],
            activate=bucket.activate,
        )
        self.logger.info(
            f"Applying firmware via async batch API: rack_id={rack_id}, "
            f"device_type={bucket.display_name}, "
            f"targets={[t.target for t in request.firmware_targets]}"
        )

        try:
            response = await self.fleet_client.update_firmware_by_node_type_async(request)
        except TransportError as e:
            self.logger.warning(
                f"Failed to initiate async firmware update: rack_id={rack_id}, "
                f"device_type={bucket.display_name}, error={e}"
            )
            return DeviceUpdateResult(
                device_id=rack_id,
                device_type=bucket.display_name,
                success=False,
                message=f"Fleet manager API error: {e}",
            )

        for node_job in response.node_jobs:
            self.logger.info(
                f"Firmware update job created: device_type={bucket.display_name}, "
                f"node_id={node_job.node_id}, job_id={node_job.job_id}"
            )

        return DeviceUpdateResult(
            device_id=rack_id,
            device_type=bucket.display_name,
            success=response.status == RETURN_CODE_SUCCESS,
            message=(
                f"Async firmware update initiated for {response.total_nodes} nodes: "
                f"{response.message}"
            ),
            job_id=response.job_id,
            node_jobs=response.node_jobs,
        )
