"""Build the device-type firmware lookup table from a parsed manifest."""

import logging
from typing import Optional

from rack_firmware.models.catalog import (
    DEFAULT_CATALOG,
    ComponentRule,
    DeviceCatalog,
    DeviceType,
)
from rack_firmware.models.lookup import FirmwareLookupTable, LookupEntry
from rack_firmware.models.manifest import (
    BoardSku,
    FirmwareComponent,
    FirmwareLocation,
    ParsedComponents,
)
from rack_firmware.services.classifier import classify_sku
from rack_firmware.services.parser import FIRMWARE_LOCATION_TYPE
from rack_firmware.utils.paths import filename_from_url

logger = logging.getLogger("rack_firmware.lookup_builder")

DEFAULT_VARIANT = "prod"


def normalize_variant(variant: Optional[str]) -> str:
    return variant.lower() if variant else DEFAULT_VARIANT


def _first_firmware_location(component: FirmwareComponent) -> Optional[FirmwareLocation]:
    for location in component.locations:
        if location.firmware_type == FIRMWARE_LOCATION_TYPE:
            return location
    return None


def _extract_entries(
    board: BoardSku, rules: list[ComponentRule]
) -> dict[str, LookupEntry]:
    entries: dict[str, LookupEntry] = {}

    for component in board.firmware_components:
        # First matching rule wins; a combined bundle such as BMC+FPGA+EROT
        # is flashed once, through its first target
        rule = next((r for r in rules if r.match == component.component), None)
        if rule is None:
            continue

        location = _first_firmware_location(component)
        if location is None:
            logger.debug(f"No firmware location for component {component.component}, skipping")
            continue

        variant = normalize_variant(component.variant)
        filename = filename_from_url(location.url)
        key = f"{rule.lookup_key}_{variant}"

        entries[key] = LookupEntry(
            filename=filename,
            target=rule.target,
            component=component.component,
            bundle=component.bundle or "",
            variant=variant,
            version=component.version,
            subcomponents=list(component.subcomponents),
        )
        logger.debug(f"Lookup entry {key}: file={filename}, target={rule.target}")

    return entries


def build_lookup_table(
    parsed: ParsedComponents, catalog: DeviceCatalog = DEFAULT_CATALOG
) -> FirmwareLookupTable:
    """Reduce a parsed manifest to device_key -> "{key}_{variant}" -> entry.

    Boards with an unknown SKU are skipped. Compute tray boards are scanned a
    second time with the power shelf rules, since power shelf firmware ships
    inside compute tray manifests; those entries land in their own bucket.
    Buckets without entries are left out.

    Args:
        parsed: ParsedComponents of the manifest
        catalog: Device catalog to classify and extract with

    Returns:
        FirmwareLookupTable
    """
    devices: dict[str, dict[str, LookupEntry]] = {}

    for board in parsed.board_skus:
        device_type = classify_sku(board.sku_id, catalog)
        if device_type == DeviceType.UNKNOWN:
            logger.debug(f"Unknown device type for SKU '{board.sku_id}' ({board.name}), skipping")
            continue

        passes = [device_type]
        if device_type == DeviceType.COMPUTE_TRAY:
            passes.append(DeviceType.POWER_SHELF)

        for pass_type in passes:
            device_key = catalog.device_key(pass_type)
            if device_key is None:
                continue
            entries = _extract_entries(board, catalog.rules_for(pass_type))
            if entries:
                devices.setdefault(device_key, {}).update(entries)

    return FirmwareLookupTable(devices=devices)
