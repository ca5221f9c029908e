"""Vendor manifest parser.

Turns the vendor JSON document into a typed component tree. Only a missing
``BoardSKUs`` array is an error; every other gap in the document degrades
to an empty string or an empty list.

Expected shape (abridged)::

    {
        "Id": "...",
        "BoardSKUs": [
            {
                "SKUID": "699-24764-0001-TS3",
                "Name": "...",
                "Type": "...",
                "Components": {
                    "Firmware": [
                        {
                            "Component": "HMC",
                            "Bundle": "P4975",
                            "Version": "1.2.3",
                            "Type": "Prod",
                            "Locations": [
                                {"Location": "https://...", "LocationType": "...", "Type": "Firmware"}
                            ],
                            "SubComponents": [
                                {"Component": "...", "Version": "...", "SKUID": "..."}
                            ]
                        }
                    ]
                }
            }
        ]
    }
"""

from typing import Any, Optional

from rack_firmware.errors import ValidationError
from rack_firmware.models.manifest import (
    BoardSku,
    FirmwareComponent,
    FirmwareLocation,
    ParsedComponents,
    SubComponent,
)

FIRMWARE_LOCATION_TYPE = "Firmware"


def _get_str(data: Any, key: str, default: str = "") -> str:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, str) else default


def _get_optional_str(data: Any, key: str) -> Optional[str]:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, str) else None


def _get_list(data: Any, key: str) -> list:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, list) else []


def _parse_locations(firmware: Any) -> list[FirmwareLocation]:
    locations = []
    for location in _get_list(firmware, "Locations"):
        # Certificate, Misc, ... entries are not flashable
        if _get_optional_str(location, "Type") != FIRMWARE_LOCATION_TYPE:
            continue
        locations.append(
            FirmwareLocation(
                url=_get_str(location, "Location"),
                location_type=_get_str(location, "LocationType"),
                firmware_type=FIRMWARE_LOCATION_TYPE,
            )
        )
    return locations


def _parse_subcomponents(firmware: Any) -> list[SubComponent]:
    subcomponents = []
    for sub in _get_list(firmware, "SubComponents"):
        component = _get_str(sub, "Component")
        version = _get_str(sub, "Version")
        if component and version:
            subcomponents.append(
                SubComponent(
                    component=component,
                    version=version,
                    sku_id=_get_optional_str(sub, "SKUID"),
                )
            )
    return subcomponents


def _parse_component(firmware: Any) -> FirmwareComponent:
    return FirmwareComponent(
        component=_get_str(firmware, "Component"),
        bundle=_get_optional_str(firmware, "Bundle"),
        version=_get_optional_str(firmware, "Version"),
        variant=_get_optional_str(firmware, "Type"),
        locations=_parse_locations(firmware),
        subcomponents=_parse_subcomponents(firmware),
    )


def parse_manifest(document: Any) -> ParsedComponents:
    """Parse a vendor manifest into ParsedComponents.

    Args:
        document: Decoded manifest JSON

    Returns:
        ParsedComponents with one BoardSku per manifest board entry

    Raises:
        ValidationError: If the top-level 'BoardSKUs' array is missing
    """
    board_skus = document.get("BoardSKUs") if isinstance(document, dict) else None
    if not isinstance(board_skus, list):
        raise ValidationError("Manifest must contain 'BoardSKUs' array")

    boards = []
    for board in board_skus:
        components = board.get("Components") if isinstance(board, dict) else None
        boards.append(
            BoardSku(
                sku_id=_get_str(board, "SKUID"),
                name=_get_str(board, "Name"),
                sku_type=_get_str(board, "Type"),
                # Software components are ignored
                firmware_components=[
                    _parse_component(firmware)
                    for firmware in _get_list(components, "Firmware")
                ],
            )
        )

    return ParsedComponents(board_skus=boards)
