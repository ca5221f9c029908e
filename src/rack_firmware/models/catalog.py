"""Device catalog: the data tables behind classification, extraction and dispatch.

Everything hardware-specific lives here as data so that new SKUs, components
or flash orders can be added by editing a table (or a JSON override file,
see ``load_catalog``) instead of code.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Literal, Optional

import pydantic
from pydantic import BaseModel, Field

from rack_firmware.errors import ValidationError
from rack_firmware.models.fleet import NodeType


class DeviceType(str, Enum):
    """Known device types a board SKU can classify as."""

    COMPUTE_TRAY = "ComputeTray"
    SWITCH_TRAY = "SwitchTray"
    POWER_SHELF = "PowerShelf"
    UNKNOWN = "Unknown"


class ComponentRule(BaseModel):
    """Manifest component to extract for a device type.

    ``match`` is compared against the component name in the manifest,
    ``lookup_key`` names the entry in the lookup table and ``target`` is the
    slot identifier handed to the fleet manager.
    """

    match: str
    lookup_key: str
    target: str


class DispatchBucket(BaseModel):
    """One device-type batch sent to the fleet manager during apply."""

    device_key: str = Field(..., description="Lookup table bucket key")
    node_type: NodeType
    display_name: str
    inventory_field: Literal["compute_trays", "power_shelves", "switches"]
    activate: bool = False


class DeviceCatalog(BaseModel):
    compute_tray_skus: list[str]
    switch_tray_skus: list[str]
    device_keys: dict[DeviceType, str]
    components: dict[DeviceType, list[ComponentRule]]
    flash_order: dict[str, list[str]] = Field(
        default_factory=dict, description="Target flash order keyed by lookup bucket"
    )
    dispatch_buckets: list[DispatchBucket]

    def device_key(self, device_type: DeviceType) -> Optional[str]:
        return self.device_keys.get(device_type)

    def rules_for(self, device_type: DeviceType) -> list[ComponentRule]:
        return self.components.get(device_type, [])

    def flash_order_for(self, device_key: str) -> list[str]:
        return self.flash_order.get(device_key, [])


DEFAULT_CATALOG = DeviceCatalog(
    # GB200 compute tray (P4975)
    compute_tray_skus=["699-24764-0001-TS3", "699-24764-0001-TS1"],
    # NVLink switch tray (P4978)
    switch_tray_skus=[
        "920-9K36F-00MV-QS1",
        "692-9K36F-00MV-JQS",
        "920-9K36F-B4MV-QS1",
        "692-9K36F-B4MV-JD0",
        "920-9K36F-A5MV-QS1",
        "692-9K36F-A5MV-JQS",
        "920-9K36N-00MV-QS1",
        "692-9K36N-00MV-JQS",
        "920-9K36N-09MV-QS1",
        "692-9K36N-09MV-JSO",
    ],
    device_keys={
        DeviceType.COMPUTE_TRAY: "Compute Node",
        DeviceType.SWITCH_TRAY: "Switch Tray",
        DeviceType.POWER_SHELF: "Power Shelf",
    },
    components={
        DeviceType.COMPUTE_TRAY: [
            ComponentRule(match="HMC", lookup_key="HMC", target="/redfish/v1/Chassis/HGX_Chassis_0"),
            ComponentRule(match="BMC", lookup_key="BMC", target="FW_BMC_0"),
        ],
        DeviceType.SWITCH_TRAY: [
            ComponentRule(match="BMC+FPGA+EROT", lookup_key="BMC", target="bmc"),
            ComponentRule(match="SBIOS+EROT", lookup_key="BIOS", target="bios"),
        ],
        # Shipped inside compute tray manifests
        DeviceType.POWER_SHELF: [
            ComponentRule(match="Power Shelf FW", lookup_key="PowerShelfFW", target="psu"),
        ],
    },
    flash_order={
        "Compute Node": ["/redfish/v1/Chassis/HGX_Chassis_0", "FW_BMC_0"],
        "Switch Tray": ["bmc", "fpga", "erot", "bios"],
    },
    dispatch_buckets=[
        DispatchBucket(
            device_key="Compute Node",
            node_type=NodeType.COMPUTE,
            display_name="Compute Node",
            inventory_field="compute_trays",
            activate=True,
        ),
        DispatchBucket(
            device_key="Power Shelf",
            node_type=NodeType.POWERSHELF,
            display_name="Power Shelf",
            inventory_field="power_shelves",
        ),
        DispatchBucket(
            device_key="Switch Tray",
            node_type=NodeType.SWITCH,
            display_name="Switch",
            inventory_field="switches",
        ),
    ],
)


def load_catalog(path: Optional[Path] = None) -> DeviceCatalog:
    """Load a catalog override from JSON, or return the built-in catalog.

    Args:
        path: JSON file with the same schema as DeviceCatalog (None = built-in)

    Returns:
        DeviceCatalog instance

    Raises:
        ValidationError: If the file cannot be read or does not match the schema
    """
    if path is None:
        return DEFAULT_CATALOG

    logger = logging.getLogger("rack_firmware.catalog")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        catalog = DeviceCatalog.model_validate(data)
    except (OSError, json.JSONDecodeError, pydantic.ValidationError) as e:
        raise ValidationError(f"Invalid device catalog {path}: {e}") from e

    logger.info(
        f"Loaded device catalog from {path}: "
        f"{len(catalog.compute_tray_skus)} compute SKUs, "
        f"{len(catalog.switch_tray_skus)} switch SKUs"
    )
    return catalog
