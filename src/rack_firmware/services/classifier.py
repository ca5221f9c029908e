"""Board SKU to device type classification."""

from rack_firmware.models.catalog import DEFAULT_CATALOG, DeviceCatalog, DeviceType


def classify_sku(sku_id: str, catalog: DeviceCatalog = DEFAULT_CATALOG) -> DeviceType:
    """Classify a board SKU id against the catalog allow-lists.

    ``sku_id`` may hold several comma-separated SKU ids. Tokens are checked
    in order, compute trays before switch trays, and the first match wins.
    """
    for token in (part.strip() for part in sku_id.split(",")):
        if token in catalog.compute_tray_skus:
            return DeviceType.COMPUTE_TRAY
        if token in catalog.switch_tray_skus:
            return DeviceType.SWITCH_TRAY
    return DeviceType.UNKNOWN
