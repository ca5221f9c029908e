"""Parsed vendor manifest models."""

from typing import Optional
from pydantic import BaseModel, Field


class FirmwareLocation(BaseModel):
    """Download location of a firmware artifact.

    Only locations declared with ``Type: "Firmware"`` survive parsing;
    certificates and misc attachments are dropped.
    """

    url: str = Field(..., description="Artifact URL (final path segment is the filename)")
    location_type: str = Field("", description="Vendor location type (e.g. 'Artifactory')")
    firmware_type: str = Field("Firmware", description="Declared location type")


class SubComponent(BaseModel):
    """Individually versioned part of a firmware bundle (from FWPKG)."""

    component: str
    version: str
    sku_id: Optional[str] = None


class FirmwareComponent(BaseModel):
    """Single firmware component of a board SKU."""

    component: str = Field("", description="Component name (e.g. 'HMC', 'BMC+FPGA+EROT')")
    bundle: Optional[str] = Field(None, description="Bundle identifier (e.g. 'P4975')")
    version: Optional[str] = Field(None, description="Bundle version")
    variant: Optional[str] = Field(
        None, description="Build channel as declared by vendor ('Prod'/'Dev')"
    )
    locations: list[FirmwareLocation] = Field(default_factory=list)
    subcomponents: list[SubComponent] = Field(default_factory=list)


class BoardSku(BaseModel):
    """Board SKU entry of the manifest."""

    sku_id: str = Field("", description="One or more comma-separated SKU identifiers")
    name: str = ""
    sku_type: str = ""
    firmware_components: list[FirmwareComponent] = Field(default_factory=list)


class ParsedComponents(BaseModel):
    """Typed component tree extracted from a vendor manifest."""

    board_skus: list[BoardSku] = Field(default_factory=list)

    def iter_locations(self):
        """Yield every (board, component, location) triple in manifest order."""
        for board in self.board_skus:
            for component in board.firmware_components:
                for location in component.locations:
                    yield board, component, location
