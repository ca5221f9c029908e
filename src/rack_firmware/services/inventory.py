"""Rack inventory lookup."""

import json
import logging
from pathlib import Path
from typing import Protocol

import pydantic

from rack_firmware.errors import NotFoundError, PersistenceError
from rack_firmware.models.deployment import RackDevices


class RackInventory(Protocol):
    def get_rack(self, rack_id: str) -> RackDevices: ...


class FileRackInventory:
    """Rack inventory backed by a JSON file.

    File format::

        {
            "rack-01": {
                "compute_trays": ["node-1", "node-2"],
                "power_shelves": ["ps-1"],
                "switches": ["sw-1"]
            }
        }

    The file is re-read on every lookup so edits apply without a restart.
    """

    def __init__(self, inventory_file: Path):
        self.logger = logging.getLogger("rack_firmware.inventory")
        self.inventory_file = Path(inventory_file)

    def get_rack(self, rack_id: str) -> RackDevices:
        """Resolve a rack id to the devices it contains.

        Raises:
            NotFoundError: If the rack (or the inventory file) does not exist
            PersistenceError: If the inventory file is malformed
        """
        try:
            with open(self.inventory_file, "r", encoding="utf-8") as f:
                racks = json.load(f)
        except FileNotFoundError:
            raise NotFoundError(f"Rack '{rack_id}' not found: no inventory at {self.inventory_file}")
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read rack inventory {self.inventory_file}: {e}") from e

        if not isinstance(racks, dict) or rack_id not in racks:
            raise NotFoundError(f"Rack '{rack_id}' not found")

        try:
            return RackDevices.model_validate({**racks[rack_id], "rack_id": rack_id})
        except (TypeError, pydantic.ValidationError) as e:
            raise PersistenceError(f"Malformed inventory entry for rack '{rack_id}': {e}") from e
