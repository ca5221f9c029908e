"""Unit tests for FileRackInventory."""

import json

import pytest

from rack_firmware.errors import NotFoundError, PersistenceError
from rack_firmware.services.inventory import FileRackInventory


@pytest.mark.unit
class TestFileRackInventory:

    def test_get_rack(self, rack_inventory):
        rack = rack_inventory.get_rack("rack-full")

        assert rack.rack_id == "rack-full"
        assert rack.compute_trays == ["node-1", "node-2"]
        assert rack.power_shelves == ["ps-1"]
        assert rack.switches == ["sw-1", "sw-2"]
        assert not rack.is_empty()

    def test_missing_device_lists_default_to_empty(self, rack_inventory):
        rack = rack_inventory.get_rack("rack-compute")

        assert rack.power_shelves == []
        assert rack.switches == []

    def test_empty_rack(self, rack_inventory):
        assert rack_inventory.get_rack("rack-empty").is_empty()

    def test_unknown_rack(self, rack_inventory):
        with pytest.raises(NotFoundError):
            rack_inventory.get_rack("rack-missing")

    def test_missing_inventory_file(self, tmp_path):
        with pytest.raises(NotFoundError):
            FileRackInventory(tmp_path / "missing.json").get_rack("rack-01")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "racks.json"
        path.write_text("[1, 2")

        with pytest.raises(PersistenceError):
            FileRackInventory(path).get_rack("rack-01")

    def test_malformed_entry(self, tmp_path):
        path = tmp_path / "racks.json"
        path.write_text(json.dumps({"rack-01": {"switches": "sw-1"}}))

        with pytest.raises(PersistenceError):
            FileRackInventory(path).get_rack("rack-01")

    def test_edits_apply_without_reload(self, tmp_path):
        path = tmp_path / "racks.json"
        path.write_text(json.dumps({}))
        inventory = FileRackInventory(path)

        path.write_text(json.dumps({"rack-01": {"switches": ["sw-1"]}}))

        assert inventory.get_rack("rack-01").switches == ["sw-1"]
