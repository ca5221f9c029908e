"""Global pytest fixtures and configuration."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rack_firmware.models.fleet import (  # noqa: E402
    FirmwareJobStatusResponse,
    NodeJob,
    UpdateFirmwareResponse,
)
from rack_firmware.services.inventory import FileRackInventory  # noqa: E402
from rack_firmware.services.repository import FirmwareRepository  # noqa: E402
from rack_firmware.services.secrets import InMemorySecretStore  # noqa: E402

ARTIFACT_BASE = "https://artifacts.example.com/fw"


def _location(filename, location_type="Firmware"):
    return {
        "Location": f"{ARTIFACT_BASE}/{filename}",
        "LocationType": "Artifactory",
        "Type": location_type,
    }


class FakeFleetClient:
    """Records fleet manager calls and answers with canned responses."""

    def __init__(self):
        self.update_requests = []
        self.status_requests = []
        self.status = 0
        self.error = None
        self.job_state = 1

    async def update_firmware_by_node_type_async(self, request):
        self.update_requests.append(request)
        if self.error is not None:
            raise self.error
        return UpdateFirmwareResponse(
            status=self.status,
            job_id=f"job-{request.node_type.value}",
            total_nodes=2,
            message="accepted",
            node_jobs=[
                NodeJob(node_id="node-1", job_id=f"job-{request.node_type.value}-1"),
                NodeJob(node_id="node-2", job_id=f"job-{request.node_type.value}-2"),
            ],
        )

    async def get_firmware_job_status(self, job_id):
        self.status_requests.append(job_id)
        return FirmwareJobStatusResponse(
            job_id=job_id,
            job_state=self.job_state,
            state_description="Flashing BMC",
            rack_id="rack-compute",
            node_id="node-1",
            error_message="",
            result_json='{"progress": 40}',
        )


@pytest.fixture
def compute_manifest():
    """Manifest with a single GB200 compute tray exposing HMC and BMC (prod)."""
    return {
        "Id": "fw-gb200-001",
        "BoardSKUs": [
            {
                "SKUID": "699-24764-0001-TS3",
                "Name": "GB200 Compute Tray",
                "Type": "ComputeTray",
                "Components": {
                    "Firmware": [
                        {
                            "Component": "HMC",
                            "Bundle": "P4975",
                            "Version": "1.2.0",
                            "Type": "Prod",
                            "Locations": [
                                _location("hmc-1.2.0.fwpkg"),
                                _location("hmc-1.2.0.crt", "Certificate"),
                            ],
                            "SubComponents": [
                                {"Component": "HGX_FW_GPU_0", "Version": "96.00.5E", "SKUID": "699-2G548"},
                                {"Component": "HGX_FW_ERoT_0", "Version": ""},
                            ],
                        },
                        {
                            "Component": "BMC",
                            "Bundle": "P4975",
                            "Version": "25.01",
                            "Type": "Prod",
                            "Locations": [_location("bmc-25.01.fwpkg")],
                        },
                    ],
                    "Software": [{"Component": "BaseOS", "Version": "24.04"}],
                },
            }
        ],
    }


@pytest.fixture
def full_manifest(compute_manifest):
    """Compute tray (with embedded power shelf FW), switch tray and an unknown board."""
    manifest = json.loads(json.dumps(compute_manifest))
    manifest["Id"] = "fw-rack-full-001"

    compute_firmware = manifest["BoardSKUs"][0]["Components"]["Firmware"]
    compute_firmware.append(
        {
            "Component": "HMC",
            "Bundle": "P4975",
            "Version": "1.3.0-rc1",
            "Type": "Dev",
            "Locations": [_location("hmc-1.3.0-dev.fwpkg")],
        }
    )
    compute_firmware.append(
        {
            "Component": "Power Shelf FW",
            "Bundle": "PS-33K",
            "Version": "2.4",
            "Locations": [_location("powershelf-2.4.bin")],
            "SubComponents": [{"Component": "PSU", "Version": "2.4.1"}],
        }
    )

    manifest["BoardSKUs"].append(
        {
            "SKUID": "999-UNKNOWN, 920-9K36F-00MV-QS1",
            "Name": "NVLink Switch Tray",
            "Type": "SwitchTray",
            "Components": {
                "Firmware": [
                    {
                        "Component": "BMC+FPGA+EROT",
                        "Bundle": "P4978",
                        "Version": "1.0",
                        "Type": "Prod",
                        "Locations": [_location("switch-bmc-fpga-erot-1.0.tar")],
                    },
                    {
                        "Component": "SBIOS+EROT",
                        "Bundle": "P4978",
                        "Version": "2.0",
                        "Type": "Prod",
                        "Locations": [_location("switch-sbios-2.0.bin")],
                    },
                    {
                        "Component": "CPLD",
                        "Version": "0.9",
                        "Locations": [_location("switch-cpld-0.9.bin")],
                    },
                ]
            },
        }
    )
    manifest["BoardSKUs"].append(
        {
            "SKUID": "000-00000-0000-XX0",
            "Name": "Unsupported board",
            "Components": {
                "Firmware": [
                    {"Component": "BMC", "Locations": [_location("other-bmc.bin")]}
                ]
            },
        }
    )
    return manifest


@pytest.fixture
def repository(tmp_path):
    return FirmwareRepository(tmp_path / "data")


@pytest.fixture
def secret_store():
    return InMemorySecretStore()


@pytest.fixture
def cache_root(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def fake_fleet_client():
    return FakeFleetClient()


@pytest.fixture
def rack_inventory(tmp_path):
    """FileRackInventory with compute-only, switch-only, full and empty racks."""
    racks = {
        "rack-compute": {"compute_trays": ["node-1", "node-2"]},
        "rack-switch": {"switches": ["sw-1"]},
        "rack-full": {
            "compute_trays": ["node-1", "node-2"],
            "power_shelves": ["ps-1"],
            "switches": ["sw-1", "sw-2"],
        },
        "rack-empty": {},
    }
    inventory_file = tmp_path / "racks.json"
    inventory_file.write_text(json.dumps(racks), encoding="utf-8")
    return FileRackInventory(inventory_file)
