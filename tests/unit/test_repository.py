"""Unit tests for FirmwareRepository."""

import json

import pytest

from rack_firmware.errors import NotFoundError, PersistenceError, ValidationError
from rack_firmware.services.repository import FirmwareRepository


@pytest.mark.unit
class TestFirmwareRepository:
    """Test JSON-file persistence of firmware configs."""

    def test_create_and_find(self, repository, tmp_path):
        created = repository.create("fw-1", {"Id": "fw-1"}, {"board_skus": []})

        assert created.available is False
        assert (tmp_path / "data" / "rack_firmware" / "fw-1.json").exists()

        loaded = repository.find_by_id("fw-1")
        assert loaded == created

    def test_create_duplicate_fails(self, repository):
        repository.create("fw-1", {"Id": "fw-1"})

        with pytest.raises(PersistenceError, match="already exists"):
            repository.create("fw-1", {"Id": "fw-1"})

    def test_find_missing(self, repository):
        with pytest.raises(NotFoundError):
            repository.find_by_id("fw-missing")

    @pytest.mark.parametrize("firmware_id", ["", ".", "..", "../etc", "a\\b"])
    def test_invalid_ids_are_rejected(self, repository, firmware_id):
        with pytest.raises(ValidationError):
            repository.create(firmware_id, {})

    def test_list_all_oldest_first(self, repository, tmp_path):
        for firmware_id, created_at in (
            ("fw-a", "2026-03-02T00:00:00Z"),
            ("fw-b", "2026-03-01T00:00:00Z"),
            ("fw-c", "2026-03-03T00:00:00Z"),
        ):
            repository.create(firmware_id, {})
            path = tmp_path / "data" / "rack_firmware" / f"{firmware_id}.json"
            record = json.loads(path.read_text())
            record["created_at"] = created_at
            path.write_text(json.dumps(record))

        assert [c.id for c in repository.list_all()] == ["fw-b", "fw-a", "fw-c"]

    def test_list_only_available(self, repository):
        repository.create("fw-1", {})
        repository.create("fw-2", {})
        repository.mark_available("fw-2", {"devices": {}})

        assert [c.id for c in repository.list_all(only_available=True)] == ["fw-2"]
        assert len(repository.list_all()) == 2

    def test_list_without_data_dir(self, tmp_path):
        assert FirmwareRepository(tmp_path / "nothing").list_all() == []

    def test_delete(self, repository):
        repository.create("fw-1", {})

        repository.delete("fw-1")

        with pytest.raises(NotFoundError):
            repository.find_by_id("fw-1")

    def test_delete_missing(self, repository):
        with pytest.raises(NotFoundError):
            repository.delete("fw-missing")

    def test_mark_available(self, repository):
        created = repository.create("fw-1", {"Id": "fw-1"}, {"board_skus": []})

        updated = repository.mark_available("fw-1", {"devices": {"Compute Node": {}}})

        assert updated.available is True
        assert updated.parsed_components == {"devices": {"Compute Node": {}}}
        assert updated.raw_manifest == {"Id": "fw-1"}
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at
        assert repository.find_by_id("fw-1") == updated

    def test_mark_available_after_delete(self, repository):
        repository.create("fw-1", {})
        repository.delete("fw-1")

        with pytest.raises(NotFoundError):
            repository.mark_available("fw-1", {"devices": {}})

    def test_corrupted_record(self, repository, tmp_path):
        repository.create("fw-1", {})
        (tmp_path / "data" / "rack_firmware" / "fw-1.json").write_text("{not json")

        with pytest.raises(PersistenceError, match="Corrupted"):
            repository.find_by_id("fw-1")

    def test_no_temp_files_left_behind(self, repository, tmp_path):
        repository.create("fw-1", {})
        repository.mark_available("fw-1", {"devices": {}})

        files = [p.name for p in (tmp_path / "data" / "rack_firmware").iterdir()]
        assert files == ["fw-1.json"]

    def test_record_is_plain_json(self, repository, tmp_path):
        repository.create("fw-1", {"Id": "fw-1"})

        data = json.loads((tmp_path / "data" / "rack_firmware" / "fw-1.json").read_text())

        assert data["id"] == "fw-1"
        assert data["available"] is False
        assert data["raw_manifest"] == {"Id": "fw-1"}
