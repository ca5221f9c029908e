"""JSON-file repository for rack firmware configurations."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

import pydantic

from rack_firmware.errors import NotFoundError, PersistenceError, ValidationError
from rack_firmware.models.firmware import FirmwareConfig, utcnow


class FirmwareRepository:
    """Stores one JSON document per firmware config.

    Layout: ``<data_dir>/rack_firmware/<firmware_id>.json``.

    Every mutation runs under a lock and is written to a temporary file that
    is atomically renamed over the target, so a record is always either the
    old or the new version. This is what gives ``mark_available`` its
    single-transaction semantics.
    """

    def __init__(self, data_dir: Path):
        """Initialize repository.

        Args:
            data_dir: Base data directory (records go to <data_dir>/rack_firmware/)
        """
        self.logger = logging.getLogger("rack_firmware.repository")
        self.base_dir = Path(data_dir) / "rack_firmware"
        self._lock = threading.Lock()

    def _path(self, firmware_id: str) -> Path:
        if not firmware_id or "/" in firmware_id or "\\" in firmware_id or firmware_id in (".", ".."):
            raise ValidationError(f"Invalid firmware id: {firmware_id!r}")
        return self.base_dir / f"{firmware_id}.json"

    def _read(self, path: Path) -> FirmwareConfig:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return FirmwareConfig.model_validate(json.load(f))
        except FileNotFoundError:
            raise
        except (OSError, json.JSONDecodeError, pydantic.ValidationError) as e:
            self.logger.error(f"Failed to read firmware config {path}: {e}")
            raise PersistenceError(f"Corrupted firmware config {path.name}: {e}") from e

    def _write(self, config: FirmwareConfig) -> None:
        path = self._path(config.id)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(config.model_dump(mode="json"), f, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            self.logger.error(f"Failed to write firmware config {config.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to write firmware config {config.id}: {e}") from e

    def create(
        self,
        firmware_id: str,
        raw_manifest: dict[str, Any],
        parsed_components: Optional[dict[str, Any]] = None,
    ) -> FirmwareConfig:
        """Persist a new, not yet available, firmware config.

        Raises:
            PersistenceError: If a config with this id already exists or the write fails
        """
        with self._lock:
            if self._path(firmware_id).exists():
                raise PersistenceError(f"Firmware config '{firmware_id}' already exists")

            config = FirmwareConfig(
                id=firmware_id,
                raw_manifest=raw_manifest,
                parsed_components=parsed_components,
                available=False,
            )
            self._write(config)

        self.logger.info(f"Created firmware config {firmware_id}")
        return config

    def find_by_id(self, firmware_id: str) -> FirmwareConfig:
        """Load a firmware config.

        Raises:
            NotFoundError: If no config with this id exists
        """
        try:
            return self._read(self._path(firmware_id))
        except FileNotFoundError:
            raise NotFoundError(f"Firmware config '{firmware_id}' not found")

    def list_all(self, only_available: bool = False) -> list[FirmwareConfig]:
        """List stored configs, oldest first."""
        if not self.base_dir.exists():
            return []

        configs = []
        for path in self.base_dir.glob("*.json"):
            try:
                config = self._read(path)
            except FileNotFoundError:
                # Deleted between glob and read
                continue
            if only_available and not config.available:
                continue
            configs.append(config)

        configs.sort(key=lambda c: (c.created_at, c.id))
        return configs

    def delete(self, firmware_id: str) -> None:
        """Delete a firmware config.

        Cached firmware files are left in place. An in-flight download run for
        this id is not cancelled; its final availability update will fail
        with NotFoundError.

        Raises:
            NotFoundError: If no config with this id exists
        """
        with self._lock:
            path = self._path(firmware_id)
            try:
                path.unlink()
            except FileNotFoundError:
                raise NotFoundError(f"Firmware config '{firmware_id}' not found")
            except OSError as e:
                raise PersistenceError(f"Failed to delete firmware config {firmware_id}: {e}") from e

        self.logger.info(f"Deleted firmware config {firmware_id}")

    def mark_available(
        self, firmware_id: str, lookup_table: dict[str, Any]
    ) -> FirmwareConfig:
        """Store the lookup table and flip ``available`` in one atomic write.

        Raises:
            NotFoundError: If the config was deleted meanwhile
            PersistenceError: If the write fails
        """
        with self._lock:
            config = self.find_by_id(firmware_id)
            updated = config.model_copy(
                update={
                    "parsed_components": lookup_table,
                    "available": True,
                    "updated_at": utcnow(),
                }
            )
            self._write(updated)

        self.logger.info(f"Marked firmware config {firmware_id} as available")
        return updated
