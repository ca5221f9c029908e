"""Firmware cache path conventions."""

from pathlib import Path

from rack_firmware.errors import ValidationError


def firmware_cache_dir(cache_root: Path, firmware_id: str) -> Path:
    """Absolute cache directory for one firmware id.

    Layout: ``<cache_root>/rack_firmware/<firmware_id>/``. The same absolute
    paths are sent to the fleet manager as flash sources.
    """
    return Path(cache_root).absolute() / "rack_firmware" / firmware_id


def filename_from_url(url: str) -> str:
    """Return the final path segment of a URL (may be empty)."""
    return url.rsplit("/", 1)[-1]


def safe_filename_from_url(url: str) -> str:
    """Return the final path segment of a URL, usable as a cache file name.

    Raises:
        ValidationError: If the segment is empty or a directory reference
    """
    filename = filename_from_url(url)
    if filename in ("", ".", ".."):
        raise ValidationError(f"Cannot derive filename from URL: {url!r}")
    return filename
