from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    cache_root: Path = Path("/var/lib/rack-firmware/fw")
    data_dir: Path = Path("./data")

    log_file: str = "./logs/rack_firmware.log"
    log_level: str = "INFO"

    fleet_manager_url: Optional[str] = None
    fleet_manager_timeout_seconds: float = 30.0

    download_connect_timeout_seconds: float = 30.0
    download_timeout_seconds: float = 600.0

    inventory_file: Path = Path("./data/racks.json")
    catalog_file: Optional[Path] = None

    host: str = "0.0.0.0"
    port: int = 8080

    model_config = SettingsConfigDict(env_prefix="RACK_FIRMWARE_", env_file=".env")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
