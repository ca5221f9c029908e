"""Download service that caches every firmware artifact of a manifest."""

import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import httpx

from rack_firmware.errors import PersistenceError, RackFirmwareError, TransportError
from rack_firmware.models.catalog import DEFAULT_CATALOG, DeviceCatalog
from rack_firmware.models.deployment import DownloadSummary
from rack_firmware.models.manifest import FirmwareComponent, ParsedComponents
from rack_firmware.services.lookup_builder import build_lookup_table
from rack_firmware.services.repository import FirmwareRepository
from rack_firmware.services.secrets import SecretStore
from rack_firmware.utils.paths import firmware_cache_dir, safe_filename_from_url

# Artifactory API key header, sent only on the retry
AUTH_HEADER = "X-JFrog-Art-Api"


class DownloadService:
    """Fetches all firmware files of one firmware id into the local cache.

    Files are fetched concurrently, one unit per Firmware location. A failed
    file never aborts its siblings. Only a run with zero failures builds the
    lookup table and marks the firmware config available.
    """

    def __init__(
        self,
        repository: FirmwareRepository,
        secret_store: SecretStore,
        cache_root: Path,
        catalog: DeviceCatalog = DEFAULT_CATALOG,
        connect_timeout: float = 30.0,
        timeout: float = 600.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize download service.

        Args:
            repository: Firmware config repository (receives the availability flip)
            secret_store: Source of the artifact repository token
            cache_root: Root of the firmware cache
            catalog: Device catalog used to build the lookup table
            connect_timeout: Per-file connect timeout in seconds
            timeout: Per-file overall timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.logger = logging.getLogger("rack_firmware.download")
        self.repository = repository
        self.secret_store = secret_store
        self.cache_root = Path(cache_root)
        self.catalog = catalog
        self.timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self.transport = transport
        self.chunk_size = 64 * 1024  # 64KB chunks

    async def download_firmware(
        self, firmware_id: str, parsed: ParsedComponents
    ) -> DownloadSummary:
        """Download every Firmware location of a manifest and publish the result.

        Args:
            firmware_id: Firmware config id (also the cache sub-directory)
            parsed: Parsed manifest

        Returns:
            DownloadSummary with per-file tallies and the resulting availability

        Raises:
            PersistenceError: If the cache directory or the availability update fails
            NotFoundError: If the firmware config was deleted during the run
        """
        token = self._resolve_token(firmware_id)

        cache_dir = firmware_cache_dir(self.cache_root, firmware_id)
        try:
            cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to create cache directory {cache_dir}: {e}") from e

        units = [
            self._download_one(location.url, component, token, cache_dir)
            for _board, component, location in parsed.iter_locations()
        ]
        self.logger.info(
            f"Starting firmware download: firmware_id={firmware_id}, "
            f"board_skus={len(parsed.board_skus)}, files={len(units)}"
        )

        # return_exceptions keeps one failing unit from cancelling the others
        results = await asyncio.gather(*units, return_exceptions=True)

        succeeded = 0
        failed = 0
        for result in results:
            if isinstance(result, RackFirmwareError):
                self.logger.warning(f"Firmware download failed: {result}")
                failed += 1
            elif isinstance(result, BaseException):
                self.logger.error(f"Download task crashed: {result!r}", exc_info=result)
                failed += 1
            else:
                succeeded += 1

        summary = DownloadSummary(
            firmware_id=firmware_id,
            total=len(units),
            succeeded=succeeded,
            failed=failed,
        )
        self.logger.info(
            f"Firmware download completed: firmware_id={firmware_id}, "
            f"successful={succeeded}, failed={failed}, total={len(units)}"
        )

        if failed:
            self.logger.warning(
                f"Firmware {firmware_id} not marked as available due to {failed} download failures"
            )
            return summary

        lookup_table = build_lookup_table(parsed, self.catalog)
        self.logger.info(
            f"Built firmware lookup table for {firmware_id}: "
            f"device_types={len(lookup_table.devices)}"
        )
        self.repository.mark_available(firmware_id, lookup_table.model_dump(mode="json"))
        summary.available = True
        return summary

    def _resolve_token(self, firmware_id: str) -> str:
        credentials = self.secret_store.get_credentials(firmware_id)
        if credentials is None:
            return ""
        return credentials.token.get_secret_value()

    async def _download_one(
        self,
        url: str,
        component: FirmwareComponent,
        token: str,
        cache_dir: Path,
    ) -> Path:
        """Download a single firmware file unless it is already cached.

        Returns:
            Path of the cached file

        Raises:
            ValidationError: If no filename can be derived from the URL
            TransportError: If the download fails
        """
        filename = safe_filename_from_url(url)
        dest_path = cache_dir / filename

        if dest_path.exists():
            self.logger.debug(
                f"File already cached, skipping download: component={component.component}, "
                f"filename={filename}"
            )
            return dest_path

        self.logger.info(
            f"Downloading firmware file: component={component.component}, "
            f"bundle={component.bundle}, url={url}"
        )

        async with httpx.AsyncClient(
            verify=False, timeout=self.timeout, transport=self.transport
        ) as client:
            response = await self._open(client, url, token)
            try:
                await self._stream_to_file(response, dest_path)
            finally:
                await response.aclose()

        self.logger.info(
            f"Successfully downloaded firmware file: component={component.component}, "
            f"path={dest_path}"
        )
        return dest_path

    async def _open(self, client: httpx.AsyncClient, url: str, token: str) -> httpx.Response:
        """Send the GET, retrying once with the token on 401 or a transport error."""
        try:
            response = await client.send(client.build_request("GET", url), stream=True)
        except httpx.TransportError as e:
            self.logger.debug(f"Download without token failed ({e!r}), retrying with token: {url}")
            return await self._open_with_token(client, url, token)

        if response.is_success:
            return response

        await response.aclose()
        if response.status_code == httpx.codes.UNAUTHORIZED:
            self.logger.debug(f"Authentication required, retrying with token: {url}")
            return await self._open_with_token(client, url, token)

        raise TransportError(f"Download failed with status {response.status_code}: {url}")

    async def _open_with_token(
        self, client: httpx.AsyncClient, url: str, token: str
    ) -> httpx.Response:
        request = client.build_request("GET", url, headers={AUTH_HEADER: token})
        try:
            response = await client.send(request, stream=True)
        except httpx.TransportError as e:
            raise TransportError(f"Failed to download with token: {url}: {e}") from e

        if not response.is_success:
            await response.aclose()
            raise TransportError(
                f"Download with token failed with status {response.status_code}: {url}"
            )
        return response

    async def _stream_to_file(self, response: httpx.Response, dest_path: Path) -> None:
        """Stream the body to a private temp file, then rename it into place.

        The cache treats any existing file as complete, so partial bodies must
        never appear under the final name.
        """
        part_path = dest_path.with_name(f".{dest_path.name}.{uuid.uuid4().hex}.part")
        try:
            async with aiofiles.open(part_path, "wb") as f:
                async for chunk in response.aiter_bytes(chunk_size=self.chunk_size):
                    await f.write(chunk)
            os.replace(part_path, dest_path)
        except (httpx.HTTPError, OSError) as e:
            part_path.unlink(missing_ok=True)
            raise TransportError(f"Failed to write {dest_path.name}: {e}") from e
