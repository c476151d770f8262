"""Blob storage HTTP client.

Image bytes are never stored by the catalog. They are sent to the blob
storage service, which returns a stable URL to keep on the product.
"""

import asyncio
import base64
from collections.abc import Sequence

import httpx
import structlog

from catalog_api.domain.exceptions import UploadFailure
from catalog_api.infrastructure.config import settings

logger = structlog.get_logger()


class BlobStorageClient:
    """HTTP client for the blob storage service.

    Example usage:
        client = BlobStorageClient(settings.blob_storage_url, settings.blob_storage_token)
        urls = await client.upload_many([png_bytes, "data:image/png;base64,..."])
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize blob storage client.

        Args:
            base_url: Blob storage service URL.
            token: Bearer token for the service.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used in tests).
        """
        self.base_url = base_url
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.token}"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def upload(self, image: str | bytes) -> str:
        """Upload a single image.

        Args:
            image: Raw bytes, or a base64 string (data URLs accepted).

        Returns:
            Stable URL of the stored image.

        Raises:
            UploadFailure: On transport error or unexpected response.
        """
        if isinstance(image, bytes):
            payload = base64.b64encode(image).decode("ascii")
        else:
            payload = image

        try:
            client = await self._get_client()
            response = await client.post("/images", json={"data": payload})
        except httpx.RequestError as e:
            logger.error("Blob storage request failed", error=str(e))
            raise UploadFailure(f"Request failed: {e}") from e

        if response.status_code not in (200, 201):
            logger.error(
                "Blob storage rejected upload",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise UploadFailure(
                f"Upload rejected: {response.text}",
                response.status_code,
            )

        try:
            url = response.json()["url"]
        except (ValueError, KeyError, TypeError) as e:
            raise UploadFailure("Malformed upload response", response.status_code) from e

        if not isinstance(url, str) or not url:
            raise UploadFailure("Upload response has no URL", response.status_code)
        return url

    async def upload_many(self, images: Sequence[str | bytes]) -> list[str]:
        """Upload images concurrently.

        Args:
            images: Images to upload.

        Returns:
            URLs in the same order as the input.

        If any upload fails, the images that were stored anyway are logged
        so they can be removed from blob storage.

        Raises:
            UploadFailure: If any upload fails.
        """
        if not images:
            return []
        results = await asyncio.gather(
            *(self.upload(image) for image in images),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            stored = [r for r in results if isinstance(r, str)]
            if stored:
                logger.warning(
                    "Uploaded images left unreferenced",
                    urls=stored,
                    failed=len(failures),
                )
            raise failures[0]

        logger.info("Images uploaded", count=len(results))
        return list(results)


# Global client instance
_blob_storage_client: BlobStorageClient | None = None


def get_blob_storage_client() -> BlobStorageClient:
    """Get the blob storage client singleton.

    Returns:
        BlobStorageClient configured from settings.
    """
    global _blob_storage_client
    if _blob_storage_client is None:
        _blob_storage_client = BlobStorageClient(
            base_url=settings.blob_storage_url,
            token=settings.blob_storage_token,
            timeout=settings.blob_storage_timeout,
        )
    return _blob_storage_client


async def close_blob_storage_client() -> None:
    """Close the singleton client, if created."""
    global _blob_storage_client
    if _blob_storage_client is not None:
        await _blob_storage_client.close()
        _blob_storage_client = None
