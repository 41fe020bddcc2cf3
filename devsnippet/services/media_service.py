"""
services/media_service.py
-------------------------
Delegate for the external media host (Cloudinary).

The application never processes media itself. It stores the URL and
public id the host hands back, and asks the host to destroy an asset
when the record referencing it is deleted or replaced.

The Cloudinary SDK is synchronous, so every call runs in the threadpool
with an explicit timeout. Record mutations only ever use release(),
which logs the outcome and never raises, so a host outage cannot fail
a post or profile update.

Without credentials the service runs in MOCK mode (no network I/O),
which is what local development and the test-suite use.
"""

import hashlib
import io
from dataclasses import dataclass
from typing import Any, Callable, Optional

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi.concurrency import run_in_threadpool

from devsnippet.core.config import settings
from devsnippet.core.logging import get_logger

logger = get_logger(__name__)

# destroy() results that mean the asset no longer exists on the host
DESTROYED_RESULTS = ("ok", "not found")


class MediaServiceError(RuntimeError):
    """The media host rejected a request or could not be reached."""


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: str
    resource_type: str


class MediaService:

    def __init__(
        self,
        cloud_name: str = "",
        api_key: str = "",
        api_secret: str = "",
        timeout: float = 10.0,
    ) -> None:
        # Passed per call rather than through cloudinary.config() so that
        # several services (and the tests) never share global SDK state.
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }
        self._timeout = timeout
        self._use_mock = not all(self._credentials.values())
        if self._use_mock:
            logger.info("MediaService in MOCK mode - set CLOUDINARY_* for a real media host")

    @property
    def is_mock(self) -> bool:
        return self._use_mock

    # ── Public API ───────────────────────────────────────────────────────────

    async def upload(
        self,
        data: bytes,
        resource_type: str = "image",
        folder: str = "",
    ) -> MediaAsset:
        """Upload raw bytes and return the hosted asset reference."""
        if self._use_mock:
            digest = hashlib.sha1(data).hexdigest()[:16]
            public_id = f"{folder}/{digest}" if folder else digest
            logger.info("Mock media upload", public_id=public_id, size=len(data))
            return MediaAsset(
                url=f"https://media.invalid/{resource_type}/{public_id}",
                public_id=public_id,
                resource_type=resource_type,
            )

        options = {"resource_type": resource_type}
        if folder:
            options["folder"] = folder
        result = await self._call(cloudinary.uploader.upload, io.BytesIO(data), **options)

        asset = MediaAsset(
            url=result["secure_url"],
            public_id=result["public_id"],
            resource_type=result.get("resource_type", resource_type),
        )
        logger.info("Media uploaded", public_id=asset.public_id, resource_type=asset.resource_type)
        return asset

    async def destroy(self, public_id: str, resource_type: str = "image") -> None:
        """Delete a hosted asset. Raises MediaServiceError on failure."""
        if self._use_mock:
            logger.info("Mock media destroy", public_id=public_id, resource_type=resource_type)
            return

        result = await self._call(
            cloudinary.uploader.destroy,
            public_id,
            resource_type=resource_type,
            invalidate=True,
        )
        outcome = result.get("result")
        if outcome not in DESTROYED_RESULTS:
            raise MediaServiceError(f"Unexpected destroy result: {outcome!r}")

    async def release(self, public_id: Optional[str], resource_type: str = "image") -> bool:
        """
        Best-effort destroy used after record mutations.
        Returns True if the host confirmed, False otherwise. Never raises.
        """
        if not public_id:
            return False
        try:
            await self.destroy(public_id, resource_type)
        except Exception as exc:
            logger.warning(
                "Media release failed (non-fatal)",
                public_id=public_id,
                resource_type=resource_type,
                error=str(exc),
            )
            return False
        logger.info("Media released", public_id=public_id, resource_type=resource_type)
        return True

    # ── Internals ────────────────────────────────────────────────────────────

    async def _call(self, fn: Callable[..., dict], *args: Any, **options: Any) -> dict:
        try:
            return await run_in_threadpool(
                fn, *args, timeout=self._timeout, **self._credentials, **options
            )
        except CloudinaryError as exc:
            raise MediaServiceError(f"Media host request failed: {exc}") from exc


# Singleton - shared across all requests
media_service = MediaService(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    timeout=settings.MEDIA_TIMEOUT_SECONDS,
)


def get_media_service() -> MediaService:
    """FastAPI dependency; overridden in tests."""
    return media_service
