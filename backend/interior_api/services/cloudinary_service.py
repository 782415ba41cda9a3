"""
Eleven Interior API - Cloudinary Media Service
===============================================

What:  Thin async client for the Cloudinary upload API plus delivery-URL builders.
How:   httpx.AsyncClient supplied by the caller (one per request, created by the
       get_media_service dependency), RequestSigner for the `signature` field,
       and a shared LRUCache memoizing transformation URLs.
Who:   MediaService (uploads/deletes) and the public media routes (URLs only).

Failure policy:
    One attempt per call with a bounded timeout. Timeouts, transport errors and
    non-2xx answers raise MediaServiceError. No retry: a repeated upload can
    leave a duplicate asset on the Cloudinary side.

URL anatomy:
    https://res.cloudinary.com/{cloud}/image/upload/c_fill,w_1280,h_720,q_auto:good,fl_progressive/{public_id}
                                                   └──────────── transformation ───────────────┘
"""

import logging
import time
from typing import Any, AsyncGenerator, Dict, Iterable, Optional

import httpx
from fastapi import Request

from interior_api.config import Settings
from interior_api.exceptions import ConfigurationError, MediaServiceError
from interior_api.security.lru_cache import MISS, LRUCache
from interior_api.security.signing import RequestSigner

logger = logging.getLogger(__name__)

API_BASE = "https://api.cloudinary.com/v1_1"
DELIVERY_BASE = "https://res.cloudinary.com"


class CloudinaryService:
    """
    Args:
        cloud_name / api_key / api_secret: account credentials
        client:     httpx.AsyncClient owned by the caller
        url_cache:  shared LRUCache for generate_url()
        folder:     root folder for uploads ("eleven-interior")
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        client: httpx.AsyncClient,
        url_cache: Optional[LRUCache] = None,
        folder: str = "eleven-interior",
        signer: Optional[RequestSigner] = None,
        clock=time.time,
    ):
        if not (cloud_name and api_key and api_secret):
            raise ConfigurationError(
                "Missing required Cloudinary configuration",
                context={
                    "cloud_name": bool(cloud_name),
                    "api_key": bool(api_key),
                    "api_secret": bool(api_secret),
                },
            )
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret
        self.client = client
        self.url_cache = url_cache if url_cache is not None else LRUCache(1000)
        self.folder = folder
        self.signer = signer or RequestSigner()
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient, url_cache: Optional[LRUCache] = None
    ) -> "CloudinaryService":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            client=client,
            url_cache=url_cache,
            folder=settings.cloudinary_folder,
        )

    @property
    def base_url(self) -> str:
        return f"{API_BASE}/{self.cloud_name}"

    def folder_for(self, media_type: str, section: str) -> str:
        return f"{self.folder}/{media_type}s/{section}"

    # ══════════════════════════════════════════════════════════════════════
    # Upload API
    # ══════════════════════════════════════════════════════════════════════

    def _signed(self, params: Dict[str, Any]) -> Dict[str, str]:
        """Add timestamp, signature and api_key to the form fields."""
        fields = {k: v for k, v in params.items() if v is not None}
        fields.setdefault("timestamp", int(self._clock()))
        fields["signature"] = self.signer.sign(fields, self._api_secret)
        fields["api_key"] = self.api_key
        return {k: str(v) for k, v in fields.items()}

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        folder: str,
        resource_type: str = "image",
        public_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Upload one file. Returns Cloudinary's JSON (public_id, secure_url, width, ...)."""
        fields = self._signed(
            {"folder": folder, "public_id": public_id, "resource_type": resource_type}
        )
        if resource_type == "image":
            # Not part of the signature (outside the allow-list)
            fields["quality"] = "auto:good"
            fields["fetch_format"] = "auto"

        result = await self._post(
            f"{self.base_url}/{resource_type}/upload",
            data=fields,
            files={"file": (filename, content, content_type)},
            action="upload",
        )
        logger.info(
            "Uploaded %s to Cloudinary as %s (%d bytes)",
            filename, result.get("public_id"), len(content),
        )
        return result

    async def delete(self, public_id: str, resource_type: str = "image") -> Dict[str, Any]:
        fields = self._signed({"public_id": public_id})
        result = await self._post(
            f"{self.base_url}/{resource_type}/destroy", data=fields, action="delete"
        )
        if result.get("result") not in ("ok", "not found"):
            raise MediaServiceError(
                f"Cloudinary refused to delete {public_id}: {result.get('result')}",
                context={"public_id": public_id},
            )
        return result

    async def batch_delete(self, public_ids: Iterable[str], resource_type: str = "image") -> Dict[str, Any]:
        ids = list(public_ids)
        if not ids:
            return {"deleted": {}}
        fields = self._signed({"public_ids": ids})
        return await self._post(
            f"{self.base_url}/{resource_type}/delete_resources", data=fields, action="batch delete"
        )

    async def get_resource_details(self, public_id: str, resource_type: str = "image") -> Dict[str, Any]:
        """Admin API lookup (basic auth with the key pair)."""
        url = f"{self.base_url}/resources/{resource_type}/upload/{public_id}"
        try:
            response = await self.client.get(url, auth=(self.api_key, self._api_secret))
        except httpx.HTTPError as e:
            raise MediaServiceError(
                f"Cloudinary resource lookup failed: {type(e).__name__}",
                context={"public_id": public_id},
            ) from e
        return self._parse(response, "resource lookup")

    async def _post(self, url: str, data: Dict[str, str], action: str, files=None) -> Dict[str, Any]:
        try:
            response = await self.client.post(url, data=data, files=files)
        except httpx.TimeoutException as e:
            raise MediaServiceError(f"Cloudinary {action} timed out") from e
        except httpx.HTTPError as e:
            raise MediaServiceError(f"Cloudinary {action} failed: {type(e).__name__}") from e
        return self._parse(response, action)

    @staticmethod
    def _parse(response: httpx.Response, action: str) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.is_success:
            return payload
        upstream = payload.get("error", {}).get("message") if isinstance(payload, dict) else None
        raise MediaServiceError(
            f"Cloudinary {action} failed: {upstream or response.reason_phrase}",
            status=response.status_code,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Delivery URLs
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _crop(width: Optional[int], height: Optional[int], crop: str) -> Optional[str]:
        if not (width or height):
            return None
        crop_part = f"c_{crop}"
        if width:
            crop_part += f",w_{width}"
        if height:
            crop_part += f",h_{height}"
        return crop_part

    def generate_url(
        self,
        public_id: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        crop: str = "fill",
        quality: Optional[str] = None,
        format: Optional[str] = None,
        progressive: bool = True,
    ) -> str:
        """Image delivery URL; memoized in the shared LRU cache."""
        cache_key = (self.cloud_name, public_id, width, height, crop, quality, format, progressive)
        cached = self.url_cache.get(cache_key)
        if cached is not MISS:
            return cached

        parts = [self._crop(width, height, crop)]
        if quality:
            parts.append(f"q_{quality}")
        if format:
            parts.append(f"f_{format}")
        if progressive:
            parts.append("fl_progressive")
        transformation = ",".join(p for p in parts if p)

        path = f"{transformation}/{public_id}" if transformation else public_id
        url = f"{DELIVERY_BASE}/{self.cloud_name}/image/upload/{path}"
        self.url_cache.put(cache_key, url)
        return url

    def generate_video_url(
        self,
        public_id: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        crop: str = "fill",
        quality: Optional[str] = None,
    ) -> str:
        """Video delivery URL, always transcoded to H.264 MP4."""
        parts = [self._crop(width, height, crop)]
        if quality:
            parts.append(f"q_{quality}")
        parts.extend(["f_mp4", "vc_h264"])
        transformation = ",".join(p for p in parts if p)
        return f"{DELIVERY_BASE}/{self.cloud_name}/video/upload/{transformation}/{public_id}"

    def responsive_image_urls(self, public_id: str) -> Dict[str, str]:
        return {
            "original": self.generate_url(public_id),
            "large": self.generate_url(public_id, 1920, 1080, quality="auto:good"),
            "medium": self.generate_url(public_id, 1280, 720, quality="auto:good"),
            "small": self.generate_url(public_id, 640, 360, quality="auto:eco"),
            "thumbnail": self.generate_url(public_id, 300, 200, quality="auto:low"),
            "webp_large": self.generate_url(public_id, 1920, 1080, quality="auto:good", format="webp"),
            "webp_medium": self.generate_url(public_id, 1280, 720, quality="auto:good", format="webp"),
        }

    def video_urls(self, public_id: str, secure_url: str) -> Dict[str, str]:
        return {
            "original": secure_url,
            "hd": self.generate_video_url(public_id, 1920, 1080, quality="auto:good"),
            "sd": self.generate_video_url(public_id, 1280, 720, quality="auto:low"),
            "mobile": self.generate_video_url(public_id, 768, 432, quality="auto:low"),
        }


# ── FastAPI Dependency ────────────────────────────────────────────────────
async def get_media_service(request: Request) -> AsyncGenerator[CloudinaryService, None]:
    """
    Per-request CloudinaryService.

    The httpx client lives exactly as long as the request; the URL cache is
    the app-wide instance built in create_app().
    """
    settings: Settings = request.app.state.settings
    timeout = httpx.Timeout(settings.media_request_timeout)
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield CloudinaryService.from_settings(
            settings, client=client, url_cache=request.app.state.media_url_cache
        )
