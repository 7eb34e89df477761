from typing import Optional

import httpx
from fastapi import Depends

from therapy_site.config.settings import Config, StorageConfig, get_config


class StorageError(Exception):
    """Object store request failed"""


class StorageNotConfigured(StorageError):
    """SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY missing"""


class ObjectStorage:
    """
    Minimal Supabase Storage REST client.
    Objects are addressed by bucket + path; public URLs follow the
    /storage/v1/object/public/<bucket>/<path> convention.
    """

    def __init__(self, storage_config: StorageConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = storage_config
        self._client = client

    def _require_config(self):
        if not self.config.url or not self.config.service_key:
            raise StorageNotConfigured("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY.")
        return self.config.url.rstrip("/"), self.config.service_key

    def public_url(self, bucket: str, path: str) -> str:
        base_url, _ = self._require_config()
        return f"{base_url}/storage/v1/object/public/{bucket}/{path}"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            return await client.request(method, url, **kwargs)

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        cache_control: Optional[str] = None,
    ) -> str:
        """Upload (upsert) an object and return its public URL"""
        base_url, key = self._require_config()
        headers = {
            "Authorization": f"Bearer {key}",
            "Content-Type": content_type,
            "x-upsert": "true",
        }
        if cache_control:
            headers["cache-control"] = cache_control

        try:
            resp = await self._request(
                "POST",
                f"{base_url}/storage/v1/object/{bucket}/{path}",
                headers=headers,
                content=content,
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Upload failed: {e}") from e

        if resp.is_error:
            raise StorageError(f"Upload failed: {resp.status_code} {resp.text}")
        return self.public_url(bucket, path)

    async def delete(self, bucket: str, path: str) -> None:
        base_url, key = self._require_config()
        try:
            resp = await self._request(
                "DELETE",
                f"{base_url}/storage/v1/object/{bucket}/{path}",
                headers={"Authorization": f"Bearer {key}"},
            )
        except httpx.HTTPError as e:
            raise StorageError(f"Delete failed: {e}") from e

        if resp.is_error:
            raise StorageError(f"Delete failed: {resp.status_code} {resp.text}")


def get_storage(cfg: Config = Depends(get_config)) -> ObjectStorage:
    """FastAPI dependency for the object store"""
    return ObjectStorage(cfg.storage)
