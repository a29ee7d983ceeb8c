"""Supabase Storage implementation of AssetStore."""
from __future__ import annotations
import logging
import os
import uuid
from typing import Optional

import requests

from curriculum_api.persistence.interfaces.asset_store import AssetStore, AssetUploadError, StoredAsset

logger = logging.getLogger(__name__)


class SupabaseAssetStore(AssetStore):
    def __init__(self, base_url: str, api_key: str, bucket: str, default_folder: str, timeout: float = 30.0):
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._default_folder = default_folder
        self._timeout = timeout
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._headers["apikey"])

    def upload(
        self,
        data: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        folder: Optional[str] = None,
    ) -> StoredAsset:
        if not self.configured:
            raise AssetUploadError("Asset storage not configured")
        if not data:
            raise AssetUploadError("Empty file")

        extension = os.path.splitext(filename or "")[1].lower()
        public_id = f"{(folder or self._default_folder).strip('/')}/{uuid.uuid4().hex}{extension}"
        headers = dict(self._headers)
        headers["Content-Type"] = content_type or "application/octet-stream"

        try:
            res = requests.post(
                f"{self._base_url}/storage/v1/object/{self._bucket}/{public_id}",
                headers=headers,
                data=data,
                timeout=self._timeout,
            )
            res.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Upload of %s to bucket %s failed: %s", public_id, self._bucket, e)
            raise AssetUploadError(str(e)) from e

        url = f"{self._base_url}/storage/v1/object/public/{self._bucket}/{public_id}"
        return StoredAsset(url=url, public_id=public_id)
