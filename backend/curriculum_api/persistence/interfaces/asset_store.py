"""Abstract binary asset store (image uploads)."""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class StoredAsset:
    url: str
    public_id: str


class AssetUploadError(Exception):
    """The store rejected or could not receive the upload; no URL exists."""


class AssetStore(ABC):

    @abstractmethod
    def upload(
        self,
        data: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        folder: Optional[str] = None,
    ) -> StoredAsset:
        """Store the bytes under the folder hint and return a stable URL + opaque id."""
        ...
