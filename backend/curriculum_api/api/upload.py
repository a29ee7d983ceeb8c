"""Upload API — images pushed to the binary asset store."""
from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from curriculum_api.container import get_asset_store
from curriculum_api.persistence.interfaces.asset_store import AssetUploadError
from curriculum_api.persistence.storage.supabase_asset_store import SupabaseAssetStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])

MAX_FILES = 10


def _require_configured(store: SupabaseAssetStore) -> None:
    if not store.configured:
        raise HTTPException(status_code=500, detail="Asset storage not configured")


def _store(store: SupabaseAssetStore, upload: UploadFile, folder: Optional[str]) -> dict:
    data = upload.file.read()
    asset = store.upload(data, filename=upload.filename, content_type=upload.content_type, folder=folder)
    return {"url": asset.url, "public_id": asset.public_id}


@router.post("/image")
def upload_image(
    file: Optional[UploadFile] = File(None),
    folder: Optional[str] = Form(None),
    store: SupabaseAssetStore = Depends(get_asset_store),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    _require_configured(store)
    try:
        return _store(store, file, folder)
    except AssetUploadError as e:
        raise HTTPException(status_code=500, detail=f"Upload failed: {e}")


@router.post("/images")
def upload_images(
    files: Optional[List[UploadFile]] = File(None),
    folder: Optional[str] = Form(None),
    store: SupabaseAssetStore = Depends(get_asset_store),
):
    if not files:
        raise HTTPException(status_code=400, detail="No files provided")
    if len(files) > MAX_FILES:
        raise HTTPException(status_code=400, detail=f"At most {MAX_FILES} files per request")
    _require_configured(store)
    try:
        return {"images": [_store(store, f, folder) for f in files]}
    except AssetUploadError as e:
        raise HTTPException(status_code=500, detail=f"Upload failed: {e}")
