"""Supabase asset store tests (HTTP calls are stubbed with monkeypatch)."""
import pytest
import requests

from curriculum_api.persistence.interfaces.asset_store import AssetUploadError
from curriculum_api.persistence.storage import supabase_asset_store
from curriculum_api.persistence.storage.supabase_asset_store import SupabaseAssetStore


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


@pytest.fixture
def store():
    return SupabaseAssetStore("https://example.supabase.co/", "key-123", "images", "hoshiyaar")


def test_upload_posts_bytes_and_returns_public_url(store, monkeypatch):
    calls = []

    def fake_post(url, headers=None, data=None, timeout=None):
        calls.append({"url": url, "headers": headers, "data": data})
        return FakeResponse()

    monkeypatch.setattr(supabase_asset_store.requests, "post", fake_post)
    asset = store.upload(b"png-bytes", filename="Leaf.PNG", content_type="image/png", folder="lessons")

    assert asset.public_id.startswith("lessons/")
    assert asset.public_id.endswith(".png")
    assert asset.url == f"https://example.supabase.co/storage/v1/object/public/images/{asset.public_id}"
    assert calls[0]["url"] == f"https://example.supabase.co/storage/v1/object/images/{asset.public_id}"
    assert calls[0]["headers"]["Authorization"] == "Bearer key-123"
    assert calls[0]["headers"]["Content-Type"] == "image/png"
    assert calls[0]["data"] == b"png-bytes"


def test_upload_uses_default_folder(store, monkeypatch):
    monkeypatch.setattr(supabase_asset_store.requests, "post", lambda *a, **k: FakeResponse())
    assert store.upload(b"x").public_id.startswith("hoshiyaar/")


def test_upload_failure_raises(store, monkeypatch):
    monkeypatch.setattr(supabase_asset_store.requests, "post", lambda *a, **k: FakeResponse(403))
    with pytest.raises(AssetUploadError):
        store.upload(b"x", filename="a.png")


def test_unconfigured_store_and_empty_file(store):
    with pytest.raises(AssetUploadError):
        SupabaseAssetStore("", "", "images", "hoshiyaar").upload(b"x")
    with pytest.raises(AssetUploadError):
        store.upload(b"")
