"""Tests for the MinIO and Cloudinary image store backends."""

from unittest.mock import MagicMock

import cloudinary.uploader
import pytest

from core.config import settings
from services import image_store as image_store_module
from services import storage
from services.image_store import (
    CLOUDINARY_QUALITY_POLICY,
    CloudinaryImageStore,
    ImageStore,
    MinioImageStore,
    get_image_store,
    public_id_from_versioned_url,
)
from services.errors import ImageUploadFailed


@pytest.fixture(autouse=True)
def _reset_store_cache():
    get_image_store.cache_clear()
    yield
    get_image_store.cache_clear()


@pytest.fixture()
def public_minio(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(settings, "minio_public_url", "http://cdn.local:9000")
    monkeypatch.setattr(settings, "minio_bucket", "recetagram")
    return "http://cdn.local:9000/recetagram"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (
            "https://res.cloudinary.com/demo/image/upload/v1712345678/posts/abc123.jpg",
            "posts/abc123",
        ),
        ("https://res.cloudinary.com/demo/image/upload/v1/sample.png", "sample"),
        ("https://res.cloudinary.com/demo/image/upload/posts/abc123.jpg", None),
        ("/tmp/phpA1B2.tmp", None),
    ],
)
def test_public_id_from_versioned_url(url: str, expected: str | None):
    assert public_id_from_versioned_url(url) == expected


def test_minio_upload_stores_object_under_folder(public_minio: str):
    client = MagicMock()
    client.bucket_exists.return_value = True
    store = MinioImageStore(client=client)

    uploaded = store.upload(b"png-bytes", folder="posts", content_type="image/png")

    assert uploaded.public_id.startswith("posts/")
    assert uploaded.public_id.endswith(".png")
    assert uploaded.secure_url == f"{public_minio}/{uploaded.public_id}"
    client.put_object.assert_called_once()
    assert client.put_object.call_args.args[1] == uploaded.public_id
    assert client.put_object.call_args.kwargs["content_type"] == "image/png"


def test_minio_upload_failure_raises_image_upload_failed(public_minio: str):
    client = MagicMock()
    client.bucket_exists.return_value = True
    client.put_object.side_effect = ConnectionError("minio down")
    store = MinioImageStore(client=client)

    with pytest.raises(ImageUploadFailed) as exc_info:
        store.upload(b"jpeg-bytes", folder="posts", content_type="image/jpeg")

    assert isinstance(exc_info.value.cause, ConnectionError)
    assert exc_info.value.context["backend"] == "minio"


def test_minio_destroy_reports_outcome(public_minio: str):
    client = MagicMock()
    store = MinioImageStore(client=client)

    assert store.destroy("posts/abc.jpg") is True
    client.remove_object.assert_called_once_with("recetagram", "posts/abc.jpg")

    client.remove_object.side_effect = PermissionError("denied")
    assert store.destroy("posts/abc.jpg") is False


def test_minio_public_id_from_url(public_minio: str):
    store = MinioImageStore(client=MagicMock())

    assert store.public_id_from_url(f"{public_minio}/posts/abc.jpg") == "posts/abc.jpg"
    assert (
        store.public_id_from_url(f"{public_minio}/posts/abc.jpg?X-Amz-Expires=60")
        == "posts/abc.jpg"
    )
    assert store.public_id_from_url("https://elsewhere.example.com/posts/abc.jpg") is None
    assert store.public_id_from_url(f"{public_minio}/") is None


def test_minio_store_uses_cached_client(monkeypatch: pytest.MonkeyPatch):
    client = MagicMock()
    monkeypatch.setattr(storage, "get_minio_client", lambda: client)

    assert MinioImageStore().client is client


def test_cloudinary_upload_applies_folder_and_quality_policy(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def fake_upload(file, **options):
        calls.append((file.read(), options))
        return {
            "secure_url": "https://res.cloudinary.com/demo/image/upload/v1700000000/posts/xyz.jpg",
            "public_id": "posts/xyz",
        }

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    store = CloudinaryImageStore(configure=False)

    uploaded = store.upload(b"jpeg-bytes", folder="posts", content_type="image/jpeg")

    assert uploaded.public_id == "posts/xyz"
    assert uploaded.secure_url.endswith("/v1700000000/posts/xyz.jpg")
    assert calls == [
        (b"jpeg-bytes", {"folder": "posts", "transformation": [CLOUDINARY_QUALITY_POLICY]})
    ]


def test_cloudinary_upload_without_url_fails(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cloudinary.uploader, "upload", lambda file, **options: {})
    store = CloudinaryImageStore(configure=False)

    with pytest.raises(ImageUploadFailed):
        store.upload(b"jpeg-bytes", folder="posts", content_type="image/jpeg")


def test_cloudinary_upload_error_is_wrapped(monkeypatch: pytest.MonkeyPatch):
    def failing_upload(file, **options):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(cloudinary.uploader, "upload", failing_upload)
    store = CloudinaryImageStore(configure=False)

    with pytest.raises(ImageUploadFailed) as exc_info:
        store.upload(b"jpeg-bytes", folder="posts", content_type="image/jpeg")

    assert isinstance(exc_info.value.cause, RuntimeError)


@pytest.mark.parametrize(
    ("outcome", "expected"),
    [({"result": "ok"}, True), ({"result": "not found"}, True), ({"result": "error"}, False)],
)
def test_cloudinary_destroy_maps_result(
    monkeypatch: pytest.MonkeyPatch,
    outcome: dict[str, str],
    expected: bool,
):
    destroyed = []

    def fake_destroy(public_id):
        destroyed.append(public_id)
        return outcome

    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)
    store = CloudinaryImageStore(configure=False)

    assert store.destroy("posts/xyz") is expected
    assert destroyed == ["posts/xyz"]


def test_cloudinary_destroy_swallows_client_errors(monkeypatch: pytest.MonkeyPatch):
    def failing_destroy(public_id):
        raise RuntimeError("network")

    monkeypatch.setattr(cloudinary.uploader, "destroy", failing_destroy)

    assert CloudinaryImageStore(configure=False).destroy("posts/xyz") is False


def test_get_image_store_selects_backend(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "image_store_backend", "minio")
    minio_store = get_image_store()
    assert isinstance(minio_store, MinioImageStore)
    assert isinstance(minio_store, ImageStore)
    assert get_image_store() is minio_store

    get_image_store.cache_clear()
    configured = []
    monkeypatch.setattr(
        image_store_module.cloudinary,
        "config",
        lambda **options: configured.append(options),
    )
    monkeypatch.setattr(settings, "image_store_backend", "cloudinary")

    assert isinstance(get_image_store(), CloudinaryImageStore)
    assert configured and configured[0]["secure"] is True
