"""Integration tests for ImageService: listing, URL refresh, generation and edits."""

import base64
from datetime import datetime, timedelta, timezone

import pytest

from studio.common.exceptions import AppException, NotFound, ProviderUnavailable, ValidationError
from studio.models import Image
from studio.services.image_service import ImageService

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


class UpstreamError(Exception):
    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message


@pytest.fixture
def service() -> ImageService:
    return ImageService(url_expiry_seconds=3600)


class TestListImages:

    def test_filters_by_folder(self, service, db_session, seed, blob_store):
        folder = seed.folder("Trips")
        in_folder = seed.image(folder=folder)
        at_root = seed.image()
        seed.image(user_id="user-2")

        everything = service.list_images(db_session, blob_store, "user-1")
        root_only = service.list_images(db_session, blob_store, "user-1", "root")
        folder_only = service.list_images(db_session, blob_store, "user-1", folder.id)

        assert {image.id for image in everything} == {in_folder.id, at_root.id}
        assert [image.id for image in root_only] == [at_root.id]
        assert [image.id for image in folder_only] == [in_folder.id]

    def test_newest_first(self, service, db_session, seed, blob_store):
        older = seed.image()
        newer = seed.image()

        images = service.list_images(db_session, blob_store, "user-1")

        assert [image.id for image in images] == [newer.id, older.id]

    def test_caps_at_one_hundred(self, service, db_session, seed, blob_store):
        for _ in range(105):
            seed.image()

        assert len(service.list_images(db_session, blob_store, "user-1")) == 100

    def test_refreshes_missing_and_expired_urls(self, service, db_session, seed, blob_store):
        now = datetime.now(timezone.utc)
        missing = seed.image()
        expired = seed.image(cached_url="https://old.example/x", cached_url_expiry=now - timedelta(minutes=5))
        fresh = seed.image(cached_url="https://fresh.example/y", cached_url_expiry=now + timedelta(hours=2))

        images = {image.id: image for image in service.list_images(db_session, blob_store, "user-1")}

        assert images[fresh.id].url == "https://fresh.example/y"
        assert images[missing.id].url.startswith("https://blobs.test/")
        assert images[expired.id].url.startswith("https://blobs.test/")
        assert sorted(blob_store.presigned) == sorted([missing.storage_key, expired.storage_key])

        db_session.expire_all()
        stored = db_session.get(Image, expired.id)
        assert stored.cached_url == images[expired.id].url
        assert stored.cached_url_expiry is not None

    def test_refreshes_thumbnail_url(self, service, db_session, seed, blob_store):
        later = datetime.now(timezone.utc) + timedelta(hours=2)
        image = seed.image(
            cached_url="https://fresh.example/y",
            cached_url_expiry=later,
            thumbnail_storage_key="users/user-1/thumb.png",
        )

        listed = service.list_images(db_session, blob_store, "user-1")[0]

        assert listed.url == "https://fresh.example/y"
        assert listed.thumbnail_url.startswith("https://blobs.test/users/user-1/thumb.png")
        assert blob_store.presigned == [image.thumbnail_storage_key]


class TestDownloadImage:

    def test_returns_stored_bytes(self, service, db_session, seed, blob_store):
        image = seed.image()
        blob_store.put(image.storage_key, PNG_BYTES, "image/png")

        assert service.download_image(db_session, blob_store, image.id, "user-1") == PNG_BYTES

    def test_other_users_image_is_not_found(self, service, db_session, seed, blob_store):
        image = seed.image(user_id="user-2")

        with pytest.raises(NotFound):
            service.download_image(db_session, blob_store, image.id, "user-1")

    def test_missing_blob_is_reported(self, service, db_session, seed, blob_store):
        image = seed.image()

        with pytest.raises(AppException):
            service.download_image(db_session, blob_store, image.id, "user-1")


class TestGenerateImage:

    def test_stores_bytes_and_row(self, service, db_session, seed, blob_store, registry):
        seed.user("user-1")

        image = service.generate_image(
            db_session, blob_store, registry,
            user_id="user-1",
            prompt="a lighthouse at dusk",
            size="1024x1440",
            model_id="fake-gen",
        )

        key = f"users/user-1/{image.id}.png"
        assert blob_store.objects[key] == PNG_BYTES
        assert blob_store.content_types[key] == "image/png"
        assert (image.width, image.height) == (1024, 1440)
        assert image.provider == "fake"
        assert image.url.startswith(f"https://blobs.test/{key}")

        stored = db_session.get(Image, image.id)
        assert stored.storage_key == key
        assert stored.prompt == "a lighthouse at dusk"

    def test_into_owned_folder(self, service, db_session, seed, blob_store, registry):
        folder = seed.folder("Lighthouses")

        image = service.generate_image(
            db_session, blob_store, registry, "user-1", "a lighthouse", "1024x1024", "fake-gen", folder.id
        )

        assert image.folder_id == folder.id

    def test_foreign_folder_is_not_found(self, service, db_session, seed, blob_store, registry, full_backend):
        theirs = seed.folder("Theirs", user_id="user-2")
        seed.user("user-1")

        with pytest.raises(NotFound):
            service.generate_image(
                db_session, blob_store, registry, "user-1", "a lighthouse", "1024x1024", "fake-gen", theirs.id
            )

        assert full_backend.calls == []
        assert blob_store.objects == {}

    def test_provider_failure_stores_nothing(self, service, db_session, seed, blob_store, registry, full_backend):
        seed.user("user-1")
        full_backend.error = UpstreamError(503, "backend down")

        with pytest.raises(ProviderUnavailable):
            service.generate_image(db_session, blob_store, registry, "user-1", "a lighthouse", "1024x1024", "fake-gen")

        assert blob_store.objects == {}
        assert db_session.query(Image).count() == 0


class TestEditImage:

    def test_prefixes_prompt(self, service, db_session, seed, blob_store, registry, full_backend):
        seed.user("user-1")
        source = base64.b64encode(PNG_BYTES).decode()

        image = service.edit_image(
            db_session, blob_store, registry,
            user_id="user-1",
            source_image=source,
            prompt="make it blue",
            model_id="fake-gen",
        )

        assert image.prompt == "[Variation] make it blue"
        assert full_backend.calls == [("variation", PNG_BYTES, "make it blue")]

    def test_invalid_base64_rejected(self, service, db_session, seed, blob_store, registry):
        seed.user("user-1")

        with pytest.raises(ValidationError):
            service.edit_image(db_session, blob_store, registry, "user-1", "@@not-base64@@", "blue", "fake-gen")

    def test_model_without_variations_rejected(self, service, db_session, seed, blob_store, registry):
        seed.user("user-1")
        source = base64.b64encode(PNG_BYTES).decode()

        with pytest.raises(ValidationError):
            service.edit_image(db_session, blob_store, registry, "user-1", source, "blue", "fake-gen-only")
