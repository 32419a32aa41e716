import base64
import binascii
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from studio.common.common_message import CommonMessage
from studio.common.constants import ImageConfig
from studio.common.exceptions import AppException, NotFound, ValidationError
from studio.config import settings
from studio.models import Folder, Image
from studio.schemas.image import Image as ImageSchema
from studio.services.generation_service import GenerateResult, ModelRegistry
from studio.services.storage_service import BlobStore, generate_image_key

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps from the database are stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_url_stale(url: Optional[str], expiry: Optional[datetime], now: datetime) -> bool:
    return not url or expiry is None or _as_utc(expiry) < now


class ImageService:

    def __init__(self, url_expiry_seconds: int = settings.IMAGE_URL_EXPIRY_SECONDS):
        self.url_expiry_seconds = url_expiry_seconds

    def list_images(
        self,
        db: Session,
        blob_store: BlobStore,
        user_id: str,
        folder_filter: Optional[str] = None,
    ) -> List[ImageSchema]:
        """
        List the user's newest images, optionally filtered by folder.

        ``folder_filter`` is None for every image, ``"root"`` for images
        without a folder, or a folder id. Stale presigned URLs are refreshed
        and written back before returning.
        """
        query = db.query(Image).filter(Image.user_id == user_id)
        if folder_filter == ImageConfig.ROOT_FOLDER_FILTER:
            query = query.filter(Image.folder_id.is_(None))
        elif folder_filter:
            query = query.filter(Image.folder_id == folder_filter)

        images = query.order_by(Image.created_at.desc()).limit(ImageConfig.MAX_LIST_SIZE).all()

        try:
            refreshed = self._refresh_cached_urls(blob_store, images)
            if refreshed:
                db.commit()
                logger.info("Refreshed presigned URLs for %d images", refreshed)
        except Exception as e:
            db.rollback()
            logger.error("Failed to update cached URLs: %s", str(e), exc_info=True)
            raise

        return [self._to_schema(image) for image in images]

    def get_image(self, db: Session, image_id: str, user_id: str) -> Image:
        image = db.query(Image).filter(
            Image.id == image_id,
            Image.user_id == user_id,
        ).first()
        if not image:
            raise NotFound(CommonMessage.IMAGE_NOT_FOUND)
        return image

    def download_image(self, db: Session, blob_store: BlobStore, image_id: str, user_id: str) -> bytes:
        image = self.get_image(db, image_id, user_id)
        try:
            return blob_store.get(image.storage_key)
        except Exception as e:
            logger.error("Error downloading image %s: %s", image_id, str(e), exc_info=True)
            raise AppException(CommonMessage.IMAGE_DOWNLOAD_FAILED) from e

    def generate_image(
        self,
        db: Session,
        blob_store: BlobStore,
        registry: ModelRegistry,
        user_id: str,
        prompt: str,
        size: str,
        model_id: str,
        folder_id: Optional[str] = None,
    ) -> ImageSchema:
        """Generate an image with the selected model and store it"""
        self._verify_target_folder(db, user_id, folder_id)

        result = registry.generate(prompt, size, model_id)
        return self.save_generated_image(
            db, blob_store, registry,
            user_id=user_id,
            prompt=prompt,
            result=result,
            model_id=model_id,
            folder_id=folder_id,
        )

    def edit_image(
        self,
        db: Session,
        blob_store: BlobStore,
        registry: ModelRegistry,
        user_id: str,
        source_image: str,
        prompt: str,
        model_id: str,
        folder_id: Optional[str] = None,
    ) -> ImageSchema:
        """Generate a variation of a base64 encoded source image and store it"""
        try:
            source_bytes = base64.b64decode(source_image, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(CommonMessage.INVALID_SOURCE_IMAGE)

        self._verify_target_folder(db, user_id, folder_id)

        result = registry.generate_variation(source_bytes, prompt, model_id)
        return self.save_generated_image(
            db, blob_store, registry,
            user_id=user_id,
            prompt=f"{ImageConfig.VARIATION_PROMPT_PREFIX}{prompt}",
            result=result,
            model_id=model_id,
            folder_id=folder_id,
        )

    def save_generated_image(
        self,
        db: Session,
        blob_store: BlobStore,
        registry: ModelRegistry,
        user_id: str,
        prompt: str,
        result: GenerateResult,
        model_id: str,
        folder_id: Optional[str] = None,
    ) -> ImageSchema:
        """Upload generated bytes to the blob store and record the image row"""
        image_id = str(uuid.uuid4())
        storage_key = generate_image_key(user_id, image_id)
        blob_store.put(storage_key, result.image_bytes, ImageConfig.CONTENT_TYPE)

        url = blob_store.presigned_get_url(storage_key, self.url_expiry_seconds)
        model_config = registry.get_config(model_id)

        try:
            image = Image(
                id=image_id,
                user_id=user_id,
                folder_id=folder_id,
                prompt=prompt,
                model=model_id,
                provider=model_config.provider if model_config else "unknown",
                width=result.width,
                height=result.height,
                storage_key=storage_key,
                cached_url=url,
                cached_url_expiry=self._url_expiry(),
            )
            db.add(image)
            db.commit()
            db.refresh(image)
        except Exception as e:
            db.rollback()
            logger.error("Error saving generated image: %s", str(e), exc_info=True)
            raise

        logger.info("Stored image %s for user %s with model %s", image_id, user_id, model_id)
        return self._to_schema(image)

    def _verify_target_folder(self, db: Session, user_id: str, folder_id: Optional[str]) -> None:
        if folder_id is None:
            return
        folder = db.query(Folder).filter(
            Folder.id == folder_id,
            Folder.user_id == user_id,
        ).first()
        if not folder:
            raise NotFound(CommonMessage.TARGET_FOLDER_NOT_FOUND)

    def _refresh_cached_urls(self, blob_store: BlobStore, images: List[Image]) -> int:
        now = datetime.now(timezone.utc)
        refreshed = 0

        for image in images:
            if _is_url_stale(image.cached_url, image.cached_url_expiry, now):
                image.cached_url = blob_store.presigned_get_url(image.storage_key, self.url_expiry_seconds)
                image.cached_url_expiry = self._url_expiry()
                refreshed += 1

            if image.thumbnail_storage_key and _is_url_stale(
                image.cached_thumbnail_url, image.cached_thumbnail_url_expiry, now
            ):
                image.cached_thumbnail_url = blob_store.presigned_get_url(
                    image.thumbnail_storage_key, self.url_expiry_seconds
                )
                image.cached_thumbnail_url_expiry = self._url_expiry()
                refreshed += 1

        return refreshed

    def _url_expiry(self) -> datetime:
        return datetime.now(timezone.utc) + timedelta(seconds=self.url_expiry_seconds)

    @staticmethod
    def _to_schema(image: Image) -> ImageSchema:
        return ImageSchema(
            id=image.id,
            prompt=image.prompt,
            width=image.width,
            height=image.height,
            model=image.model,
            provider=image.provider,
            url=image.cached_url,
            thumbnail_url=image.cached_thumbnail_url,
            folder_id=image.folder_id,
            created_at=image.created_at,
        )


# Create service instance
image_service = ImageService()
