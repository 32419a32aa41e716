from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from studio.api.deps import get_blob_store, get_current_user, get_db, get_model_registry
from studio.common.common_message import CommonMessage
from studio.common.constants import ImageConfig, ImageSizes
from studio.common.exceptions import ValidationError
from studio.config import settings
from studio.schemas.auth import AuthUser
from studio.schemas.image import (
    EditImageRequest,
    GenerateImageRequest,
    Image,
    ImageListResponse,
    ImageModelInfo,
    ImageModelsResponse,
    ImageSizeInfo,
    MoveImagesRequest,
    MoveImagesResponse,
)
from studio.services.folder_service import folder_service
from studio.services.generation_service import ModelRegistry
from studio.services.image_service import image_service
from studio.services.storage_service import BlobStore

router = APIRouter()


def _default_model(registry: ModelRegistry) -> Optional[str]:
    generation_ids = [config.id for config in registry.generation_models]
    if settings.DEFAULT_IMAGE_MODEL in generation_ids:
        return settings.DEFAULT_IMAGE_MODEL
    return generation_ids[0] if generation_ids else None


@router.get("", response_model=ImageListResponse)
async def list_images(
    response: Response,
    folder_id: Optional[str] = Query(None, alias="folderId"),
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """
    List the newest images of the authenticated user (at most 100).

    - **folderId**: omit for all images, `root` for images outside any folder,
      or a folder ID for that folder's images
    """
    images = image_service.list_images(
        db=db,
        blob_store=blob_store,
        user_id=current_user.id,
        folder_filter=folder_id,
    )
    response.headers["Cache-Control"] = ImageConfig.LIST_CACHE_CONTROL
    return ImageListResponse(images=images)


@router.post("/move", response_model=MoveImagesResponse)
async def move_images(
    move_data: MoveImagesRequest,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Move images into a folder.

    - **imageIds**: 1 to 100 image IDs
    - **folderId**: Target folder ID, or null to move the images to the root

    Images that do not exist or belong to another user are skipped;
    **movedIds** lists the images that actually moved.
    """
    return folder_service.move_images_to_folder(
        db=db,
        user_id=current_user.id,
        image_ids=move_data.image_ids,
        folder_id=move_data.folder_id,
    )


@router.get("/models", response_model=ImageModelsResponse)
async def list_models(
    current_user: AuthUser = Depends(get_current_user),
    registry: ModelRegistry = Depends(get_model_registry),
):
    """List the available image models and output sizes."""
    return ImageModelsResponse(
        models=[
            ImageModelInfo(
                id=config.id,
                label=config.label,
                provider=config.provider,
                supports_generation=config.supports_generation,
                supports_variation=config.supports_variation,
            )
            for config in registry.models
        ],
        generation_models=[config.id for config in registry.generation_models],
        variation_models=[config.id for config in registry.variation_models],
        sizes=[ImageSizeInfo(**size) for size in ImageSizes.ALL],
        default_model=_default_model(registry),
    )


@router.post("/generate", response_model=Image)
async def generate_image(
    request_data: GenerateImageRequest,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Generate an image from a text prompt.

    - **prompt**: Text prompt (1-4000 characters)
    - **size**: `1024x1024`, `1024x1440` or `1440x1024`
    - **model**: Model ID (defaults to the configured model)
    - **folderId**: Folder to store the image in (optional)
    """
    model_id = request_data.model or _default_model(registry)
    if model_id is None:
        raise ValidationError(CommonMessage.NO_GENERATION_MODEL)

    return image_service.generate_image(
        db=db,
        blob_store=blob_store,
        registry=registry,
        user_id=current_user.id,
        prompt=request_data.prompt,
        size=request_data.size,
        model_id=model_id,
        folder_id=request_data.folder_id,
    )


@router.post("/edit", response_model=Image)
async def edit_image(
    request_data: EditImageRequest,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
    registry: ModelRegistry = Depends(get_model_registry),
):
    """
    Create a variation of an existing image.

    - **sourceImage**: Base64 encoded source image
    - **prompt**: Description of the variation
    - **model**: Model ID with variation support
    - **folderId**: Folder to store the result in (optional)
    """
    return image_service.edit_image(
        db=db,
        blob_store=blob_store,
        registry=registry,
        user_id=current_user.id,
        source_image=request_data.source_image,
        prompt=request_data.prompt,
        model_id=request_data.model,
        folder_id=request_data.folder_id,
    )


@router.get("/{image_id}/download")
async def download_image(
    image_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Download the stored PNG of an image as an attachment."""
    content = image_service.download_image(
        db=db,
        blob_store=blob_store,
        image_id=image_id,
        user_id=current_user.id,
    )
    return Response(
        content=content,
        media_type=ImageConfig.CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="image-{image_id}.png"'},
    )
