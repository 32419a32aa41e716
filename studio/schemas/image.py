from typing import Annotated, List, Literal, Optional
from datetime import datetime

from pydantic import Field

from studio.common.constants import ImageConfig, RegexPatterns
from studio.schemas.base import CamelModel

ImageId = Annotated[str, Field(pattern=RegexPatterns.UUID)]
FolderId = Annotated[str, Field(pattern=RegexPatterns.UUID)]
ImageSize = Literal["1024x1024", "1024x1440", "1440x1024"]


class Image(CamelModel):
    """Schema for image response"""
    id: str
    prompt: str
    width: int
    height: int
    model: str
    provider: str
    url: str
    thumbnail_url: Optional[str] = None
    folder_id: Optional[str] = None
    created_at: datetime


class ImageListResponse(CamelModel):
    images: List[Image]


class MoveImagesRequest(CamelModel):
    """Schema for moving images to a folder"""
    image_ids: List[ImageId] = Field(..., min_length=1, max_length=ImageConfig.MAX_MOVE_BATCH)
    folder_id: Optional[FolderId] = Field(..., description="Target folder ID (null moves to root)")


class MoveImagesResponse(CamelModel):
    success: bool = True
    moved_count: int
    moved_ids: List[str]


class GenerateImageRequest(CamelModel):
    prompt: str = Field(..., min_length=1, max_length=ImageConfig.MAX_PROMPT_LENGTH)
    size: ImageSize = "1024x1024"
    model: Optional[str] = Field(None, description="Model ID (defaults to the configured model)")
    folder_id: Optional[FolderId] = None


class EditImageRequest(CamelModel):
    source_image: str = Field(..., min_length=1, description="Base64 encoded source image")
    prompt: str = Field(..., min_length=1, max_length=ImageConfig.MAX_PROMPT_LENGTH)
    model: str
    folder_id: Optional[FolderId] = None


class ImageModelInfo(CamelModel):
    id: str
    label: str
    provider: str
    supports_generation: bool
    supports_variation: bool


class ImageSizeInfo(CamelModel):
    value: str
    label: str


class ImageModelsResponse(CamelModel):
    models: List[ImageModelInfo]
    generation_models: List[str]
    variation_models: List[str]
    sizes: List[ImageSizeInfo]
    default_model: Optional[str] = None
