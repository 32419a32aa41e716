from typing import Annotated, List, Optional
from datetime import datetime

from pydantic import Field, field_validator

from studio.common.common_message import CommonMessage
from studio.common.constants import FolderConfig, RegexPatterns
from studio.schemas.base import CamelModel

FolderId = Annotated[str, Field(pattern=RegexPatterns.UUID, description="Folder UUID")]


class FolderCreate(CamelModel):
    """Schema for creating a new folder"""
    name: str = Field(..., min_length=1, max_length=FolderConfig.MAX_NAME_LENGTH, description="Folder name")
    parent_id: Optional[FolderId] = Field(None, description="Parent folder ID (null for root level)")
    color: Optional[str] = Field(None, pattern=RegexPatterns.HEX_COLOR, description="Hex color code")
    icon: Optional[str] = Field(None, max_length=FolderConfig.MAX_ICON_LENGTH, description="Icon identifier")


class FolderUpdate(CamelModel):
    """Schema for updating a folder (all fields optional for partial updates)"""
    name: Optional[str] = Field(None, min_length=1, max_length=FolderConfig.MAX_NAME_LENGTH)
    parent_id: Optional[FolderId] = Field(None, description="New parent folder ID (null moves to root)")
    color: Optional[str] = Field(None, pattern=RegexPatterns.HEX_COLOR)
    icon: Optional[str] = Field(None, max_length=FolderConfig.MAX_ICON_LENGTH)

    @field_validator("name", "color", "icon")
    @classmethod
    def reject_explicit_null(cls, value, info):
        # Only runs for supplied values; omitted fields keep the None default
        if value is None:
            raise ValueError(CommonMessage.FOLDER_FIELD_NOT_NULL.format(field=info.field_name))
        return value


class Folder(CamelModel):
    """Schema for folder response"""
    id: str
    name: str
    parent_id: Optional[str] = None
    color: str = FolderConfig.DEFAULT_COLOR
    icon: str = FolderConfig.DEFAULT_ICON
    created_at: datetime
    updated_at: datetime
    image_count: int = Field(default=0, description="Number of images directly in the folder")


class FolderTree(Folder):
    """Folder response with nested subfolders"""
    children: List["FolderTree"] = Field(default_factory=list)


class FolderTreeResponse(CamelModel):
    folders: List[FolderTree]
    root_image_count: int = Field(..., description="Number of images without a folder")


class DeleteFolderResponse(CamelModel):
    success: bool = True
