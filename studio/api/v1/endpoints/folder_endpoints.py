from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studio.api.deps import get_db, get_current_user
from studio.schemas.auth import AuthUser
from studio.schemas.folder import (
    DeleteFolderResponse,
    Folder,
    FolderCreate,
    FolderTreeResponse,
    FolderUpdate,
)
from studio.services.folder_service import folder_service

router = APIRouter()


@router.get("", response_model=FolderTreeResponse)
async def list_folders(
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    List all folders for the authenticated user as a tree.

    Every node carries its direct image count; siblings are ordered by name.
    **rootImageCount** counts images that are not in any folder.
    """
    return folder_service.get_folder_tree(db=db, user_id=current_user.id)


@router.post("", response_model=Folder, status_code=status.HTTP_201_CREATED)
async def create_folder(
    folder_data: FolderCreate,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Create a new folder for organizing images.

    - **name**: Folder name (required, 1-100 characters)
    - **parentId**: Parent folder ID (omit or null for root level)
    - **color**: Hex color code (e.g., #6366f1)
    - **icon**: Icon identifier
    """
    return folder_service.create_folder(
        db=db,
        user_id=current_user.id,
        folder_data=folder_data,
    )


@router.get("/{folder_id}", response_model=Folder)
async def get_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Get a specific folder by ID.

    Returns folder details with image count.
    """
    return folder_service.get_folder(db=db, folder_id=folder_id, user_id=current_user.id)


@router.patch("/{folder_id}", response_model=Folder)
async def update_folder(
    folder_id: str,
    update_data: FolderUpdate,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Update folder information.

    Only provided fields will be updated (partial updates supported).
    Send **parentId: null** to move the folder to the root level.
    """
    update_dict = update_data.model_dump(exclude_unset=True)

    return folder_service.update_folder(
        db=db,
        folder_id=folder_id,
        user_id=current_user.id,
        update_data=update_dict,
    )


@router.delete("/{folder_id}", response_model=DeleteFolderResponse)
async def delete_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """
    Delete a folder.

    Images and subfolders inside it move up to the folder's parent
    (or the root level). Nothing else is deleted.
    """
    folder_service.delete_folder(db=db, folder_id=folder_id, user_id=current_user.id)
    return DeleteFolderResponse(success=True)
