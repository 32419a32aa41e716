import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studio.common.common_message import CommonMessage
from studio.common.constants import FolderConfig
from studio.common.exceptions import AppException, NotFound, ValidationError
from studio.config import settings
from studio.models import Folder, Image
from studio.models.base_import import utcnow
from studio.schemas.folder import (
    Folder as FolderSchema,
    FolderCreate,
    FolderTreeResponse,
)
from studio.schemas.image import MoveImagesResponse
from studio.services.folder_tree import build_folder_tree, index_folders, is_descendant

logger = logging.getLogger(__name__)


class FolderService:

    def __init__(self, lock_rows: bool = False):
        # When set, folder reads inside mutations take row locks (PostgreSQL only)
        self.lock_rows = lock_rows

    def create_folder(self, db: Session, user_id: str, folder_data: FolderCreate) -> FolderSchema:
        """Create a new folder for a user, optionally under a parent folder"""
        if folder_data.parent_id is not None:
            self._get_owned_folder(
                db, folder_data.parent_id, user_id,
                message=CommonMessage.PARENT_FOLDER_NOT_FOUND,
                lock=True,
            )

        try:
            folder = Folder(
                user_id=user_id,
                parent_id=folder_data.parent_id,
                name=folder_data.name,
                color=folder_data.color or FolderConfig.DEFAULT_COLOR,
                icon=folder_data.icon or FolderConfig.DEFAULT_ICON,
            )

            db.add(folder)
            db.commit()
            db.refresh(folder)
        except IntegrityError:
            # Parent deleted between the ownership check and the insert
            db.rollback()
            logger.warning("Parent folder %s vanished while creating a folder", folder_data.parent_id)
            raise NotFound(CommonMessage.PARENT_FOLDER_NOT_FOUND)
        except Exception as e:
            db.rollback()
            logger.error("Error creating folder: %s", str(e), exc_info=True)
            raise

        logger.info("Folder %s created for user %s (parent=%s)", folder.id, user_id, folder.parent_id)
        return self._to_schema(folder, image_count=0)

    def get_folder(self, db: Session, folder_id: str, user_id: str) -> FolderSchema:
        """Get a specific folder by ID"""
        folder = self._get_owned_folder(db, folder_id, user_id)

        image_count = db.query(func.count(Image.id)).filter(
            Image.folder_id == folder_id,
            Image.user_id == user_id,
        ).scalar()

        return self._to_schema(folder, image_count=image_count or 0)

    def list_folders(self, db: Session, user_id: str) -> List[Folder]:
        """Flat list of every folder owned by the user"""
        return self._load_user_folders(db, user_id, lock=False)

    def get_folder_tree(self, db: Session, user_id: str) -> FolderTreeResponse:
        """List all folders for the user as a tree with per-folder image counts"""
        folders = self.list_folders(db, user_id)
        image_counts, root_image_count = self._count_images(db, user_id)

        return FolderTreeResponse(
            folders=build_folder_tree(folders, image_counts, None),
            root_image_count=root_image_count,
        )

    def update_folder(self, db: Session, folder_id: str, user_id: str, update_data: dict) -> FolderSchema:
        """
        Update folder information.

        Only keys present in ``update_data`` change. ``parent_id`` set to None
        moves the folder to the root; any other parent must belong to the user
        and must not sit below the folder being moved.
        """
        new_parent_id = update_data.get("parent_id")
        if new_parent_id is not None and new_parent_id == folder_id:
            logger.warning("Rejected self-parent update for folder %s", folder_id)
            raise ValidationError(CommonMessage.FOLDER_SELF_PARENT)

        try:
            folder = self._get_owned_folder(db, folder_id, user_id, lock=True)

            if new_parent_id is not None:
                # Validate against the rows this transaction will commit over
                folders_by_id = index_folders(self._load_user_folders(db, user_id))
                if new_parent_id not in folders_by_id:
                    raise NotFound(CommonMessage.PARENT_FOLDER_NOT_FOUND)
                if is_descendant(folders_by_id, folder_id, new_parent_id):
                    logger.warning(
                        "Rejected cyclic move of folder %s under %s", folder_id, new_parent_id
                    )
                    raise ValidationError(CommonMessage.FOLDER_CYCLE)

            for field, value in update_data.items():
                if hasattr(folder, field):
                    setattr(folder, field, value)
            folder.updated_at = utcnow()

            db.commit()
            db.refresh(folder)
        except AppException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error("Error updating folder: %s", str(e), exc_info=True)
            raise

        logger.info("Folder %s updated: %s", folder_id, sorted(update_data))
        return self.get_folder(db, folder_id, user_id)

    def delete_folder(self, db: Session, folder_id: str, user_id: str) -> None:
        """
        Delete a folder, promoting its contents one level.

        Images and subfolders move to the deleted folder's parent (or the
        root). Nothing is deleted recursively. All writes share one commit.
        """
        try:
            if self.lock_rows:
                self._load_user_folders(db, user_id)
            folder = self._get_owned_folder(db, folder_id, user_id)
            new_parent_id = folder.parent_id

            moved_images = db.query(Image).filter(
                Image.folder_id == folder_id
            ).update({"folder_id": new_parent_id}, synchronize_session=False)

            moved_folders = db.query(Folder).filter(
                Folder.parent_id == folder_id,
                Folder.user_id == user_id,
            ).update({"parent_id": new_parent_id, "updated_at": utcnow()}, synchronize_session=False)

            db.delete(folder)
            db.commit()
        except AppException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error("Error deleting folder: %s", str(e), exc_info=True)
            raise

        logger.info(
            "Folder %s deleted; %d images and %d subfolders moved to %s",
            folder_id, moved_images, moved_folders, new_parent_id or "root",
        )

    def move_images_to_folder(
        self,
        db: Session,
        user_id: str,
        image_ids: List[str],
        folder_id: Optional[str],
    ) -> MoveImagesResponse:
        """
        Move images to a folder (or to the root when folder_id is None).

        Ids that do not exist or belong to someone else are skipped; the
        response lists exactly the ids that moved, in request order.
        """
        requested_ids = list(dict.fromkeys(image_ids))

        try:
            if folder_id is not None:
                self._get_owned_folder(
                    db, folder_id, user_id,
                    message=CommonMessage.TARGET_FOLDER_NOT_FOUND,
                    lock=True,
                )

            owned_ids = {
                image_id for (image_id,) in db.query(Image.id).filter(
                    Image.id.in_(requested_ids),
                    Image.user_id == user_id,
                )
            }
            moved_ids = [image_id for image_id in requested_ids if image_id in owned_ids]

            if moved_ids:
                db.query(Image).filter(
                    Image.id.in_(moved_ids),
                    Image.user_id == user_id,
                ).update({"folder_id": folder_id}, synchronize_session=False)
            db.commit()
        except AppException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error("Error moving images: %s", str(e), exc_info=True)
            raise

        skipped = len(requested_ids) - len(moved_ids)
        if skipped:
            logger.info("Skipped %d image ids not owned by user %s", skipped, user_id)
        return MoveImagesResponse(success=True, moved_count=len(moved_ids), moved_ids=moved_ids)

    def _get_owned_folder(
        self,
        db: Session,
        folder_id: str,
        user_id: str,
        message: str = CommonMessage.FOLDER_NOT_FOUND,
        lock: bool = False,
    ) -> Folder:
        query = db.query(Folder).filter(
            Folder.id == folder_id,
            Folder.user_id == user_id,
        )
        if lock and self.lock_rows:
            query = query.with_for_update()

        folder = query.first()
        if not folder:
            raise NotFound(message)
        return folder

    def _load_user_folders(self, db: Session, user_id: str, lock: bool = True) -> List[Folder]:
        query = db.query(Folder).filter(Folder.user_id == user_id)
        if lock and self.lock_rows:
            query = query.with_for_update()
        return query.all()

    @staticmethod
    def _count_images(db: Session, user_id: str) -> Tuple[Dict[str, int], int]:
        rows = db.query(Image.folder_id, func.count(Image.id)).filter(
            Image.user_id == user_id,
            Image.folder_id.isnot(None),
        ).group_by(Image.folder_id).all()

        root_image_count = db.query(func.count(Image.id)).filter(
            Image.user_id == user_id,
            Image.folder_id.is_(None),
        ).scalar()

        return {folder_id: count for folder_id, count in rows}, root_image_count or 0

    @staticmethod
    def _to_schema(folder: Folder, image_count: int = 0) -> FolderSchema:
        return FolderSchema(
            id=folder.id,
            name=folder.name,
            parent_id=folder.parent_id,
            color=folder.color or FolderConfig.DEFAULT_COLOR,
            icon=folder.icon or FolderConfig.DEFAULT_ICON,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
            image_count=image_count,
        )


# Create service instance
folder_service = FolderService(lock_rows=settings.FOLDER_TREE_LOCKING)
