from studio.common.constants import FolderConfig
from studio.models.base_import import (
    Base, Column, String, DateTime, ForeignKey, relationship, utcnow, new_uuid,
)


class Folder(Base):
    __tablename__ = "folders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    parent_id = Column(String(36), ForeignKey("folders.id"), nullable=True, index=True)  # null = root level
    name = Column(String(FolderConfig.MAX_NAME_LENGTH), nullable=False)
    color = Column(String(7), default=FolderConfig.DEFAULT_COLOR)  # Hex color code, e.g., #6366f1
    icon = Column(String(FolderConfig.MAX_ICON_LENGTH), default=FolderConfig.DEFAULT_ICON)

    # Metadata
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="folders")
    images = relationship("Image", back_populates="folder")

    def __repr__(self):
        return f"<Folder(id='{self.id}', name='{self.name}', user_id='{self.user_id}')>"
