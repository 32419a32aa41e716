from studio.models.base_import import (
    Base, Column, Integer, String, DateTime, Text, ForeignKey, relationship, utcnow, new_uuid,
)


class Image(Base):
    __tablename__ = "images"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    folder_id = Column(String(36), ForeignKey("folders.id"), nullable=True, index=True)  # null = root/uncategorized

    # Generation metadata
    prompt = Column(Text, nullable=False)
    model = Column(String, nullable=False)
    provider = Column(String, nullable=False)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)

    # Blob store keys
    storage_key = Column(String, nullable=False)
    thumbnail_storage_key = Column(String, nullable=True)

    # Presigned URL cache
    cached_url = Column(Text, nullable=True)
    cached_url_expiry = Column(DateTime, nullable=True)
    cached_thumbnail_url = Column(Text, nullable=True)
    cached_thumbnail_url_expiry = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="images")
    folder = relationship("Folder", back_populates="images")

    def __repr__(self):
        return f"<Image(id='{self.id}', user_id='{self.user_id}', folder_id={self.folder_id!r})>"
