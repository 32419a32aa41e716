from studio.models.base_import import Base, Column, String, DateTime, relationship, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)  # Auth provider user ID
    email = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    folders = relationship("Folder", back_populates="user")
    images = relationship("Image", back_populates="user")

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"
