from .base_import import Base
from .user_model import User
from .folder_model import Folder
from .image_model import Image

__all__ = [
    "Base",
    "User",
    "Folder",
    "Image",
]
