# Import all the models, so that Base has them before being
# imported by Alembic
from studio.models.base_import import Base  # noqa
from studio.models.user_model import User  # noqa
from studio.models.folder_model import Folder  # noqa
from studio.models.image_model import Image  # noqa
