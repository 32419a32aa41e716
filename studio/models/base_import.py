# Shared imports for the model modules
import uuid  # noqa
from datetime import datetime, timezone  # noqa

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey  # noqa
from sqlalchemy.orm import declarative_base, relationship  # noqa

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())
