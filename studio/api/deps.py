from fastapi import Depends, Request
from sqlalchemy.orm import Session

from studio.common.common_message import CommonMessage
from studio.common.exceptions import ServiceUnavailable
from studio.db.session import get_db  # noqa
from studio.schemas.auth import AuthUser
from studio.services.auth_service import AuthProvider, ensure_user_exists
from studio.services.generation_service import ModelRegistry
from studio.services.storage_service import BlobStore


def get_auth_provider(request: Request) -> AuthProvider:
    return request.app.state.auth_provider


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    auth_provider: AuthProvider = Depends(get_auth_provider),
) -> AuthUser:
    """Resolve the caller and make sure a matching users row exists"""
    auth_user = auth_provider.require_auth(request)
    ensure_user_exists(db, auth_user)
    return auth_user


def get_blob_store(request: Request) -> BlobStore:
    blob_store = getattr(request.app.state, "blob_store", None)
    if blob_store is None:
        raise ServiceUnavailable(CommonMessage.BLOB_STORE_NOT_CONFIGURED)
    return blob_store


def get_model_registry(request: Request) -> ModelRegistry:
    return request.app.state.model_registry
