from fastapi import APIRouter, Depends

from studio.api.deps import get_current_user
from studio.schemas.auth import AuthUser

router = APIRouter()


@router.get("/me", response_model=AuthUser)
async def read_current_user(current_user: AuthUser = Depends(get_current_user)):
    """Return the authenticated caller"""
    return current_user
