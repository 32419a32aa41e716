from fastapi import APIRouter

from studio.api.v1.endpoints import (
    auth_endpoints,
    folder_endpoints,
    image_endpoints,
)

api_router = APIRouter()

api_router.include_router(auth_endpoints.router, prefix="/auth", tags=["authentication"])
api_router.include_router(folder_endpoints.router, prefix="/folders", tags=["folders"])
api_router.include_router(image_endpoints.router, prefix="/images", tags=["images"])
