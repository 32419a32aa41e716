from typing import Optional

from studio.schemas.base import CamelModel


class AuthUser(CamelModel):
    """Caller identity supplied by the auth provider"""
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
