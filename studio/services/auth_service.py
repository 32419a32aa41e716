import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studio.common.common_message import CommonMessage
from studio.common.exceptions import Unauthorized
from studio.config import Settings
from studio.models import User
from studio.schemas.auth import AuthUser

logger = logging.getLogger(__name__)


class AuthProvider:
    """
    Resolves the caller from a session token issued by the identity provider.

    The token is read from ``Authorization: Bearer <token>`` first and from
    the session cookie second. It must be a JWT signed with the shared secret
    whose ``sub`` claim is the user id.
    """

    def __init__(self, secret_key: str, algorithm: str, cookie_name: str):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.cookie_name = cookie_name

    def token_from_request(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("authorization")
        if auth_header and auth_header.lower().startswith("bearer "):
            return auth_header.split(" ", 1)[1]
        return request.cookies.get(self.cookie_name)

    def require_auth(self, request: Request) -> AuthUser:
        token = self.token_from_request(request)
        if not token:
            raise Unauthorized(CommonMessage.UNAUTHORIZED)
        return self.verify_token(token)

    def verify_token(self, token: str) -> AuthUser:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired session token")
            raise Unauthorized(CommonMessage.UNAUTHORIZED)
        except JWTError as e:
            logger.warning("Rejected invalid session token: %s", e)
            raise Unauthorized(CommonMessage.UNAUTHORIZED)

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            raise Unauthorized(CommonMessage.UNAUTHORIZED)

        return AuthUser(
            id=str(user_id),
            email=email,
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
        )

    def create_session_token(self, user: AuthUser, expires_delta: Optional[timedelta] = None) -> str:
        """Issue a token in the provider's format (local development and tests)"""
        expires_at = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
        to_encode = {
            "exp": expires_at,
            "sub": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
        }
        return jwt.encode(to_encode, self.secret_key, self.algorithm)


def ensure_user_exists(db: Session, auth_user: AuthUser) -> User:
    """Insert the caller into the users table on first sight"""
    user = db.query(User).filter(User.id == auth_user.id).first()
    if user:
        return user

    try:
        user = User(
            id=auth_user.id,
            email=auth_user.email,
            first_name=auth_user.first_name,
            last_name=auth_user.last_name,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # A concurrent request inserted the same user first
        db.rollback()
        user = db.query(User).filter(User.id == auth_user.id).first()
        if user is None:
            raise
        return user
    except Exception as e:
        db.rollback()
        logger.error("Error syncing user %s: %s", auth_user.id, str(e), exc_info=True)
        raise

    logger.info("Synced new user %s", auth_user.id)
    return user


def build_auth_provider(settings: Settings) -> AuthProvider:
    return AuthProvider(
        secret_key=settings.JWT_SECRET_KEY,
        algorithm=settings.ALGORITHM,
        cookie_name=settings.AUTH_COOKIE_NAME,
    )
