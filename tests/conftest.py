"""Shared pytest fixtures for the image studio tests."""

import os

# Settings are read at import time, so the test environment must be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GCS_BUCKET_NAME"] = ""
os.environ["GOOGLE_CLOUD_PROJECT"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["FOLDER_TREE_LOCKING"] = "false"

import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Dict, Generator, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from studio.db.session import SessionLocal, engine  # noqa: E402
from studio.main import app  # noqa: E402
from studio.models import Base, Folder, Image, User  # noqa: E402
from studio.schemas.auth import AuthUser  # noqa: E402
from studio.services.auth_service import AuthProvider  # noqa: E402
from studio.services.generation_service import (  # noqa: E402
    GenerateResult,
    ImageModelConfig,
    ModelRegistry,
    parse_size,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


class FakeBlobStore:
    """In-memory BlobStore that records every presign request."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.presigned: List[str] = []

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self.objects[key] = data
        self.content_types[key] = content_type

    def get(self, key: str) -> bytes:
        return self.objects[key]

    def presigned_get_url(self, key: str, ttl_seconds: int) -> str:
        self.presigned.append(key)
        return f"https://blobs.test/{key}?ttl={ttl_seconds}&n={len(self.presigned)}"


class FakeBackend:
    """Generation backend returning fixed bytes, or raising ``error`` when set."""

    def __init__(self, config: ImageModelConfig):
        self.config = config
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def generate(self, prompt: str, size: str) -> GenerateResult:
        self.calls.append(("generate", prompt, size))
        if self.error:
            raise self.error
        width, height = parse_size(size)
        return GenerateResult(image_bytes=PNG_BYTES, width=width, height=height)

    def generate_variation(self, source_image: bytes, prompt: str) -> GenerateResult:
        self.calls.append(("variation", source_image, prompt))
        if self.error:
            raise self.error
        return GenerateResult(image_bytes=PNG_BYTES, width=1024, height=1024)


class Seeder:
    """Inserts users, folders and images straight into the database."""

    def __init__(self, db: Session):
        self.db = db
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def user(self, user_id: str = "user-1", email: Optional[str] = None) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            user = User(id=user_id, email=email or f"{user_id}@example.com")
            self.db.add(user)
            self.db.commit()
        return user

    def folder(self, name: str, user_id: str = "user-1", parent: Optional[Folder] = None, **fields) -> Folder:
        self.user(user_id)
        folder = Folder(
            id=str(uuid.uuid4()),
            user_id=user_id,
            parent_id=parent.id if parent is not None else None,
            name=name,
            **fields,
        )
        self.db.add(folder)
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def image(
        self,
        user_id: str = "user-1",
        folder: Optional[Folder] = None,
        prompt: str = "a red fox",
        **fields,
    ) -> Image:
        self.user(user_id)
        image_id = str(uuid.uuid4())
        values = dict(
            id=image_id,
            user_id=user_id,
            folder_id=folder.id if folder is not None else None,
            prompt=prompt,
            model="fake-gen",
            provider="fake",
            width=1024,
            height=1024,
            storage_key=f"users/{user_id}/{image_id}.png",
            created_at=self._tick(),
        )
        values.update(fields)
        image = Image(**values)
        self.db.add(image)
        self.db.commit()
        self.db.refresh(image)
        return image


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory schema per test.

    Yields:
        Session bound to the shared SQLite connection
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def seed(db_session: Session) -> Seeder:
    return Seeder(db_session)


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def full_backend() -> FakeBackend:
    return FakeBackend(ImageModelConfig(
        id="fake-gen",
        label="Fake Generator",
        provider="fake",
        supports_generation=True,
        supports_variation=True,
    ))


@pytest.fixture
def generation_only_backend() -> FakeBackend:
    return FakeBackend(ImageModelConfig(
        id="fake-gen-only",
        label="Fake Generation Only",
        provider="fake",
        supports_generation=True,
        supports_variation=False,
    ))


@pytest.fixture
def registry(full_backend: FakeBackend, generation_only_backend: FakeBackend) -> ModelRegistry:
    model_registry = ModelRegistry()
    model_registry.register(full_backend)
    model_registry.register(generation_only_backend)
    return model_registry


@pytest.fixture
def auth_provider() -> AuthProvider:
    return AuthProvider(secret_key="test-secret", algorithm="HS256", cookie_name="studio-session")


@pytest.fixture
def auth_headers(auth_provider: AuthProvider):
    """Build ``Authorization`` headers for any user id.

    Returns:
        Callable taking a user id and returning a headers dict
    """
    def _headers(user_id: str = "user-1") -> Dict[str, str]:
        token = auth_provider.create_session_token(
            AuthUser(id=user_id, email=f"{user_id}@example.com", first_name="Test", last_name="User")
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def client(
    db_session: Session,
    blob_store: FakeBlobStore,
    registry: ModelRegistry,
    auth_provider: AuthProvider,
) -> Generator[TestClient, None, None]:
    """TestClient with in-memory collaborators installed after startup."""
    with TestClient(app) as test_client:
        app.state.auth_provider = auth_provider
        app.state.blob_store = blob_store
        app.state.model_registry = registry
        yield test_client
