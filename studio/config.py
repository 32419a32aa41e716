from typing import List, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # Load environment variables from .env file


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Database
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "YourUser"
    POSTGRES_PASSWORD: str = "YourPassword"
    POSTGRES_DB: str = "YourDatabase"
    DB_HOST: str = "db"  # Use 'db' for Docker, 'localhost' for local dev
    FOLDER_TREE_LOCKING: bool = False  # SELECT ... FOR UPDATE on folder mutations

    # Auth provider (tokens are issued externally, we only verify them)
    JWT_SECRET_KEY: str = "change-me"  # should be kept secret
    ALGORITHM: str = "HS256"
    AUTH_COOKIE_NAME: str = "studio-session"

    # Blob store
    GCS_BUCKET_NAME: Optional[str] = None
    IMAGE_URL_EXPIRY_SECONDS: int = 23 * 60 * 60  # 23 hours, below the 24h signing limit

    # Generation backends
    GOOGLE_CLOUD_PROJECT: Optional[str] = None
    GOOGLE_CLOUD_LOCATION: str = "global"
    DEFAULT_IMAGE_MODEL: str = "gemini-2.5-flash-image"

    @property
    def database_url(self) -> str:
        """Build DATABASE_URL from individual components if not provided directly."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return (
            f"postgresql://{self.POSTGRES_USER}:{encoded_password}"
            f"@{self.DB_HOST}:5432/{self.POSTGRES_DB}"
        )


settings = Settings()
