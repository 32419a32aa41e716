import logging
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from studio.api.exception_handlers import register_exception_handlers
from studio.api.v1.router import api_router
from studio.config import settings
from studio.core.logging_config import configure_logging
from studio.services.auth_service import build_auth_provider
from studio.services.generation_service import build_model_registry
from studio.services.storage_service import build_blob_store

load_dotenv()  # Load environment variables from .env file
configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

app = FastAPI(title="Image Studio API", version=settings.APP_VERSION, docs_url="/docs")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method, request.url.path, response.status_code, process_time,
    )
    return response


# Include API routes
app.include_router(api_router)


@app.on_event("startup")
async def startup_event():
    """Create database tables and the external collaborators on startup"""
    from studio.db.session import engine
    from studio.models import Base

    max_retries = 5
    retry_delay = 2

    for attempt in range(max_retries):
        try:
            # Create database tables
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")
            break
        except Exception as e:
            logger.warning(f"Database connection attempt {attempt + 1} failed: {e}")
            if attempt < max_retries - 1:
                time.sleep(retry_delay)
            else:
                logger.error("Failed to connect to database after all retries")
                raise

    app.state.auth_provider = build_auth_provider(settings)
    app.state.blob_store = build_blob_store(settings)
    app.state.model_registry = build_model_registry(settings)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


def main() -> None:
    """Launch the uvicorn server (registered as the ``studio`` console script)."""
    import uvicorn

    uvicorn.run(
        "studio.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
