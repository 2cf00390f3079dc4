"""
Aether - FastAPI Application

Healthcare assistant backend: symptom analysis, prescription reading,
radiology image reading and a health chat assistant, all backed by a
generative language model whose answers are parsed into structured
records.

IMPORTANT: This is NOT a diagnostic tool.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aether.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    UserContextMiddleware,
    register_exception_handlers,
    setup_rate_limiting,
)
from aether.api.routes import router
from aether.config import settings
from aether.utils.logger import configure_logging, get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    configure_logging(
        log_level=settings.log_level,
        json_format=not settings.debug
    )

    logger.info(
        "Starting Aether",
        version=settings.app_version,
        debug=settings.debug
    )

    if settings.enable_history:
        settings.history_path.mkdir(parents=True, exist_ok=True)

    logger.info("Application ready")

    yield

    logger.info("Shutting down Aether")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Aether - Healthcare Assistant

Sends symptoms, prescriptions and radiology images to a generative
language model and returns structured, storage-ready guidance.

### ⚠️ Important Disclaimer

**This is NOT a diagnostic tool.** Always consult a qualified healthcare
professional.

### API Endpoints

| Endpoint | Method | Description |
|----------|--------|-------------|
| `/diagnosis` | POST | Analyze symptoms |
| `/prescription` | POST | Analyze a prescription scan |
| `/radiology` | POST | Analyze an X-ray or ultrasound |
| `/assistant` | POST | Ask the health assistant |
| `/parse` | POST | Parse a raw model response |
| `/history/{domain}` | GET | List saved sessions |
| `/history/{domain}/{id}/report` | GET | Printable report |
| `/health` | GET | Health check |
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.debug else None,
    )

    # Last added is outermost, user context must wrap request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(UserContextMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_rate_limiting(app)
    register_exception_handlers(app)

    app.include_router(router)

    return app


# Create app instance
app = create_app()


# Run with: uvicorn aether.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "aether.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
