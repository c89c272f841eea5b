# api/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from api.routes import books, favorites, users
from core.clients.open_library import OpenLibraryClient
from core.config import get_settings
from core.errors import (
    AlreadyExists, ExternalSourceError, NotFound, UniqueConstraintViolation, ValidationError
)
from core.sa.database import get_database
from core.services.recommendation_service import build_recommender
from core.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)

    # Initialize database on startup
    await get_database().init_db()

    app.state.open_library = OpenLibraryClient()
    app.state.recommender = build_recommender(settings, app.state.open_library)
    logger.info(f"Using {app.state.recommender.name} recommendations")
    try:
        yield
    finally:
        await app.state.open_library.close()
        await get_database().dispose()


app = FastAPI(title="Reading Tracker", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(AlreadyExists)
async def already_exists_handler(request: Request, exc: AlreadyExists):
    return _error(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(UniqueConstraintViolation)
async def unique_violation_handler(request: Request, exc: UniqueConstraintViolation):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": "Resource already exists"})


@app.exception_handler(ExternalSourceError)
async def external_source_error_handler(request: Request, exc: ExternalSourceError):
    logger.error(f"Open Library failure for {exc.external_id}: {exc}")
    return _error(status.HTTP_502_BAD_GATEWAY, exc)


@app.get("/")
async def root():
    return {"message": "Reading Tracker API"}


app.include_router(users.router)
app.include_router(books.router)
app.include_router(favorites.router)


# Main execution
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["api", "core"]
    )
