import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from flock.api import auth, feed, posts, users
from flock.config_secrets import CORS_ORIGINS, DATABASE_URL
from flock.core.db import Database
from flock.services.errors import (
    DuplicateAccountError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    DuplicateAccountError: status.HTTP_400_BAD_REQUEST,
}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status_code, content={"message": str(exc)})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": detail})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Internal server error"})


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application around one storage client"""
    db = database or Database(DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the storage client on startup and close it on shutdown"""
        await db.connect()
        logger.info("Flock API started")
        yield
        await db.disconnect()
        logger.info("Flock API stopped")

    app = FastAPI(
        title="Flock API",
        description="Follow users, post short updates and read a chronological feed",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Register API routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(posts.router)
    app.include_router(feed.router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Liveness check"""
        return "Server is running"

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


app = create_app()
