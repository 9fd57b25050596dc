from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from cvfs.app import App
from cvfs.config import Config
from cvfs.errors import UserError
from cvfs.web.error_handlers import general_exception_handler, request_validation_error_handler, user_error_handler
from cvfs.web.openapi import set_custom_openapi
from cvfs.web.routers import auth_router, events_router, files_router, shares_router, users_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="CVFS API",
        lifespan=lifespan,
    )
    # Set eagerly so dependencies work even when the lifespan is not run
    app.state.app = app_instance
    app.state.config = config

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(users_router, prefix="/api")
    app.include_router(files_router, prefix="/api/cvfs")
    app.include_router(shares_router, prefix="/api/cvfs")
    app.include_router(events_router)

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
