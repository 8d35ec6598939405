# main.py
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.status import (
    HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR
)

from config import Settings, load_settings
from logging_setup import setup_logging
from routers import api, tasks
from storage import NotFoundError, PersistenceError, TaskStore, ValidationError

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[TaskStore] = None) -> FastAPI:
    """
    Builds the FastAPI application.

    The TaskStore is opened in the lifespan, once per process, unless a ready
    store is passed in. A store that fails to load aborts startup.
    """
    settings = settings or load_settings()

    # --- App Lifecycle (Lifespan) ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if store is not None:
            app.state.store = store
        else:
            try:
                app.state.store = TaskStore(settings.data_dir)
            except PersistenceError:
                logger.critical("Cannot load task store from %s, refusing to start", settings.data_dir)
                raise
        logger.info("Task store ready at %s", app.state.store.data_path)

        yield

        logger.info("Application shutting down")

    # --- FastAPI App Initialization ---
    app = FastAPI(
        title="Task Tracker",
        description="Create, list, toggle and delete short text tasks.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # --- Error Mapping ---
    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        # Malformed JSON and wrong body shapes are client errors, reported as 400 rather than 422.
        errors = exc.errors()
        message = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"detail": message})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        logger.error("%s %s failed to persist", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "failed to save tasks"})

    # --- Request Logging ---
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    # --- Include API Routers ---
    app.include_router(tasks.router)
    app.include_router(api.router)  # must stay last among /api routers

    # --- Mount Static Files ---
    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.warning("Static directory %s not found, serving the API only", settings.static_dir)

    return app


def run(settings: Settings) -> None:
    setup_logging(settings.log_level)
    logger.info("Task app running on http://%s:%d", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


# --- Main Entry Point ---
if __name__ == "__main__":
    run(load_settings())
