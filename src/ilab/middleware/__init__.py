"""Middleware registration."""

from fastapi import FastAPI

from ilab.config import Settings
from ilab.middleware.cors import setup_cors
from ilab.middleware.error_handler import setup_error_handlers
from ilab.middleware.logging import setup_logging
from ilab.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order (last added = outermost);
    CORS is added last so it also wraps error responses.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
