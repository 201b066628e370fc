"""Shared FastAPI dependencies for v1 API routers.

The services are built once by ``imageserver.main.create_app`` from the
startup settings and kept on ``app.state``; these callables hand them to
routes so a test can swap any of them through ``dependency_overrides``.
"""
from __future__ import annotations

from fastapi import Request

from imageserver.application.queries.stream_page_image import StreamPageImageHandler
from imageserver.config import Settings
from imageserver.domain.services.path_resolver import PathResolver


def get_settings(request: Request) -> Settings:
    """Provide the settings the application was started with."""
    return request.app.state.settings


def get_path_resolver(request: Request) -> PathResolver:
    """Provide the resolver bound to the served root."""
    return request.app.state.path_resolver


def get_stream_page_image_handler(request: Request) -> StreamPageImageHandler:
    """Provide the page image pipeline."""
    return request.app.state.stream_page_image_handler
