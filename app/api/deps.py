"""Shared FastAPI dependencies for app-scoped collaborators."""

from fastapi import Request

from app.core.config import Settings
from app.services.storage import CloudinaryStorage


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_storage(request: Request) -> CloudinaryStorage:
    """Object storage client owned by the running app."""
    return request.app.state.storage
