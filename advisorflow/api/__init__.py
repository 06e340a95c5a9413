"""API routes."""

from .requests import router as requests_router
from .versions import router as versions_router
from .workflow import router as workflow_router
from .editor import router as editor_router

__all__ = [
    "requests_router",
    "versions_router",
    "workflow_router",
    "editor_router",
]
