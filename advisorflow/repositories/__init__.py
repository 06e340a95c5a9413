"""Data access repositories."""

from .base import BaseRepository
from .request_repository import RequestRepository
from .version_repository import VersionRepository, compute_content_hash
from .review_repository import ReviewRepository

__all__ = [
    "BaseRepository",
    "RequestRepository",
    "VersionRepository",
    "ReviewRepository",
    "compute_content_hash",
]
