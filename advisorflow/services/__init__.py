"""Business logic services."""

from .version_service import VersionService
from .request_service import RequestService
from .workflow_service import WorkflowService
from .generation_service import GenerationService
from .rewrite_service import RewriteService

__all__ = [
    "VersionService",
    "RequestService",
    "WorkflowService",
    "GenerationService",
    "RewriteService",
]
