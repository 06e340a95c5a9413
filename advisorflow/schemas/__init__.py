"""Pydantic schemas for request/response validation."""

from .request import RequestCreate, RequestUpdate, RequestResponse, RequestListItem, StatusCounts
from .version import VersionCreate, VersionResponse, EditorDraft
from .review import SubmitRequest, DecisionRequest, ScheduleRequest, ReviewResponse
from .generation import (
    LengthClass, GenerationMode, GenerationAction, RewriteMode,
    GenerationPayload, GeneratedContent,
    GenerateRequest, ExtendRequest, SelectionSpec, RewriteRequest, EditResponse,
)

__all__ = [
    "RequestCreate", "RequestUpdate", "RequestResponse", "RequestListItem", "StatusCounts",
    "VersionCreate", "VersionResponse", "EditorDraft",
    "SubmitRequest", "DecisionRequest", "ScheduleRequest", "ReviewResponse",
    "LengthClass", "GenerationMode", "GenerationAction", "RewriteMode",
    "GenerationPayload", "GeneratedContent",
    "GenerateRequest", "ExtendRequest", "SelectionSpec", "RewriteRequest", "EditResponse",
]
