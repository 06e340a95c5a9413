"""Schemas for the text/image generation boundary and the editor actions."""

from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional

from .version import VersionResponse


class LengthClass(str, Enum):
    SHORT = "Short"
    MEDIUM = "Medium"
    LONG = "Long"


class GenerationMode(str, Enum):
    """Which capabilities a generate call composes."""
    TEXT = "text"
    IMAGE = "image"
    BOTH = "both"


class GenerationAction(str, Enum):
    GENERATE = "generate"
    EXTEND = "extend"
    REWRITE = "rewrite"


class RewriteMode(str, Enum):
    REWRITE = "rewrite"
    SHORTEN = "shorten"
    EXPAND = "expand"
    FIX_COMPLIANCE = "fix_compliance"


class GenerationPayload(BaseModel):
    """Input to the generation capability."""
    topic: str
    content_type: str
    instructions: str = ""
    length_class: LengthClass = LengthClass.MEDIUM
    action: GenerationAction = GenerationAction.GENERATE
    current_content: Optional[str] = None
    rewrite_mode: Optional[RewriteMode] = None
    compliance_note: Optional[str] = None


class GeneratedContent(BaseModel):
    """Output of the generation capability."""
    title: Optional[str] = None
    body: str
    disclaimers: Optional[str] = None


class GenerateRequest(BaseModel):
    mode: GenerationMode = GenerationMode.TEXT
    length_class: LengthClass = LengthClass.MEDIUM


class ExtendRequest(BaseModel):
    length_class: LengthClass = LengthClass.MEDIUM


class SelectionSpec(BaseModel):
    """A selection over the rendered (tag-free) text of a document body.

    Either ``text`` alone (must occur exactly once, or ``occurrence`` picks
    one), or ``start``/``end`` offsets, or both (offsets must then cover
    exactly ``text``).
    """
    text: Optional[str] = None
    start: Optional[int] = Field(default=None, ge=0)
    end: Optional[int] = Field(default=None, ge=0)
    occurrence: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_shape(self):
        if self.text is None and (self.start is None or self.end is None):
            raise ValueError("Provide selection text or both start and end offsets")
        if (self.start is None) != (self.end is None):
            raise ValueError("start and end must be given together")
        return self


class RewriteRequest(BaseModel):
    selection: SelectionSpec
    mode: RewriteMode = RewriteMode.REWRITE
    compliance_note: Optional[str] = None


class EditResponse(BaseModel):
    """Result of a rewrite or extend: the stored version plus the marked-up overlay."""
    version: VersionResponse
    highlighted_body: str
    highlight_seconds: float
