"""Generator providers for the editor endpoints.

Built from settings once per process; tests override these dependencies with
scripted fakes.
"""

from functools import lru_cache
from typing import Optional

from ..core.config import settings
from ..services.generation_client import (
    ContentGenerator,
    GenerationConfig,
    LiteLLMImageGenerator,
    LiteLLMTextGenerator,
)


@lru_cache(maxsize=1)
def get_text_generator() -> ContentGenerator:
    return LiteLLMTextGenerator(GenerationConfig.from_settings(settings))


@lru_cache(maxsize=1)
def get_image_generator() -> Optional[ContentGenerator]:
    """None when no image model is configured."""
    config = GenerationConfig.from_settings(settings, image=True)
    if not config.enabled:
        return None
    return LiteLLMImageGenerator(config)
