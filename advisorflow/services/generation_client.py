"""Text and image generation clients.

Services depend on the ``ContentGenerator`` protocol only: one awaitable
call taking a ``GenerationPayload`` and returning ``GeneratedContent``. The
LiteLLM implementations receive an explicit ``GenerationConfig`` at
construction and never read settings at call time. Any provider error, or
an empty result, becomes ``GenerationFailedError`` carrying the provider's
message unchanged.
"""

import html
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ..exceptions import GenerationFailedError
from ..schemas.generation import GeneratedContent, GenerationAction, GenerationPayload
from .content_utils import parse_generated_text, sanitize_output
from .prompts import build_image_prompt, build_messages

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
    async def generate(self, payload: GenerationPayload) -> GeneratedContent:
        ...


@dataclass(frozen=True)
class GenerationConfig:
    """Provider settings for one generator."""

    model: str
    api_key: str = ""
    api_base: str = ""
    timeout_seconds: float = 120.0
    max_tokens: int = 16_384
    temperature: float = 1.0
    disclaimer: str = ""

    @classmethod
    def from_settings(cls, settings, image: bool = False) -> "GenerationConfig":
        if image:
            return cls(
                model=settings.image_model,
                api_key=settings.image_api_key or settings.generation_api_key,
                api_base=settings.generation_api_base,
                timeout_seconds=settings.generation_timeout_seconds,
                disclaimer=settings.default_disclaimer,
            )
        return cls(
            model=settings.generation_model,
            api_key=settings.generation_api_key,
            api_base=settings.generation_api_base,
            timeout_seconds=settings.generation_timeout_seconds,
            max_tokens=settings.generation_max_tokens,
            temperature=settings.generation_temperature,
            disclaimer=settings.default_disclaimer,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.model)


def _provider_kwargs(config: GenerationConfig) -> dict:
    kwargs: dict = {"model": config.model, "timeout": config.timeout_seconds}
    if config.api_key:
        kwargs["api_key"] = config.api_key
    if config.api_base:
        kwargs["api_base"] = config.api_base
    return kwargs


class LiteLLMTextGenerator:
    """Text generation through ``litellm.acompletion``."""

    def __init__(self, config: GenerationConfig):
        self.config = config

    async def generate(self, payload: GenerationPayload) -> GeneratedContent:
        if not self.config.enabled:
            raise GenerationFailedError("Text generation is not configured")

        try:
            import litellm

            response = await litellm.acompletion(
                messages=build_messages(payload),
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                **_provider_kwargs(self.config),
            )
            raw = response.choices[0].message.content or ""
        except Exception as e:
            logger.warning(
                "Text generation failed",
                extra={"model": self.config.model, "action": payload.action.value},
            )
            raise GenerationFailedError(str(e), provider=self.config.model) from e

        text = sanitize_output(raw)
        if not text:
            raise GenerationFailedError("The model returned no content", provider=self.config.model)

        if payload.action == GenerationAction.REWRITE:
            return GeneratedContent(body=text)

        title, body = parse_generated_text(text, payload.topic)
        return GeneratedContent(title=title, body=body, disclaimers=self.config.disclaimer or None)


def _image_field(item, name: str) -> Optional[str]:
    value = getattr(item, name, None)
    if value is None and isinstance(item, dict):
        value = item.get(name)
    return value


class LiteLLMImageGenerator:
    """Image generation through ``litellm.aimage_generation``.

    The body is a single ``<figure>`` block holding the image.
    """

    def __init__(self, config: GenerationConfig):
        self.config = config

    async def generate(self, payload: GenerationPayload) -> GeneratedContent:
        if not self.config.enabled:
            raise GenerationFailedError("Image generation is not configured")

        try:
            import litellm

            response = await litellm.aimage_generation(
                prompt=build_image_prompt(payload),
                n=1,
                **_provider_kwargs(self.config),
            )
            item = response.data[0] if response.data else None
        except Exception as e:
            logger.warning("Image generation failed", extra={"model": self.config.model})
            raise GenerationFailedError(str(e), provider=self.config.model) from e

        url = _image_field(item, "url") if item is not None else None
        b64 = _image_field(item, "b64_json") if item is not None else None
        if url:
            src = url
        elif b64:
            src = f"data:image/png;base64,{b64}"
        else:
            raise GenerationFailedError("The model returned no image", provider=self.config.model)

        alt = html.escape(payload.topic, quote=True)
        body = f'<figure><img src="{html.escape(src, quote=True)}" alt="{alt}"/></figure>'
        return GeneratedContent(
            title=f"Visual Asset: {payload.topic}",
            body=body,
            disclaimers=self.config.disclaimer or None,
        )
