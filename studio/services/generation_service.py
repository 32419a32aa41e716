"""
Image generation backends and the model registry.

Every model is a backend object exposing ``generate`` and, when the model
supports it, ``generate_variation``. The registry resolves a model id to its
backend and enforces the advertised capabilities.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from google import genai
from google.genai import types

from studio.common.common_message import CommonMessage
from studio.common.constants import ImageSizes, Providers
from studio.common.exceptions import (
    AppException,
    NotFound,
    ProviderRateLimited,
    ProviderUnavailable,
    ValidationError,
)
from studio.config import Settings

logger = logging.getLogger(__name__)

VALID_SIZES = [size["value"] for size in ImageSizes.ALL]


@dataclass(frozen=True)
class ImageModelConfig:
    id: str
    label: str
    provider: str
    supports_generation: bool
    supports_variation: bool


@dataclass
class GenerateResult:
    image_bytes: bytes
    width: int
    height: int


class GenerationBackend(Protocol):
    config: ImageModelConfig

    def generate(self, prompt: str, size: str) -> GenerateResult: ...

    def generate_variation(self, source_image: bytes, prompt: str) -> GenerateResult: ...


def parse_size(size: str) -> Tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` size string"""
    if size not in VALID_SIZES:
        raise ValidationError(CommonMessage.INVALID_IMAGE_SIZE.format(size=size))
    width, height = size.split("x")
    return int(width), int(height)


def map_provider_error(exc: Exception) -> Exception:
    """
    Translate a provider API error carrying an HTTP status ``code`` into an
    application error. Exceptions without a status are returned unchanged.
    """
    if isinstance(exc, AppException):
        return exc

    status_code = getattr(exc, "code", None)
    if not isinstance(status_code, int):
        return exc

    message = getattr(exc, "message", None) or str(exc)
    lowered = message.lower()

    if status_code == 400:
        if "violence" in lowered:
            reason = "The generated image was flagged for violence. Please try a different prompt."
        elif "sexual" in lowered or "nsfw" in lowered:
            reason = "The generated image was flagged for inappropriate content. Please try a different prompt."
        else:
            reason = message or "Bad request to image generation API"
        return ValidationError(CommonMessage.CONTENT_REJECTED.format(reason=reason))
    if status_code == 404:
        return NotFound("Model not found: The selected model is not available. Please try a different model.")
    if status_code == 422:
        return ValidationError(f"Invalid parameters: {message}")
    if status_code == 429:
        return ProviderRateLimited(CommonMessage.PROVIDER_RATE_LIMITED)
    if status_code >= 500:
        return ProviderUnavailable(CommonMessage.PROVIDER_UNAVAILABLE)
    return exc


class GeminiImageBackend:
    """Gemini image models served through Vertex AI."""

    def __init__(self, client: genai.Client, config: ImageModelConfig):
        self.client = client
        self.config = config

    def generate(self, prompt: str, size: str) -> GenerateResult:
        width, height = parse_size(size)
        response = self.client.models.generate_content(
            model=self.config.id,
            contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
            config=self._content_config(),
        )
        return GenerateResult(image_bytes=self._extract_image(response), width=width, height=height)

    def generate_variation(self, source_image: bytes, prompt: str) -> GenerateResult:
        response = self.client.models.generate_content(
            model=self.config.id,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_bytes(data=source_image, mime_type="image/png"),
                        types.Part(text=prompt),
                    ],
                )
            ],
            config=self._content_config(),
        )
        return GenerateResult(image_bytes=self._extract_image(response), width=1024, height=1024)

    @staticmethod
    def _content_config() -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            temperature=1,
            top_p=0.95,
            max_output_tokens=8192,
        )

    @staticmethod
    def _extract_image(response) -> bytes:
        candidates = response.candidates or []
        if not candidates or not candidates[0].content or not candidates[0].content.parts:
            raise ProviderUnavailable("No response from Google Vertex AI")

        for part in candidates[0].content.parts:
            if part.inline_data and part.inline_data.data:
                return part.inline_data.data

        raise ProviderUnavailable("No image returned from Google Vertex AI")


GEMINI_MODELS = [
    # Listed first so it becomes the default
    ImageModelConfig(
        id="gemini-2.5-flash-image",
        label="Nano Banana",
        provider=Providers.GOOGLE_VERTEX,
        supports_generation=True,
        supports_variation=True,
    ),
    ImageModelConfig(
        id="gemini-3-pro-image-preview",
        label="Nano Banana Pro",
        provider=Providers.GOOGLE_VERTEX,
        supports_generation=True,
        supports_variation=True,
    ),
]


class ModelRegistry:
    """Resolves model ids to generation backends."""

    def __init__(self):
        self._backends: Dict[str, GenerationBackend] = {}

    def register(self, backend: GenerationBackend) -> None:
        self._backends[backend.config.id] = backend

    @property
    def models(self) -> List[ImageModelConfig]:
        return [backend.config for backend in self._backends.values()]

    @property
    def generation_models(self) -> List[ImageModelConfig]:
        return [config for config in self.models if config.supports_generation]

    @property
    def variation_models(self) -> List[ImageModelConfig]:
        return [config for config in self.models if config.supports_variation]

    def get_backend(self, model_id: str) -> Optional[GenerationBackend]:
        return self._backends.get(model_id)

    def get_config(self, model_id: str) -> Optional[ImageModelConfig]:
        backend = self.get_backend(model_id)
        return backend.config if backend else None

    def generate(self, prompt: str, size: str, model_id: str) -> GenerateResult:
        backend = self._require_backend(model_id)
        if not backend.config.supports_generation:
            raise ValidationError(CommonMessage.MODEL_NO_GENERATION.format(model=model_id))

        try:
            return backend.generate(prompt, size)
        except Exception as exc:
            mapped = map_provider_error(exc)
            if mapped is exc:
                raise
            raise mapped from exc

    def generate_variation(self, source_image: bytes, prompt: str, model_id: str) -> GenerateResult:
        backend = self._require_backend(model_id)
        if not backend.config.supports_variation or not hasattr(backend, "generate_variation"):
            raise ValidationError(CommonMessage.MODEL_NO_VARIATION.format(model=model_id))

        try:
            return backend.generate_variation(source_image, prompt)
        except Exception as exc:
            mapped = map_provider_error(exc)
            if mapped is exc:
                raise
            raise mapped from exc

    def _require_backend(self, model_id: str) -> GenerationBackend:
        backend = self.get_backend(model_id)
        if backend is None:
            raise ValidationError(CommonMessage.UNKNOWN_MODEL.format(model=model_id))
        return backend


def build_model_registry(settings: Settings) -> ModelRegistry:
    """Create the process-wide registry with every configured backend."""
    registry = ModelRegistry()

    if not settings.GOOGLE_CLOUD_PROJECT:
        logger.warning("GOOGLE_CLOUD_PROJECT not set. Gemini image models are disabled.")
        return registry

    client = genai.Client(
        vertexai=True,
        project=settings.GOOGLE_CLOUD_PROJECT,
        location=settings.GOOGLE_CLOUD_LOCATION,
    )
    for config in GEMINI_MODELS:
        registry.register(GeminiImageBackend(client, config))

    logger.info("Registered image models: %s", [config.id for config in registry.models])
    return registry
