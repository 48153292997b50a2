import logging
import uuid
from collections.abc import Callable, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from visioncrafter.aspect import Dimensions, resolve_dimensions
from visioncrafter.config import Settings
from visioncrafter.errors import ConfigurationError, InputError, ProviderUnavailable
from visioncrafter.providers import (
    FalProvider,
    ImageProvider,
    OpenAIImageProvider,
    ProviderResult,
    RenderParameters,
    random_seed,
)

logger = logging.getLogger(__name__)

MIN_PROMPT_LENGTH = 5
DEFAULT_ASPECT_RATIO = "16:9"
MISSING_CREDENTIALS_MESSAGE = (
    "Add a FAL_KEY or OPENAI_API_KEY environment variable to enable image generation."
)


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    prompt: str = Field(..., max_length=2000)
    negative_prompt: str | None = Field(default=None, alias="negativePrompt", max_length=2000)
    aspect_ratio: str | None = Field(default=DEFAULT_ASPECT_RATIO, alias="aspectRatio")
    guidance_scale: float = Field(default=7, ge=1, le=20, alias="guidanceScale")
    steps: int = Field(default=40, ge=20, le=80)
    style_strength: float = Field(default=0.3, ge=0, le=1, alias="styleStrength")

    @field_validator("prompt")
    @classmethod
    def _require_detailed_prompt(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_PROMPT_LENGTH:
            raise PydanticCustomError(
                "prompt_too_short",
                "Prompt needs a bit more detail to guide the model.",
            )
        return value

    @field_validator("negative_prompt")
    @classmethod
    def _blank_negative_prompt_is_absent(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class GenerationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    image_url: str = Field(alias="imageUrl")
    width: int
    height: int
    prompt: str


def _first_error_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    if error["type"] == "prompt_too_short":
        return error["msg"]
    if error["type"] == "json_invalid":
        return "Request body must be valid JSON."

    field = ".".join(str(part) for part in error["loc"])
    return f"{field}: {error['msg']}" if field else error["msg"]


def parse_request(body: bytes | str) -> GenerationRequest:
    try:
        return GenerationRequest.model_validate_json(body)
    except ValidationError as exc:
        raise InputError(_first_error_message(exc)) from exc


def _new_id() -> str:
    return str(uuid.uuid4())


class GenerationService:
    """Resolves dimensions and runs the provider chain for one request at a time.

    Providers are tried in order. A provider without a credential is skipped;
    a provider that fails at runtime ends the request. Fallback only covers
    missing configuration.
    """

    def __init__(
        self,
        providers: Sequence[ImageProvider],
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self.providers = list(providers)
        self._id_factory = id_factory

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        seed_source: Callable[[], int] = random_seed,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GenerationService":
        return cls(
            [
                FalProvider(
                    settings.fal_key,
                    seed_source=seed_source,
                    timeout=settings.provider_timeout,
                    transport=transport,
                ),
                OpenAIImageProvider(
                    settings.openai_api_key,
                    timeout=settings.provider_timeout,
                    transport=transport,
                ),
            ]
        )

    @property
    def configured(self) -> bool:
        return any(provider.configured for provider in self.providers)

    async def _run_providers(self, params: RenderParameters) -> ProviderResult:
        for provider in self.providers:
            try:
                return await provider.generate(params)
            except ProviderUnavailable:
                logger.info(f"Provider '{provider.name}' not configured, trying next")
        raise ConfigurationError("No generation provider available.")

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        dimensions: Dimensions = resolve_dimensions(request.aspect_ratio or DEFAULT_ASPECT_RATIO)

        if not self.configured:
            raise ConfigurationError(MISSING_CREDENTIALS_MESSAGE)

        params = RenderParameters(
            prompt=request.prompt,
            negative_prompt=request.negative_prompt,
            width=dimensions.width,
            height=dimensions.height,
            guidance_scale=request.guidance_scale,
            steps=request.steps,
            style_strength=request.style_strength,
        )
        result = await self._run_providers(params)
        logger.info(f"Image served by '{result.provider}' at {dimensions.width}x{dimensions.height}")

        return GenerationResponse(
            id=self._id_factory(),
            image_url=result.image_url,
            width=dimensions.width,
            height=dimensions.height,
            prompt=request.prompt,
        )
