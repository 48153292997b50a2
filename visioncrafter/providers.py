import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from visioncrafter.config import DEFAULT_TIMEOUT_SECONDS
from visioncrafter.errors import ProviderError, ProviderUnavailable
from visioncrafter.extract import extract_image_url

logger = logging.getLogger(__name__)

FAL_ENDPOINT = "https://fal.run/fal-ai/flux-pro-1.1"
OPENAI_IMAGES_ENDPOINT = "https://api.openai.com/v1/images/generations"

SEED_LIMIT = 1_000_000_000
WIDE_RATIO = 1.7


@dataclass(frozen=True)
class RenderParameters:
    prompt: str
    width: int
    height: int
    guidance_scale: float
    steps: int
    style_strength: float
    negative_prompt: str | None = None


@dataclass(frozen=True)
class ProviderResult:
    image_url: str
    provider: str


class ImageProvider(Protocol):
    name: str
    label: str
    credential_env: str

    @property
    def configured(self) -> bool: ...

    async def generate(self, params: RenderParameters) -> ProviderResult: ...


def random_seed() -> int:
    return random.randrange(SEED_LIMIT)


def _to_data_url(image_b64: str, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{image_b64}"


def _error_detail(response: httpx.Response, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None

    error_obj = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error_obj, dict) and error_obj.get("message"):
        return str(error_obj["message"])

    return response.text.strip() or fallback


class _HttpProvider:
    name = "provider"
    label = "Provider"
    credential_env = ""

    def __init__(
        self,
        api_key: str | None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _ensure_api_key(self) -> str:
        if not self._api_key:
            raise ProviderUnavailable(self.name)
        return self._api_key

    async def _post_json(self, url: str, headers: dict[str, str], body: dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"{self.label} request failed: {exc}") from exc

        if response.status_code >= 400:
            detail = _error_detail(response, f"{self.label} generation failed")
            raise ProviderError(self.name, detail)

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(self.name, f"{self.label} returned a non-JSON response") from exc


class FalProvider(_HttpProvider):
    """Flux Pro on fal.run. Accepts arbitrary width/height."""

    name = "primary"
    label = "FAL"
    credential_env = "FAL_KEY"

    def __init__(
        self,
        api_key: str | None,
        *,
        seed_source: Callable[[], int] = random_seed,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key, timeout=timeout, transport=transport)
        self._seed_source = seed_source

    def build_payload(self, params: RenderParameters) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "prompt": params.prompt,
            "guidance_scale": params.guidance_scale,
            "num_inference_steps": params.steps,
            "style_strength": params.style_strength,
            "image_size": {
                "width": params.width,
                "height": params.height,
            },
            "safety_tolerance": "auto",
            "output_format": "png",
            "enable_safety_checker": True,
            "prompt_strength": 0.85,
            "seed": self._seed_source(),
        }
        if params.negative_prompt:
            payload["negative_prompt"] = params.negative_prompt
        return payload

    async def generate(self, params: RenderParameters) -> ProviderResult:
        api_key = self._ensure_api_key()
        payload = self.build_payload(params)
        logger.info(
            f"Requesting {params.width}x{params.height} image from FAL (seed {payload['seed']})"
        )

        body = await self._post_json(
            FAL_ENDPOINT,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Authorization": f"Key {api_key}",
            },
            body=payload,
        )

        image_url = extract_image_url(body)
        if not image_url:
            raise ProviderError(self.name, "Image URL missing from FAL response")

        return ProviderResult(image_url=image_url, provider=self.name)


def map_openai_size(width: int, height: int) -> str:
    if width == height:
        return "1024x1024"
    if width > height:
        return "1792x1024" if width / max(height, 1) >= WIDE_RATIO else "1536x1024"
    return "1024x1792" if height / max(width, 1) >= WIDE_RATIO else "1024x1536"


def merge_negative_prompt(prompt: str, negative_prompt: str | None) -> str:
    if not negative_prompt:
        return prompt
    return f"{prompt}\nNegative prompt: {negative_prompt}"


class OpenAIImageProvider(_HttpProvider):
    """OpenAI Images API. Only serves a fixed set of sizes and has no negative prompt."""

    name = "secondary"
    label = "OpenAI"
    credential_env = "OPENAI_API_KEY"
    model = "gpt-image-1"

    def build_payload(self, params: RenderParameters) -> dict[str, Any]:
        return {
            "model": self.model,
            "prompt": merge_negative_prompt(params.prompt, params.negative_prompt),
            "size": map_openai_size(params.width, params.height),
            "quality": "high",
            "n": 1,
        }

    async def generate(self, params: RenderParameters) -> ProviderResult:
        api_key = self._ensure_api_key()
        payload = self.build_payload(params)
        logger.info(f"Requesting {payload['size']} image from OpenAI ({self.model})")

        body = await self._post_json(
            OPENAI_IMAGES_ENDPOINT,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            body=payload,
        )

        data = body.get("data") if isinstance(body, dict) else None
        first = data[0] if isinstance(data, list) and data else {}
        if not isinstance(first, dict):
            first = {}
        image_url = first.get("url")
        image_b64 = first.get("b64_json")
        if not (isinstance(image_url, str) and image_url):
            image_url = None
            if isinstance(image_b64, str) and image_b64:
                image_url = _to_data_url(image_b64)
        if not image_url:
            raise ProviderError(self.name, "Image URL missing from OpenAI response")

        return ProviderResult(image_url=image_url, provider=self.name)
