import pytest

from visioncrafter.errors import ProviderUnavailable
from visioncrafter.generation import GenerationService
from visioncrafter.providers import ProviderResult, RenderParameters


class FakeProvider:
    """Stands in for a network provider and records every call."""

    def __init__(self, name, *, configured=True, image_url=None, error=None):
        self.name = name
        self.label = name.title()
        self.credential_env = f"{name.upper()}_KEY"
        self.configured = configured
        self.image_url = image_url or f"https://cdn.example.com/{name}.png"
        self.error = error
        self.calls = []

    async def generate(self, params):
        self.calls.append(params)
        if not self.configured:
            raise ProviderUnavailable(self.name)
        if self.error is not None:
            raise self.error
        return ProviderResult(image_url=self.image_url, provider=self.name)


@pytest.fixture
def render_params():
    return RenderParameters(
        prompt="A lighthouse on a basalt cliff at dusk",
        negative_prompt="blurry, watermark",
        width=4096,
        height=2304,
        guidance_scale=7.0,
        steps=40,
        style_strength=0.3,
    )


@pytest.fixture
def make_service():
    def factory(primary=None, secondary=None, request_id="req-1"):
        primary = primary or FakeProvider("primary")
        secondary = secondary or FakeProvider("secondary")
        return GenerationService([primary, secondary], id_factory=lambda: request_id)

    return factory
