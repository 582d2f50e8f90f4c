"""
Client for the third-party image generation API.
"""
from typing import Optional

import structlog
from openai import AsyncOpenAI

from garage_api.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class ImageGenerationError(Exception):
    """Raised when the provider returns no usable image."""


def build_vehicle_prompt(make: str, model: str, year, color: str) -> str:
    return (
        f"A professional studio photograph of a {color} {year} {make} {model}, "
        "three-quarter front view, clean neutral background, soft lighting, "
        "high detail, no text, no watermark"
    )


class VehicleImageGenerator:
    """
    Generates a picture of a vehicle and returns its URL.

    The call is awaited to completion: no timeout and no retries.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key, max_retries=0, timeout=None)
        return self._client

    @property
    def provider_tag(self) -> str:
        return self.settings.image_provider_tag

    async def generate(self, make: str, model: str, year, color: str) -> str:
        prompt = build_vehicle_prompt(make, model, year, color)
        logger.info("image_generation_requested", make=make, model=model, year=year, color=color)
        response = await self.client.images.generate(
            model=self.settings.openai_image_model,
            prompt=prompt,
            size=self.settings.openai_image_size,
            n=1,
        )
        if not response.data or not response.data[0].url:
            raise ImageGenerationError("Image provider returned no image")
        return response.data[0].url


def get_image_generator() -> VehicleImageGenerator:
    """FastAPI dependency; overridden in tests."""
    return VehicleImageGenerator()
