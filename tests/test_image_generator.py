import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from garage_api.config import Settings
from garage_api.services.image_generator import (
    ImageGenerationError,
    VehicleImageGenerator,
    build_vehicle_prompt,
)


def _client_returning(*images):
    client = MagicMock()
    client.images.generate = AsyncMock(return_value=SimpleNamespace(data=list(images)))
    return client


class TestVehicleImageGenerator(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.settings = Settings(openai_api_key="sk-test", openai_image_model="dall-e-3",
                                 openai_image_size="1024x1024", image_provider_tag="openai-dalle")

    async def test_returns_first_image_url(self):
        client = _client_returning(SimpleNamespace(url="https://img.example.com/1.png"))
        generator = VehicleImageGenerator(self.settings, client=client)

        url = await generator.generate(make="Toyota", model="Corolla", year=2019, color="blue")

        self.assertEqual(url, "https://img.example.com/1.png")
        kwargs = client.images.generate.await_args.kwargs
        self.assertEqual(kwargs["model"], "dall-e-3")
        self.assertEqual(kwargs["size"], "1024x1024")
        self.assertEqual(kwargs["n"], 1)
        self.assertIn("blue 2019 Toyota Corolla", kwargs["prompt"])

    async def test_empty_response_is_an_error(self):
        generator = VehicleImageGenerator(self.settings, client=_client_returning())
        with self.assertRaises(ImageGenerationError):
            await generator.generate(make="Toyota", model="Corolla", year=2019, color="blue")

    async def test_provider_errors_propagate(self):
        client = MagicMock()
        client.images.generate = AsyncMock(side_effect=RuntimeError("You exceeded your current quota"))
        generator = VehicleImageGenerator(self.settings, client=client)
        with self.assertRaises(RuntimeError):
            await generator.generate(make="Toyota", model="Corolla", year=2019, color="blue")
        self.assertEqual(client.images.generate.await_count, 1)

    def test_provider_tag_comes_from_settings(self):
        self.assertEqual(VehicleImageGenerator(self.settings).provider_tag, "openai-dalle")

    def test_prompt_mentions_every_attribute(self):
        prompt = build_vehicle_prompt("Honda", "Civic", "2021", "silver")
        self.assertIn("silver 2021 Honda Civic", prompt)


if __name__ == "__main__":
    unittest.main()
