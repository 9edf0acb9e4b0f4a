"""Shared test fixtures."""

import io
import json
import logging
import time
from dataclasses import dataclass, field

import pytest
from PIL import Image

from carbcal.config import Settings
from carbcal.containers import AppContainer
from carbcal.domain.errors import InferenceError
from carbcal.services.inference import ChatCompletionClient, InferenceClient
from carbcal.services.logs import FoodLogStore, KeyValueStorage

ANALYSIS_PAYLOAD: dict[str, object] = {
    "dishName": "Oatmeal with banana",
    "ingredients": [
        {"name": "Rolled oats", "calories": 150, "carbs": 27, "protein": 5, "fats": 3},
        {"name": "Banana", "calories": 89.5, "carbs": 22.8, "protein": 1.1, "fats": 0.3},
        {"name": "Milk", "calories": 10.5, "carbs": 0.2, "protein": 6.9, "fats": 1.7},
    ],
    "total": {
        "calories": 250,
        "carbs": 50,
        "protein": 13,
        "fats": 5,
        "healthScore": 8,
    },
}


def completion_body(content: str | None) -> bytes:
    """Build a chat completion envelope around ``content``."""
    return json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 1700000000,
            "model": "gpt-4o-mini",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": content},
                }
            ],
        }
    ).encode()


def make_image(
    size: tuple[int, int] = (64, 48), mode: str = "RGB", fmt: str = "PNG"
) -> bytes:
    color: object = (200, 120, 40) if mode == "RGB" else (200, 120, 40, 128)
    image = Image.new(mode, size, color)  # type: ignore[arg-type]
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@dataclass
class FakeChatClient(ChatCompletionClient):
    """Fake chat client returning a fixed body or raising a fixed error."""

    body: bytes = field(
        default_factory=lambda: completion_body(json.dumps(ANALYSIS_PAYLOAD))
    )
    error: InferenceError | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(
        self,
        *,
        messages: list[dict[str, object]],
        max_tokens: int,
        temperature: float,
    ) -> bytes:
        self.calls.append(
            {"messages": messages, "max_tokens": max_tokens, "temperature": temperature}
        )
        if self.error is not None:
            raise self.error
        return self.body


@dataclass
class InMemoryStorage(KeyValueStorage):
    """In-memory key-value storage for tests."""

    values: dict[str, str] = field(default_factory=dict)
    writes: int = 0

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes += 1
        self.values[key] = value


class SlowStorage(InMemoryStorage):
    """Storage whose writes yield to other threads mid-write."""

    def set(self, key: str, value: str) -> None:
        time.sleep(0.01)
        super().set(key, value)


class FailingStorage(InMemoryStorage):
    """Storage whose writes always fail."""

    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def carbcal_logs(caplog: pytest.LogCaptureFixture):  # type: ignore[no-untyped-def]
    """Capture records from the `carbcal` logger, which may not propagate."""
    logger = logging.getLogger("carbcal")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.INFO, logger="carbcal")
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        azure_openai_api_key="azure-key",
        azure_openai_endpoint="https://example.openai.azure.com",
        log_store_path=tmp_path / "food_logs.json",
    )


@pytest.fixture
def image_bytes() -> bytes:
    return make_image()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def container(
    settings: Settings, chat_client: FakeChatClient, storage: InMemoryStorage
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        inference_client=InferenceClient(chat_client=chat_client),
        log_store=FoodLogStore(storage),
        close_resources=close_resources,
    )
