"""Single-shot nutrition inference against a chat completion model."""

import logging
from dataclasses import dataclass
from typing import Protocol

from PIL import Image

from carbcal.domain.errors import (
    DecodeError,
    EncodingError,
    InvalidInputError,
    MalformedResultError,
)
from carbcal.domain.nutrition import AnalysisResponse
from carbcal.services.codec import (
    DEFAULT_JPEG_QUALITY,
    build_messages,
    decode_analysis,
    decode_envelope,
    encode_image,
    to_data_url,
)

MAX_TOKENS = 4000
TEMPERATURE = 0.7

logger = logging.getLogger(__name__)


class ChatCompletionClient(Protocol):
    """Interface for the remote chat completion endpoint."""

    async def complete(
        self,
        *,
        messages: list[dict[str, object]],
        max_tokens: int,
        temperature: float,
    ) -> bytes:
        """Send one request and return the raw success body.

        Raises ``TransportError`` when no response arrives and ``RemoteError``
        for non-success statuses.
        """


@dataclass(frozen=True)
class InferenceClient:
    """Turns a food photo into a validated analysis with one request."""

    chat_client: ChatCompletionClient
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    max_image_dimension: int | None = None

    async def analyze(self, image: bytes | Image.Image) -> AnalysisResponse:
        """Analyze a food photo; raises an ``InferenceError`` on failure."""
        try:
            jpeg_bytes = encode_image(
                image,
                quality=self.jpeg_quality,
                max_dimension=self.max_image_dimension,
            )
        except EncodingError as exc:
            logger.info("Rejected image before upload: %s", exc)
            raise InvalidInputError(str(exc)) from exc

        logger.info("Requesting analysis for %d byte image", len(jpeg_bytes))
        body = await self.chat_client.complete(
            messages=build_messages(to_data_url(jpeg_bytes)),
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )

        try:
            content = decode_envelope(body)
            result = decode_analysis(content)
        except DecodeError as exc:
            logger.warning("Discarding malformed analysis: %s", exc)
            raise MalformedResultError(str(exc)) from exc

        logger.info(
            "Analysis decoded: %s with %d ingredients",
            result.dish_name,
            len(result.ingredients),
        )
        return result
