"""Image preparation and strict decoding of model output."""

import base64
import io

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from carbcal.domain.errors import DecodeError, EmptyResponseError, EncodingError
from carbcal.domain.nutrition import (
    MAX_HEALTH_SCORE,
    MIN_HEALTH_SCORE,
    AnalysisResponse,
    Ingredient,
    NutritionTotal,
)

DEFAULT_JPEG_QUALITY = 80

SYSTEM_PROMPT = (
    "You are a helpful assistant that analyzes food images and returns "
    "nutritional information in a specific JSON format. You must return ONLY "
    "the JSON object with no additional text or explanation. Use decimal "
    "numbers for precise nutritional values."
)

ANALYSIS_PROMPT = (
    "Analyze this food image and provide detailed nutritional information. "
    "Include: 1) Dish name, 2) List of ingredients with calories, carbs, "
    "protein, and fats for each, 3) Total nutritional values, 4) Health score "
    "(1-10). Format the response as JSON matching this structure: "
    "{ dishName: string, ingredients: [{ name: string, calories: number, "
    "carbs: number, protein: number, fats: number }], total: { calories: "
    "number, carbs: number, protein: number, fats: number, healthScore: "
    "number } }"
)


class _StrictPayload(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True, allow_inf_nan=False)


class _ApiIngredient(_StrictPayload):
    name: str = Field(min_length=1)
    calories: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    fats: float = Field(ge=0.0)


class _ApiTotal(_StrictPayload):
    calories: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    fats: float = Field(ge=0.0)
    healthScore: float = Field(ge=MIN_HEALTH_SCORE, le=MAX_HEALTH_SCORE)  # noqa: N815

    @field_validator("healthScore")
    @classmethod
    def _whole_score(cls, value: float) -> float:
        if not value.is_integer():
            raise ValueError("healthScore must be a whole number")
        return value


class _ApiAnalysis(_StrictPayload):
    dishName: str = Field(min_length=1)  # noqa: N815
    ingredients: list[_ApiIngredient]
    total: _ApiTotal


class _EnvelopeMessage(_StrictPayload):
    content: str | None = None


class _EnvelopeChoice(_StrictPayload):
    message: _EnvelopeMessage | None = None


class _Envelope(_StrictPayload):
    choices: list[_EnvelopeChoice]


def encode_image(
    image: bytes | Image.Image,
    quality: int = DEFAULT_JPEG_QUALITY,
    max_dimension: int | None = None,
) -> bytes:
    """Re-encode an image as a size-reduced JPEG for upload."""
    if not 1 <= quality <= 95:  # noqa: PLR2004
        raise EncodingError(f"JPEG quality must be within 1-95, got {quality}")
    try:
        img = _open_image(image)
        width, height = img.size
        if width == 0 or height == 0:
            raise EncodingError("Image has zero width or height")
        rgb_img = _to_rgb(img)
        if max_dimension is not None and max(width, height) > max_dimension:
            rgb_img.thumbnail((max_dimension, max_dimension))
        output = io.BytesIO()
        rgb_img.save(output, format="JPEG", quality=quality, optimize=True)
    except EncodingError:
        raise
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as exc:
        raise EncodingError(f"Image could not be encoded: {exc}") from exc
    return output.getvalue()


def to_data_url(jpeg_bytes: bytes) -> str:
    """Wrap JPEG bytes in a base64 data URL."""
    encoded = base64.b64encode(jpeg_bytes).decode("utf-8")
    return f"data:image/jpeg;base64,{encoded}"


def build_messages(image_data_url: str) -> list[dict[str, object]]:
    """Build the chat messages that ask for a nutrition breakdown."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": ANALYSIS_PROMPT},
                {"type": "image_url", "image_url": {"url": image_data_url}},
            ],
        },
    ]


def decode_envelope(raw_body: bytes | str) -> str:
    """Return the first generated message from a chat completion envelope."""
    try:
        envelope = _Envelope.model_validate_json(raw_body)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected completion envelope: {exc}") from exc
    if not envelope.choices:
        raise EmptyResponseError("Completion contained no choices")
    message = envelope.choices[0].message
    content = message.content if message is not None else None
    if content is None or not content.strip():
        raise EmptyResponseError("Completion message had no content")
    return content


def decode_analysis(raw_text: str) -> AnalysisResponse:
    """Decode the model's JSON reply into an analysis; all or nothing."""
    try:
        payload = _ApiAnalysis.model_validate_json(raw_text)
    except ValidationError as exc:
        raise DecodeError(f"Model reply is not a valid analysis: {exc}") from exc
    ingredients = tuple(
        Ingredient(
            name=item.name,
            calories=item.calories,
            carbs=item.carbs,
            protein=item.protein,
            fats=item.fats,
        )
        for item in payload.ingredients
    )
    total = NutritionTotal(
        calories=payload.total.calories,
        carbs=payload.total.carbs,
        protein=payload.total.protein,
        fats=payload.total.fats,
        health_score=int(payload.total.healthScore),
    )
    return AnalysisResponse(
        dish_name=payload.dishName, ingredients=ingredients, total=total
    )


def _open_image(image: bytes | Image.Image) -> Image.Image:
    if isinstance(image, Image.Image):
        return image
    if not image:
        raise EncodingError("Image data is empty")
    img = Image.open(io.BytesIO(image))
    img.load()
    return img


def _to_rgb(img: Image.Image) -> Image.Image:
    """Flatten transparency onto white and convert to RGB."""
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img.copy()
