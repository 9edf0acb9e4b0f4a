"""Errors raised by the analysis pipeline."""


class EncodingError(ValueError):
    """Image could not be serialized for upload."""


class DecodeError(ValueError):
    """Model output did not match the expected nutrition schema."""


class InferenceError(Exception):
    """Terminal failure of a single analysis request."""

    kind = "inference_error"
    user_message = "Something went wrong while analyzing the photo."


class InvalidInputError(InferenceError):
    """The supplied image could not be prepared."""

    kind = "invalid_input"
    user_message = "This photo could not be read. Try another image."


class TransportError(InferenceError):
    """The request never got a response (network failure or timeout)."""

    kind = "transport"
    user_message = "Could not reach the analysis service. Check your connection."


class RemoteError(InferenceError):
    """The endpoint answered with a non-success status."""

    kind = "remote"

    def __init__(self, status_code: int, details: object | None = None) -> None:
        super().__init__(f"Analysis endpoint returned HTTP {status_code}")
        self.status_code = status_code
        self.details = details

    @property
    def user_message(self) -> str:  # type: ignore[override]
        if self.status_code == 429:  # noqa: PLR2004
            return "The analysis service is busy. Try again in a moment."
        return f"The analysis service returned an error ({self.status_code})."


class EmptyResponseError(InferenceError):
    """The endpoint answered without any generated content."""

    kind = "empty_response"
    user_message = "The analysis service returned no result."


class MalformedResultError(InferenceError):
    """The generated content was not a valid nutrition breakdown."""

    kind = "malformed_result"
    user_message = "The analysis result could not be understood. Try again."


class AnalysisInProgressError(RuntimeError):
    """An analysis is already running for this session."""
