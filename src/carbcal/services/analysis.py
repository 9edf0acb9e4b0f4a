"""Analysis session state for one screen's photo analysis."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from PIL import Image

from carbcal.domain.errors import AnalysisInProgressError, InferenceError
from carbcal.domain.nutrition import AnalysisResponse
from carbcal.services.inference import InferenceClient

logger = logging.getLogger(__name__)


class AnalysisState(StrEnum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AnalysisSession:
    """Runs one analysis at a time and publishes its outcome.

    Observers read ``in_progress``, ``error``, ``result`` and ``image``; an
    optional ``on_change`` callback fires after every state change. A call to
    :meth:`start_analysis` while another is running raises
    ``AnalysisInProgressError`` and leaves the session untouched.
    """

    client: InferenceClient
    on_change: Callable[["AnalysisSession"], None] | None = None
    in_progress: bool = field(default=False, init=False)
    error: InferenceError | None = field(default=None, init=False)
    result: AnalysisResponse | None = field(default=None, init=False)
    image: bytes | Image.Image | None = field(default=None, init=False)

    @property
    def state(self) -> AnalysisState:
        if self.in_progress:
            return AnalysisState.IN_PROGRESS
        if self.error is not None:
            return AnalysisState.FAILED
        if self.result is not None:
            return AnalysisState.SUCCEEDED
        return AnalysisState.IDLE

    async def start_analysis(self, image: bytes | Image.Image) -> None:
        """Analyze ``image`` and record the result or error."""
        if self.in_progress:
            raise AnalysisInProgressError("An analysis is already running")
        self.error = None
        self.result = None
        self.image = image
        self.in_progress = True
        self._notify()
        logger.info("Starting image analysis")

        try:
            result = await self.client.analyze(image)
        except InferenceError as exc:
            logger.info("Analysis failed: %s", exc)
            self.error = exc
        else:
            logger.info("Analysis completed: %s", result.dish_name)
            self.result = result
        finally:
            self.in_progress = False
        self._notify()

    def reset(self) -> None:
        """Discard the last outcome and return to idle."""
        if self.in_progress:
            raise AnalysisInProgressError("Cannot reset while analysis is running")
        self.error = None
        self.result = None
        self.image = None
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
