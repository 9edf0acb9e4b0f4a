"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import Field

from carbcal.app_logging import configure_logging
from carbcal.containers import AppContainer
from carbcal.domain.errors import InferenceError, InvalidInputError, RemoteError
from carbcal.domain.logs import FoodLog
from carbcal.domain.nutrition import (
    MAX_HEALTH_SCORE,
    MIN_HEALTH_SCORE,
    DomainModel,
    Ingredient,
)


class FoodLogCreate(DomainModel):
    """Save command sent after the user confirms an analysis."""

    image_path: str = ""
    dish_name: str = Field(min_length=1)
    date: datetime | None = None
    ingredients: list[Ingredient]
    health_score: int = Field(ge=MIN_HEALTH_SCORE, le=MAX_HEALTH_SCORE)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/analyses")
    async def analyze(request: Request) -> JSONResponse:
        """Analyze the image sent as the raw request body."""
        state_container: AppContainer = request.app.state.container
        session = state_container.new_session()
        await session.start_analysis(await request.body())
        if session.error is not None:
            logger.info("Analysis request failed: %s", session.error.kind)
            return _error_response(session.error)
        return JSONResponse(content=jsonable_encoder(session.result, by_alias=True))

    @app.post("/logs", status_code=201)
    async def save_log(payload: FoodLogCreate, request: Request) -> FoodLog:
        """Persist a confirmed analysis as a food log."""
        state_container: AppContainer = request.app.state.container
        entry = FoodLog(
            image_path=payload.image_path,
            dish_name=payload.dish_name,
            date=payload.date or datetime.now().astimezone(),
            ingredients=tuple(payload.ingredients),
            health_score=payload.health_score,
        )
        return state_container.log_store.save_log(entry)

    @app.get("/logs")
    async def list_logs(request: Request, day: date | None = None) -> list[FoodLog]:
        """Return the logs for one calendar day (default today)."""
        state_container: AppContainer = request.app.state.container
        return state_container.log_store.get_logs(day or date.today())

    @app.get("/logs/summary")
    async def logs_summary(
        request: Request, day: date | None = None
    ) -> dict[str, Any]:
        """Return macro totals for one calendar day (default today)."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.log_store.daily_summary(day or date.today())
        payload = asdict(summary)
        payload["day"] = summary.day.isoformat()
        return payload

    return app


def _error_response(error: InferenceError) -> JSONResponse:
    content: dict[str, object] = {"error": error.kind, "message": error.user_message}
    if isinstance(error, RemoteError):
        content["status_code"] = error.status_code
    status_code = 422 if isinstance(error, InvalidInputError) else 502
    return JSONResponse(status_code=status_code, content=content)
