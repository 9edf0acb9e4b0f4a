"""ASGI entrypoint: ``uvicorn carbcal.api.asgi:app``."""

from carbcal.api.app import create_app
from carbcal.app_logging import configure_logging
from carbcal.config import Settings
from carbcal.containers import build_container

settings = Settings()
configure_logging(settings.log_level)
app = create_app(build_container(settings))
