"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from carbcal.adapters.azure_openai_client import AzureOpenAIChatClient
from carbcal.adapters.json_file_storage import JsonFileStorage
from carbcal.adapters.supabase_kv_storage import SupabaseKeyValueStorage
from carbcal.config import Settings
from carbcal.services.analysis import AnalysisSession
from carbcal.services.inference import InferenceClient
from carbcal.services.logs import FoodLogStore, KeyValueStorage


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    inference_client: InferenceClient
    log_store: FoodLogStore
    close_resources: Callable[[], Awaitable[None]]

    def new_session(self) -> AnalysisSession:
        """Create an analysis session bound to the shared inference client."""
        return AnalysisSession(client=self.inference_client)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    chat_client = AzureOpenAIChatClient.create(
        api_key=resolved_settings.azure_openai_api_key,
        endpoint=resolved_settings.azure_openai_endpoint,
        deployment=resolved_settings.azure_openai_deployment,
        api_version=resolved_settings.azure_openai_api_version,
        timeout=resolved_settings.request_timeout_seconds,
    )
    inference_client = InferenceClient(
        chat_client=chat_client,
        jpeg_quality=resolved_settings.jpeg_quality,
        max_image_dimension=resolved_settings.max_image_dimension,
    )
    log_store = FoodLogStore(_build_storage(resolved_settings))

    async def close_resources() -> None:
        await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        inference_client=inference_client,
        log_store=log_store,
        close_resources=close_resources,
    )


def _build_storage(settings: Settings) -> KeyValueStorage:
    if settings.uses_supabase:
        client = create_client(
            settings.supabase_url or "", settings.supabase_service_key or ""
        )
        return SupabaseKeyValueStorage(client)
    return JsonFileStorage(settings.log_store_path)
