"""Azure OpenAI chat completions client."""

import logging
from dataclasses import dataclass

import httpx
import openai
from openai import AsyncAzureOpenAI

from carbcal.domain.errors import RemoteError, TransportError
from carbcal.services.inference import ChatCompletionClient

logger = logging.getLogger(__name__)


@dataclass
class AzureOpenAIChatClient(ChatCompletionClient):
    """Chat completions client for a single Azure OpenAI deployment."""

    client: AsyncAzureOpenAI
    deployment: str

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        *,
        api_key: str,
        endpoint: str,
        deployment: str,
        api_version: str,
        timeout: float,
        http_client: httpx.AsyncClient | None = None,
    ) -> "AzureOpenAIChatClient":
        """Create a client that never retries and gives up after ``timeout``."""
        return cls(
            client=AsyncAzureOpenAI(
                api_key=api_key,
                azure_endpoint=endpoint,
                azure_deployment=deployment,
                api_version=api_version,
                timeout=timeout,
                max_retries=0,
                http_client=http_client,
            ),
            deployment=deployment,
        )

    async def complete(
        self,
        *,
        messages: list[dict[str, object]],
        max_tokens: int,
        temperature: float,
    ) -> bytes:
        """POST one chat completion request and return the raw response body."""
        try:
            raw = await self.client.chat.completions.with_raw_response.create(
                model=self.deployment,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.APIStatusError as exc:
            logger.warning(
                "Azure OpenAI returned HTTP %s: %s", exc.status_code, exc.body
            )
            raise RemoteError(exc.status_code, details=exc.body) from exc
        except openai.APIConnectionError as exc:
            logger.warning("Azure OpenAI request failed: %s", exc)
            raise TransportError(str(exc)) from exc
        return raw.http_response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
