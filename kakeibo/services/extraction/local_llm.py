"""
Local LLM Engine (OpenAI-compatible API)

Talks to a vision model hosted on the user's own machine or LAN (Ollama,
LM Studio, llama.cpp server...) through the OpenAI chat-completions shape.

The image goes inline as a data: URL, so nothing leaves the configured host.
Connection errors may be retried (LOCAL_LLM_MAX_ATTEMPTS); HTTP error
responses never are.
"""

import base64
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kakeibo.capture.session import ProgressLog
from kakeibo.config.settings import LocalLLMSettings, Settings
from kakeibo.models.ledger import CandidateItem, EngineId, ReceiptSummary
from kakeibo.services.extraction.base import (
    ExtractionEngine,
    MalformedResponseError,
    TransportFailureError,
)
from kakeibo.services.extraction.prompts import (
    RECEIPT_EXTRACTION_PROMPT,
    USER_INSTRUCTION,
    parse_receipt_response,
)
from kakeibo.services.image import CapturedImage


def build_chat_request(image: CapturedImage, llm_settings: LocalLLMSettings) -> dict:
    """Chat-completions payload with the receipt as an inline image."""
    encoded = base64.b64encode(image.png_bytes).decode("ascii")
    return {
        "model": llm_settings.model_name,
        "temperature": llm_settings.temperature,
        "stream": False,
        "messages": [
            {"role": "system", "content": RECEIPT_EXTRACTION_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_INSTRUCTION},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/png;base64,{encoded}"},
                    },
                ],
            },
        ],
    }


def message_content(body: dict) -> str:
    """Pull choices[0].message.content out of a chat-completions body."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise MalformedResponseError("Response has no choices[0].message.content")

    if isinstance(content, list):
        # Some servers return content parts even for plain text
        content = "".join(
            part.get("text", "") for part in content if isinstance(part, dict)
        )
    if not isinstance(content, str):
        raise MalformedResponseError("Message content is not text")
    return content


class LocalLLMEngine(ExtractionEngine):
    """Receipt extraction through a local OpenAI-compatible server."""

    engine_id = EngineId.LOCAL_LLM

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Tests pass an httpx.MockTransport here
        self._transport = transport

    def _headers(self, llm_settings: LocalLLMSettings) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if llm_settings.api_key:
            headers["Authorization"] = f"Bearer {llm_settings.api_key}"
        return headers

    async def _post(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict,
        llm_settings: LocalLLMSettings,
    ) -> httpx.Response:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(llm_settings.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await client.post(url, json=payload)

    async def _run(
        self,
        image: CapturedImage,
        settings: Settings,
        log: ProgressLog,
    ) -> tuple[list[CandidateItem], Optional[ReceiptSummary]]:
        llm_settings = settings.local_llm
        url = f"{llm_settings.base_url}/chat/completions"

        log.append(f"Sending receipt to {llm_settings.model_name} at {llm_settings.base_url}...")

        async with httpx.AsyncClient(
            timeout=llm_settings.timeout_seconds,
            headers=self._headers(llm_settings),
            transport=self._transport,
        ) as client:
            try:
                response = await self._post(
                    client, url, build_chat_request(image, llm_settings), llm_settings
                )
            except httpx.TransportError as e:
                raise TransportFailureError(f"Could not reach {url}: {e}")

        if not response.is_success:
            raise TransportFailureError(
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response body is not JSON: {e}")

        log.append("Response received, reading items...")
        return parse_receipt_response(
            message_content(body), settings.app.default_category
        )
