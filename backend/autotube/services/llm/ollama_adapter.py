"""Ollama adapter for the LLM abstraction layer.

Uses format='json' plus a schema description in the system prompt rather
than format=schema_dict: Ollama Cloud does not reliably enforce JSON
schema constraints and sometimes answers with markdown or bare values.
"""

import json
import logging
from typing import Optional, Type

import httpx
from ollama import AsyncClient, ResponseError
from pydantic import ValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from autotube.services.llm.base import LLMAdapter, SchemaT, strip_code_fences

logger = logging.getLogger(__name__)


def _schema_instruction(schema: Type[SchemaT]) -> str:
    """Build the JSON schema instruction appended to the system prompt."""
    schema_json = json.dumps(schema.model_json_schema(), indent=2)
    return (
        "\n\nIMPORTANT: You MUST respond with a single JSON object (no markdown, "
        "no commentary, no code fences). The JSON must conform to this schema:\n"
        f"```json\n{schema_json}\n```\n"
        "All string fields must be strings (not arrays). Return ONLY the JSON object."
    )


def _is_transient(exc: BaseException) -> bool:
    """Server errors, dropped connections and malformed JSON are worth another attempt."""
    if isinstance(exc, ResponseError):
        return exc.status_code >= 500
    return isinstance(exc, (httpx.TransportError, ConnectionError, ValidationError))


class OllamaAdapter(LLMAdapter):
    """LLM adapter backed by a local or cloud Ollama instance.

    Strips the "ollama/" prefix from model IDs before calling the server
    and always passes stream=False.
    """

    def __init__(
        self,
        model_id: str,
        base_url: str = "http://localhost:11434",
        api_key: Optional[str] = None,
    ) -> None:
        self.model_id = model_id
        self._ollama_model = model_id.removeprefix("ollama/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = AsyncClient(host=base_url, headers=headers)

    async def generate_text(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        temperature: float = 0.7,
        system_prompt: Optional[str] = None,
        max_retries: int = 3,
    ) -> SchemaT:
        system_content = (system_prompt or "") + _schema_instruction(schema)

        @retry(
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _call() -> SchemaT:
            response = await self._client.chat(
                model=self._ollama_model,
                messages=[
                    {"role": "system", "content": system_content.lstrip()},
                    {"role": "user", "content": prompt},
                ],
                format="json",
                options={"temperature": temperature},
                stream=False,
            )
            return schema.model_validate_json(strip_code_fences(response.message.content))

        return await _call()
