"""Vertex AI adapter for the LLM abstraction layer.

Wraps the google-genai client with location-aware routing and
schema-constrained JSON output.
"""

import logging
from typing import Optional, Type

from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import ValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from autotube.services.llm.base import LLMAdapter, SchemaT, strip_code_fences
from autotube.services.vertex_client import get_vertex_client, location_for_model

logger = logging.getLogger(__name__)


class VertexAIAdapter(LLMAdapter):
    """LLM adapter backed by Google Vertex AI (google-genai SDK).

    Client errors (4xx, including quota exhaustion) are raised on the first
    attempt; only server errors and invalid JSON are retried.
    """

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id

    async def generate_text(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        temperature: float = 0.7,
        system_prompt: Optional[str] = None,
        max_retries: int = 3,
    ) -> SchemaT:
        @retry(
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception_type((genai_errors.ServerError, ValidationError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _call() -> SchemaT:
            client = get_vertex_client(location=location_for_model(self.model_id))
            config = genai_types.GenerateContentConfig(
                temperature=temperature,
                response_mime_type="application/json",
                response_schema=schema,
                system_instruction=system_prompt,
            )
            response = await client.aio.models.generate_content(
                model=self.model_id,
                contents=prompt,
                config=config,
            )
            if not response.text:
                raise ValueError(f"{self.model_id} returned an empty response")
            return schema.model_validate_json(strip_code_fences(response.text))

        return await _call()
