"""Abstract base class for LLM provider adapters.

Defines the async interface every provider implements: structured text
generation validated against a caller-supplied Pydantic schema.
"""

from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    stripped = raw.strip()
    if not stripped.startswith("```"):
        return stripped
    first_newline = stripped.find("\n")
    if first_newline == -1:
        return stripped.strip("`")
    stripped = stripped[first_newline + 1:]
    if stripped.endswith("```"):
        stripped = stripped[:-3].rstrip()
    return stripped


class LLMAdapter(ABC):
    """Abstract base class for LLM provider adapters.

    Implementations retry transient provider failures internally and
    return a validated instance of the supplied schema class.
    """

    model_id: str

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        temperature: float = 0.7,
        system_prompt: Optional[str] = None,
        max_retries: int = 3,
    ) -> SchemaT:
        """Generate structured text output from a prompt.

        Args:
            prompt: The user prompt to send to the model.
            schema: Pydantic model class defining the expected output structure.
            temperature: Sampling temperature (0.0-1.0). Lower = more deterministic.
            system_prompt: Optional system/instruction prompt.
            max_retries: Maximum number of attempts on transient failure.

        Returns:
            Validated instance of the supplied schema class.
        """
        ...
