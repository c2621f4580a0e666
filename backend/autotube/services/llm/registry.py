"""Provider registry for LLM adapters.

Routes model IDs to the correct adapter by prefix: "ollama/" goes to
Ollama, everything else to Vertex AI.
"""

import logging
from typing import Optional

from autotube.config import Settings, settings as app_settings
from autotube.services.llm.base import LLMAdapter

logger = logging.getLogger(__name__)


def _is_ollama_model(model_id: str) -> bool:
    """Return True if the model ID uses the ollama/ prefix."""
    return model_id.startswith("ollama/")


def get_adapter(model_id: str, config: Optional[Settings] = None) -> LLMAdapter:
    """Return the LLM adapter for model_id.

    Args:
        model_id: Model identifier (e.g., "gemini-2.5-flash", "ollama/llama3.1").
        config: Settings to read the Ollama endpoint from; defaults to the
                process-wide settings.
    """
    config = config or app_settings

    if _is_ollama_model(model_id):
        from autotube.services.llm.ollama_adapter import OllamaAdapter

        logger.debug(
            "Routing %s to OllamaAdapter (base_url=%s, has_key=%s)",
            model_id,
            config.ollama.endpoint,
            bool(config.ollama.api_key),
        )
        return OllamaAdapter(
            model_id=model_id,
            base_url=config.ollama.endpoint,
            api_key=config.ollama.api_key,
        )

    from autotube.services.llm.vertex_adapter import VertexAIAdapter

    logger.debug("Routing %s to VertexAIAdapter", model_id)
    return VertexAIAdapter(model_id=model_id)
