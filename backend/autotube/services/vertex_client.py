"""Vertex AI client wrapper using google-genai SDK.

Provides location-aware clients for Google Generative AI in Vertex AI
mode. Authentication uses Application Default Credentials (ADC).

Usage:
    from autotube.services.vertex_client import get_vertex_client

    client = get_vertex_client()                    # default location
    client = get_vertex_client(location="global")   # global endpoint
"""

from dotenv import load_dotenv
from google import genai

from autotube.config import settings

# Load .env for GOOGLE_APPLICATION_CREDENTIALS (ADC)
load_dotenv()

# Per-location client cache
_clients: dict[str, genai.Client] = {}

# Models that must use the global endpoint
GLOBAL_REGION_MODELS = {
    "gemini-3-flash-preview",
    "gemini-3-pro-preview",
}


def location_for_model(model_id: str) -> str:
    """Return the Vertex AI location needed for a given model ID."""
    if model_id in GLOBAL_REGION_MODELS:
        return "global"
    return settings.google_cloud.location


def get_vertex_client(location: str | None = None) -> genai.Client:
    """Get or create a Vertex AI client for the given location.

    Raises:
        RuntimeError: If google_cloud.project_id is not configured.
    """
    project_id = settings.google_cloud.project_id
    if not project_id:
        raise RuntimeError(
            "google_cloud.project_id is not set; configure it in config.yaml "
            "or AUTOTUBE_GOOGLE_CLOUD__PROJECT_ID"
        )

    loc = location or settings.google_cloud.location
    if loc not in _clients:
        _clients[loc] = genai.Client(
            vertexai=True,
            project=project_id,
            location=loc,
        )

    return _clients[loc]
