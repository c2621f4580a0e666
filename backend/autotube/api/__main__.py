"""API server entry point for python -m autotube.api"""
import uvicorn
from autotube.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "autotube.api.app:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.server.log_level,
        reload=False,
    )
