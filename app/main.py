import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables from .env file before any service reads them.
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

if env_path.exists():
    logger.info(f"Loaded environment from {env_path}")
else:
    logger.info(f"No .env file at {env_path}; using process environment")

if os.environ.get("GEMINI_API_KEY"):
    logger.info("GEMINI_API_KEY found: layouts will be requested from Gemini first")
else:
    logger.warning("GEMINI_API_KEY not set: layouts will come from local heuristics only")

from app.api.v1.routes import router as api_v1_router  # noqa: E402


def create_app() -> FastAPI:
    """
    Application factory for the Design Studio API.

    Keeping this as a separate function makes it easier to extend
    configuration and testing later.
    """
    app = FastAPI(
        title="Design Studio API",
        version="0.1.0",
        description="Prompt-to-design generation for thumbnails, posts and quote cards.",
    )

    # Infrastructure-level health check (non-versioned) primarily for ops.
    @app.get("/health", tags=["health"])
    async def root_health_check() -> dict:
        """Simple root health check endpoint."""
        return {"status": "ok"}

    app.include_router(api_v1_router)

    return app


app = create_app()
