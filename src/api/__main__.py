"""Entry point for running the API server: ``python -m api``."""
import logging
import os

import uvicorn

from core.config import get_settings


def main() -> None:
    """Configure logging and serve the app with uvicorn."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    uvicorn.run("api.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
