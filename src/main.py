"""
Entry point: run the match server with uvicorn.

    python -m src.main

Host, port, log level and CORS origins come from CHESS_* environment variables (see src/core/config.py).
"""

import uvicorn

from src.api.app import create_app
from src.core.config import Settings, configure_logging


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(
        app, host=settings.host, port=settings.port, log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
