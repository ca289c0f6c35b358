"""
Entry point for running the patent service.

Usage:
    python -m patent_service

This starts the FastAPI server on http://HOST:PORT (default 0.0.0.0:3000).
"""
import uvicorn

from logging_setup import setup_logging
from .config import get_config

if __name__ == "__main__":
    config = get_config()
    setup_logging(level=config.log_level, use_json=True)

    uvicorn.run(
        "patent_service.server:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )
