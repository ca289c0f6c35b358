"""
FastAPI application for the patent service.

``create_app`` wires one document store, one session registry and one
function executor per application; ``app`` is the instance uvicorn serves.
"""
from typing import Optional

from fastapi import FastAPI

from logging_setup import get_logger, Component
from .api import router
from .config import ServiceConfig, get_config
from .document_store import DocumentStore
from .functions import FunctionExecutor
from .ledger import DuplicateLedger
from .session import SessionRegistry


logger = get_logger(Component.API_SERVER)


def create_app(config: Optional[ServiceConfig] = None) -> FastAPI:
    config = config or get_config()

    store = DocumentStore(config.patents_dir)
    registry = SessionRegistry(store)
    executor = FunctionExecutor(registry, DuplicateLedger(config.duplicate_window_ms))

    app = FastAPI(title="Patent Drafting Assistant")
    app.state.config = config
    app.state.store = store
    app.state.registry = registry
    app.state.executor = executor
    app.include_router(router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "component": "patent_service"}

    logger.debug(
        "Patent service app created",
        patents_dir=str(config.patents_dir),
        duplicate_window_ms=config.duplicate_window_ms,
    )
    return app


app = create_app()
