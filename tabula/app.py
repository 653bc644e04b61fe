"""FastAPI entry point for Tabula."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tabula import __version__
from tabula.api.nodes import router as nodes_router
from tabula.api.tables import router as tables_router
from tabula.api.ws_table import router as ws_table_router
from tabula.engine.session_registry import SessionRegistry
from tabula.engine.sorting import set_collation_locale

logging.basicConfig(
    level=os.environ.get("TABULA_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

set_collation_locale(os.environ.get("TABULA_COLLATE_LOCALE", ""))

_session_registry: SessionRegistry | None = None


def get_session_registry() -> SessionRegistry:
    global _session_registry
    if _session_registry is None:
        _session_registry = SessionRegistry()
    return _session_registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry = get_session_registry()
    logger.info("Tabula %s started", __version__)
    try:
        yield
    finally:
        for key in registry.list_sessions():
            registry.unregister(key)
        logger.info("Tabula stopped")


app = FastAPI(title="Tabula", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.environ.get("TABULA_CORS_ORIGINS", "http://localhost:5173").split(",")
                   if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(nodes_router)
app.include_router(tables_router)
app.include_router(ws_table_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": __version__, "sessions": len(get_session_registry().list_sessions())}


def main():
    import uvicorn

    uvicorn.run("tabula.app:app", host="0.0.0.0", port=int(os.environ.get("TABULA_PORT", "8000")))


if __name__ == "__main__":
    main()
