"""FastAPI application entry point."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mediation import config
from mediation.db.database import close_database, init_database
from mediation.errors import (
    ActiveNodeConflict,
    FlowValidationError,
    InvalidReference,
    LifecycleError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    await init_database(config.DATABASE_PATH)
    logger.info(f"Mediation service started with database {config.DATABASE_PATH}")

    yield

    await close_database()


app = FastAPI(
    title="Mediation Pipeline Console",
    description="Design, version and deploy telecom mediation flows",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=config.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Domain errors ====================


@app.exception_handler(ActiveNodeConflict)
async def active_node_conflict_handler(request: Request, exc: ActiveNodeConflict) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "message": str(exc), "active_node": exc.active_node},
    )


@app.exception_handler(FlowValidationError)
async def flow_validation_handler(request: Request, exc: FlowValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "message": str(exc), "errors": exc.errors},
    )


@app.exception_handler(LifecycleError)
async def lifecycle_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc), "entity": exc.entity})


@app.exception_handler(InvalidReference)
async def invalid_reference_handler(request: Request, exc: InvalidReference) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "entity": exc.entity})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Import and include routers after app is created to avoid circular imports
from mediation.api import edges, flownodes, flows, node_families, parameters, subnodes  # noqa: E402

app.include_router(flows.router, prefix="/api")
app.include_router(flownodes.router, prefix="/api")
app.include_router(edges.router, prefix="/api")
app.include_router(node_families.router, prefix="/api")
app.include_router(subnodes.router, prefix="/api")
app.include_router(parameters.router, prefix="/api")
