import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tierpanel import __version__
from tierpanel.adapters.sqlite.schema import init_db
from tierpanel.api.deps import get_settings
from tierpanel.app_shell.config import validate_ops_rules
from tierpanel.domain.errors import (
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
    RemoteToolError,
    ValidationError,
    WorkflowBusyError,
)
from tierpanel.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules)
        logger.info("Rules loaded from %s", settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_db(settings.db_path)

    yield


app = FastAPI(
    title="Tier Panel API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# --- Error mapping ---
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(WorkflowBusyError)
async def busy_handler(request: Request, exc: WorkflowBusyError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(AuthorizationError)
async def authorization_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content={
            "detail": str(exc),
            "capability": exc.capability,
            "required_role": exc.required_role,
        },
    )


@app.exception_handler(ExternalServiceError)
async def external_handler(request: Request, exc: ExternalServiceError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc), "service": exc.service})


@app.exception_handler(RemoteToolError)
async def remote_tool_handler(request: Request, exc: RemoteToolError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc), "tool_id": exc.tool_id})


# --- Routers ---
from tierpanel.api.routes import accounts, broadcast, tools, upgrade  # noqa: E402

app.include_router(tools.router, prefix="/api/tools", tags=["Tools"])
app.include_router(upgrade.router, prefix="/api/upgrade", tags=["Upgrade"])
app.include_router(accounts.router, prefix="/api/accounts", tags=["Accounts"])
app.include_router(broadcast.router, prefix="/api/broadcasts", tags=["Broadcast"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
