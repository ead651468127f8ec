"""FastAPI ops surface for metricgate.

Endpoints:
  GET    /health                   Health check and active policy info
  POST   /authorize                Evaluate roles + metric against the active policy
  POST   /admin/policy/reload      Load a new policy and swap it in (admin key)

The authorization decision is also the in-process API used by the gateway
(:meth:`metricgate.authorizer.QueryAuthorizer.authorize`); ``/authorize``
exposes it for ops tooling and smoke tests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

import metricgate
from metricgate.auth import require_admin_key
from metricgate.authorizer import QueryAuthorizer
from metricgate.config import settings
from metricgate.exceptions import MetricGateError
from metricgate.logging_config import log_startup_info, setup_logging
from metricgate.policy.store import load_store

logger = logging.getLogger("metricgate")

_OPENAPI_TAGS = [
    {"name": "Health", "description": "Health checks and version info"},
    {"name": "Authorization", "description": "Role-scoped metric access decisions"},
    {"name": "Admin", "description": "Policy reload"},
]


# ---------------------------------------------------------------------------
# Request/Response schemas
# ---------------------------------------------------------------------------


class AuthorizeRequest(BaseModel):
    roles: list[str] = Field(default_factory=list)
    metric: str = Field(min_length=1, max_length=1024)


class AuthorizeResponse(BaseModel):
    allowed: bool
    constraint: str | None = None
    role: str | None = None


class ReloadRequest(BaseModel):
    path: str | None = Field(default=None, min_length=1)
    content: str | None = None

    @model_validator(mode="after")
    def _one_source(self) -> ReloadRequest:
        if self.path is not None and self.content is not None:
            msg = "provide either path or content, not both"
            raise ValueError(msg)
        return self


class ReloadResponse(BaseModel):
    status: str
    source: str
    role_count: int
    loaded_at: float


def _authorizer(request: Request) -> QueryAuthorizer:
    return request.app.state.authorizer


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(authorizer: QueryAuthorizer | None = None) -> FastAPI:
    """Build the ops app.

    When *authorizer* is omitted the policy at ``MG_ACL_FILE`` is loaded at
    startup; a policy that fails to load aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        app.state.started_at = time.monotonic()
        if app.state.authorizer is None:
            app.state.authorizer = QueryAuthorizer(load_store(settings.acl_file))
        store = app.state.authorizer.store
        log_startup_info(len(store), store.source)
        yield
        logger.info("Shutdown complete")

    app = FastAPI(
        title="metricgate",
        description="Role-scoped access control for Prometheus metric queries.",
        version=metricgate.__version__,
        lifespan=lifespan,
        openapi_tags=_OPENAPI_TAGS,
    )
    app.state.authorizer = authorizer
    app.state.started_at = 0.0

    @app.exception_handler(MetricGateError)
    async def metricgate_error_handler(request: Request, exc: MetricGateError) -> JSONResponse:
        """Centralized handler for custom metricgate exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error_type, "message": exc.message},
        )

    @app.get("/health", tags=["Health"], summary="Health check")
    async def health(request: Request):
        store = _authorizer(request).store
        started_at = request.app.state.started_at
        uptime_s = time.monotonic() - started_at if started_at > 0 else 0
        return {
            "status": "ok",
            "version": metricgate.__version__,
            "uptime_seconds": round(uptime_s, 1),
            "policy_source": store.source,
            "policy_loaded_at": store.loaded_at,
            "role_count": len(store),
        }

    @app.post(
        "/authorize",
        tags=["Authorization"],
        summary="Evaluate a metric query for a role set",
        response_model=AuthorizeResponse,
    )
    async def authorize(body: AuthorizeRequest, request: Request) -> AuthorizeResponse:
        decision = _authorizer(request).authorize(body.roles, body.metric)
        return AuthorizeResponse(
            allowed=decision.allowed, constraint=decision.constraint, role=decision.role
        )

    @app.post(
        "/admin/policy/reload",
        tags=["Admin"],
        summary="Reload the ACL policy",
        response_model=ReloadResponse,
        dependencies=[Depends(require_admin_key)],
    )
    async def reload_policy(body: ReloadRequest, request: Request) -> ReloadResponse:
        authorizer = _authorizer(request)
        # Compilation is CPU/IO bound, keep it off the event loop.
        if body.content is not None:
            store = await asyncio.to_thread(authorizer.reload_from_text, body.content, "<request>")
        else:
            store = await asyncio.to_thread(authorizer.reload, body.path or settings.acl_file)
        return ReloadResponse(
            status="reloaded",
            source=store.source,
            role_count=len(store),
            loaded_at=store.loaded_at,
        )

    return app


app = create_app()
