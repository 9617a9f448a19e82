"""HTTP surface for the scan coordinator.

Agents authenticate with the ``X-API-Key`` header. Handlers are plain
functions; FastAPI runs them in its thread pool and the coordinator lock
serializes them.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Body, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from .. import __version__
from ..core.coordinator import Coordinator
from ..core.errors import CoordinatorError
from ..models.scan import IngestResult, PollResult, ScanRequestBody, ScanSnapshot, ScanTicket

logger = logging.getLogger(__name__)


def _body_field(body: Any, key: str) -> Any:
    return body.get(key) if isinstance(body, dict) else None


def create_router(coordinator: Coordinator) -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.post("/heartbeat", response_model=PollResult)
    def heartbeat(
        body: Any = Body(default=None),
        x_api_key: Optional[str] = Header(default=None),
    ) -> PollResult:
        username = _body_field(body, "username")
        if not isinstance(username, str):
            username = None
        return coordinator.poll_for_work(x_api_key, username)

    @router.post("/tablist", response_model=IngestResult)
    def tablist(
        body: Any = Body(default=None),
        x_api_key: Optional[str] = Header(default=None),
    ) -> IngestResult:
        return coordinator.ingest_observations(x_api_key, _body_field(body, "players"))

    @router.post("/scan-request", response_model=ScanTicket)
    def scan_request(body: Optional[ScanRequestBody] = Body(default=None)) -> ScanTicket:
        target = body.target_user if body else None
        return coordinator.request_scan(target)

    @router.get("/scan-results", response_model=ScanSnapshot)
    def scan_results(peek: bool = False) -> ScanSnapshot:
        return coordinator.read_results(peek=peek)

    return router


def create_app(coordinator: Coordinator) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Scan coordinator started (window %.0fs)", coordinator.window_seconds)
        yield
        coordinator.shutdown()
        logger.info("Scan coordinator stopped")

    app = FastAPI(
        title="scanwatch",
        description="Scan coordinator for polling agents",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(CoordinatorError)
    async def coordinator_error(request: Request, exc: CoordinatorError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Malformed body on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Scan coordinator is running."

    app.include_router(create_router(coordinator))
    return app
