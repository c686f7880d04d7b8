"""HTTP control surface: endpoint registration, health and manual polls.

Sync handlers run on Starlette's worker threadpool, one worker per request,
so a manual poll blocks only its own request. The only contention with the
background poller is through ``AppState``.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from gh_notify_bridge.entrypoints.runtime_builder import ServiceRuntime
from gh_notify_bridge.logging_utils import log_event
from gh_notify_bridge.observability import events


class RegistrationInputError(ValueError):
    """Raised when a registration request body is malformed."""


class RegisterRequest(BaseModel):
    endpoint: str = Field(min_length=1)


def _json_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_register_body(body: bytes) -> RegisterRequest:
    try:
        return RegisterRequest.model_validate_json(body or b"")
    except ValidationError as exc:
        details = "; ".join(error["msg"] for error in exc.errors(include_url=False))
        raise RegistrationInputError(f"Invalid JSON: {details}") from exc


def create_app(runtime: ServiceRuntime) -> FastAPI:
    app = FastAPI(
        title="gh-notify-bridge",
        description="Forward GitHub notifications to a UnifiedPush endpoint",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.runtime = runtime
    logger = runtime.logger.getChild("http")
    state = runtime.state

    @app.exception_handler(RegistrationInputError)
    async def _registration_input_error(
        request: Request,
        exc: RegistrationInputError,
    ) -> JSONResponse:
        logger.warning(log_event(events.HTTP_REGISTER_REJECTED, error=str(exc)))
        return _json_error(400, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown routes and wrong methods both read as "not found".
        if exc.status_code in {404, 405}:
            return _json_error(404, "not found")
        return _json_error(exc.status_code, str(exc.detail))

    @app.get("/health")
    def health() -> dict[str, object]:
        endpoint = state.get_endpoint()
        return {
            "status": "ok",
            "endpoint": endpoint,
            "registered": endpoint is not None,
        }

    @app.post("/register")
    async def register(request: Request) -> dict[str, object]:
        registration = parse_register_body(await request.body())
        await run_in_threadpool(state.set_endpoint, registration.endpoint)
        logger.info(log_event(events.HTTP_REGISTER_ACCEPTED, endpoint=registration.endpoint))
        return {"success": True, "endpoint": registration.endpoint}

    @app.post("/poll")
    def poll() -> dict[str, object]:
        stats = runtime.processor.run_once()
        logger.info(log_event(events.HTTP_POLL_TRIGGERED, status=stats.status))
        return {"triggered": True}

    return app
