"""
Base service class for catalog services.
"""

from contextlib import asynccontextmanager
from typing import Optional
import time

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from shared.config import ServiceConfig, get_config
from shared.errors import ServiceException, current_trace_id
from shared.logging import configure_logging, get_logger, get_request_id, set_request_id
from shared.metrics import get_metrics_collector

REQUEST_ID_HEADER = "X-Request-ID"
UNMATCHED_ROUTE = "unmatched"


class BaseService:
    """Base service class with common functionality."""

    invalid_path_message = "Invalid path parameter"

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)

        # Configure logging before the first logger is bound
        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)

        if self.config.enable_tracing:
            from shared.tracing import configure_tracing
            configure_tracing(service_name, self.config.otel_exporter)

        self._start_time = time.time()

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_exception_handlers()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await self.start()
            try:
                yield
            finally:
                await self.stop()

        return FastAPI(
            title=f"{self.service_name} service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url=None,
            lifespan=lifespan,
        )

    def _route_template(self, request: Request) -> str:
        """Matched route pattern for metric labels (never the raw path)."""
        route = request.scope.get("route")
        if route is not None and hasattr(route, "path"):
            return route.path
        for candidate in self.app.router.routes:
            match, _ = candidate.matches(request.scope)
            if match == Match.FULL:
                return getattr(candidate, "path", UNMATCHED_ROUTE)
        return UNMATCHED_ROUTE

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def observe_request(request: Request, call_next):
            # Replaced by the next request; the 500 handler runs after this returns
            request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
            start_time = time.perf_counter()
            status_code = 500

            self.logger.debug(
                "Incoming request",
                method=request.method,
                path=request.url.path,
                client=request.client.host if request.client else None
            )

            try:
                response = await call_next(request)
                status_code = response.status_code
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                duration = time.perf_counter() - start_time
                route = self._route_template(request)

                self.metrics.record_http_request(
                    method=request.method,
                    route=route,
                    status_code=status_code,
                    duration=duration
                )

                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    route=route,
                    status_code=status_code,
                    duration_ms=round(duration * 1000, 2)
                )

    def _setup_exception_handlers(self):
        """Map errors to JSON bodies with a human-readable ``error`` field."""

        @self.app.exception_handler(ServiceException)
        async def service_exception_handler(request: Request, exc: ServiceException):
            log = self.logger.error if exc.status_code >= 500 else self.logger.warning
            log(
                "Request failed",
                code=exc.code,
                message=exc.message,
                details=exc.details,
                path=request.url.path
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump(exclude_none=True)
            )

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            errors = exc.errors()
            if any(err.get("loc", ())[:1] == ("path",) for err in errors):
                message = self.invalid_path_message
            else:
                message = _summarize_validation_errors(errors)
            self.logger.warning("Request validation failed", path=request.url.path, error=message)
            return JSONResponse(
                status_code=400,
                content={
                    "error": message,
                    "details": [
                        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
                        for err in errors
                    ],
                }
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            if exc.status_code == 404:
                message = "Not found"
            elif exc.status_code == 405:
                message = "Method not allowed"
            else:
                message = str(exc.detail)
            return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            self.logger.error(
                "Unhandled exception",
                path=request.url.path,
                error=str(exc),
                exc_info=exc
            )
            content = {"error": "Internal server error", "message": str(exc)}
            trace_id = current_trace_id()
            if trace_id:
                content["trace_id"] = trace_id
            headers = {}
            request_id = get_request_id()
            if request_id:
                headers[REQUEST_ID_HEADER] = request_id
            return JSONResponse(status_code=500, content=content, headers=headers)

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            payload, content_type = self.metrics.export()
            return Response(content=payload, media_type=content_type)

    def uptime_seconds(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    async def start(self):
        """Start service components. Override in subclasses."""

    async def stop(self):
        """Stop service components. Override in subclasses."""

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )


def _summarize_validation_errors(errors) -> str:
    missing = []
    invalid = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "body"
        if err.get("type") == "missing":
            missing.append(field)
        else:
            invalid.append(f"{field}: {err.get('msg')}")

    parts = []
    if missing:
        parts.append(f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")
    parts.extend(invalid)
    return "; ".join(parts) or "Invalid request"
