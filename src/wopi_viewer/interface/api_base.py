# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""FastAPI application: WOPI protocol routes and management routes.

Components:
    create_app: FastAPI application factory.
    content_security_policy: Content-Security-Policy value for the frame sources.
    register_endpoint: Register endpoint methods as FastAPI routes.
    require_token: X-API-Token dependency for management routes.

Route groups:
    WOPI (capability in the access_token query parameter):
        GET /wopi/api/document/access
        GET /wopi/files/{file_id}
        GET /wopi/files/{file_id}/contents
    Unauthenticated:
        GET /health
    Management (X-API-Token when configured), generated from endpoints:
        GET  /instance/status
        GET  /capabilities/list
        POST /capabilities/revoke
        POST /capabilities/cleanup

Example:
    Create and run the API server::

        from wopi_viewer.interface import create_app
        from wopi_viewer.viewer_proxy import ViewerProxy

        proxy = ViewerProxy()
        app = create_app(proxy, api_token="secret")

        import uvicorn
        uvicorn.run(app, host="0.0.0.0", port=8080)
"""

from __future__ import annotations

import inspect
import logging
import secrets
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from fastapi.security import APIKeyHeader
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import DocumentNotFound, Unauthorized, ViewerError
from .endpoint_base import BaseEndpoint

if TYPE_CHECKING:
    from ..viewer_proxy import ViewerProxy

logger = logging.getLogger(__name__)

# Authentication constants
API_TOKEN_HEADER_NAME = "X-API-Token"
api_key_scheme = APIKeyHeader(name=API_TOKEN_HEADER_NAME, auto_error=False)


def register_endpoint(app: FastAPI | APIRouter, endpoint: BaseEndpoint, prefix: str = "") -> None:
    """Register all methods of an endpoint as FastAPI routes.

    GET methods take query parameters, @POST methods take a JSON body
    validated by a Pydantic model built from the method signature.

    Args:
        app: FastAPI app or APIRouter to register routes on.
        endpoint: Endpoint instance.
        prefix: Optional URL prefix. Defaults to /{endpoint.name}.

    Example:
        ::

            endpoint = CapabilityEndpoint(proxy.capabilities)
            register_endpoint(router, endpoint)
            # Creates routes: GET /capabilities/list, POST /capabilities/revoke, ...
    """
    base_path = prefix or f"/{endpoint.name}"

    for method_name, method in endpoint.get_methods():
        path = f"{base_path}/{method_name}"
        doc = method.__doc__ or f"{method_name} operation"

        if endpoint.get_http_method(method_name) == "POST":
            _register_body_route(app, path, method, doc, endpoint.create_request_model(method_name))
        else:
            _register_query_route(app, path, method, doc)


def _register_query_route(
    app: FastAPI | APIRouter,
    path: str,
    method: Callable,
    doc: str,
) -> None:
    """Register GET route with query parameters."""
    sig = inspect.signature(method)

    params = []
    for param_name, param in sig.parameters.items():
        if param_name == "self":
            continue
        ann = param.annotation if param.annotation is not inspect.Parameter.empty else str
        default = param.default if param.default is not inspect.Parameter.empty else ...
        params.append((param_name, ann, default))

    async def handler(**kwargs: Any) -> Any:
        return await method(**kwargs)

    handler.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        parameters=[
            inspect.Parameter(
                name=name,
                kind=inspect.Parameter.KEYWORD_ONLY,
                default=Query(default),
                annotation=ann,
            )
            for name, ann, default in params
        ]
    )
    handler.__doc__ = doc
    app.get(path, summary=doc.split("\n")[0])(handler)


def _register_body_route(
    app: FastAPI | APIRouter,
    path: str,
    method: Callable,
    doc: str,
    RequestModel: type,
) -> None:
    """Register POST route with request body."""

    async def handler(data: RequestModel) -> Any:  # type: ignore[valid-type]
        return await method(**data.model_dump())

    handler.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        parameters=[
            inspect.Parameter(
                "data",
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                annotation=RequestModel,
            ),
        ]
    )
    handler.__doc__ = doc
    app.post(path, summary=doc.split("\n")[0])(handler)


# =============================================================================
# Authentication
# =============================================================================


async def require_token(
    request: Request,
    api_token: str | None = Depends(api_key_scheme),
) -> None:
    """Validate the X-API-Token header for management routes.

    No token configured = open access.

    Raises:
        HTTPException: 401 if the token is missing or wrong.
    """
    expected = getattr(request.app.state, "api_token", None)
    if expected is None:
        return
    if api_token and secrets.compare_digest(api_token, expected):
        return
    raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or missing API token")


auth_dependency = Depends(require_token)


# =============================================================================
# Application factory
# =============================================================================


def create_app(
    svc: ViewerProxy,
    api_token: str | None = None,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        svc: ViewerProxy instance implementing the protocol.
        api_token: Optional token for X-API-Token management authentication.
        lifespan: Optional lifespan context manager. If None, creates
            default that starts/stops the proxy service.

    Returns:
        Configured FastAPI application with all routes registered.
    """
    if lifespan is None:
        from collections.abc import AsyncGenerator
        from contextlib import asynccontextmanager

        @asynccontextmanager
        async def default_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            """Default lifespan: start and stop the ViewerProxy service."""
            logger.info("Starting wopi-viewer service...")
            await svc.start()
            logger.info("wopi-viewer service started")
            try:
                yield
            finally:
                logger.info("Stopping wopi-viewer service...")
                await svc.stop()
                logger.info("wopi-viewer service stopped")

        lifespan = default_lifespan

    app = FastAPI(title="WOPI Viewer Host", lifespan=lifespan)
    app.state.api_token = api_token

    app.add_middleware(
        CORSMiddleware,
        allow_origins=svc.config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    _register_security_headers(app, svc)
    _register_exception_handlers(app, svc)
    _register_management_endpoints(app, svc)
    _register_wopi_endpoints(app, svc)

    return app


def content_security_policy(frame_sources: list[str]) -> str:
    """CSP allowing the provider viewer frame and nothing else off-site."""
    directives = {
        "default-src": ["'self'"],
        "frame-src": frame_sources,
        "script-src": ["'self'", "'unsafe-inline'"],
        "style-src": ["'self'", "'unsafe-inline'"],
    }
    return "; ".join(f"{name} {' '.join(values)}" for name, values in directives.items())


def _register_security_headers(app: FastAPI, svc: ViewerProxy) -> None:
    """Add security headers to every response."""
    headers = {
        "Content-Security-Policy": content_security_policy(svc.config.frame_sources),
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "no-referrer",
    }

    @app.middleware("http")
    async def security_headers(request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response


def _register_exception_handlers(app: FastAPI, svc: ViewerProxy) -> None:
    """Map the error taxonomy to HTTP responses."""

    @app.exception_handler(ViewerError)
    async def viewer_error_handler(request: Request, exc: ViewerError) -> JSONResponse:
        body: dict[str, Any] = {"error": exc.public_message}
        if isinstance(exc, Unauthorized):
            logger.warning(
                f"{request.method} {request.url.path}: capability rejected ({exc.reason.value})"
            )
        elif isinstance(exc, DocumentNotFound):
            logger.warning(f"{request.method} {request.url.path}: {exc}")
            body["message"] = str(exc)
        else:
            logger.error(f"{request.method} {request.url.path}: {exc}")
            body["message"] = str(exc) if svc.config.debug else "Something went wrong"
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
        return await http_exception_handler(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors with logging."""
        logger.error(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=422, content={"detail": exc.errors()})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if svc.config.debug else "Something went wrong",
            },
        )


def _register_management_endpoints(app: FastAPI, svc: ViewerProxy) -> None:
    """Register /health and the token-protected management endpoints."""
    instance_endpoint = svc.endpoint("instance")

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint for container orchestration."""
        return await instance_endpoint.health()

    router = APIRouter(dependencies=[auth_dependency])
    for endpoint in svc.endpoints.values():
        register_endpoint(router, endpoint)
    app.include_router(router)


def _register_wopi_endpoints(app: FastAPI, svc: ViewerProxy) -> None:
    """Register WOPI protocol endpoints.

    These endpoints use the capability in the access_token query string
    (not X-API-Token). The Access endpoint is unauthenticated: caller trust
    comes from the deployment boundary (see ViewerConfig.trust_upstream_identity).
    """

    @app.get("/wopi/api/document/access")
    async def wopi_access(
        request: Request,
        file_id: str | None = Query(None, description="Document to open (default: configured document)"),
    ) -> dict:
        """Mint a capability and return the provider-facing document URL."""
        subject = None
        if svc.config.trust_upstream_identity:
            subject = request.headers.get(svc.config.identity_header) or None
        return await svc.access(file_id=file_id, subject=subject)

    @app.get("/wopi/files/{file_id}")
    async def wopi_check_file_info(
        file_id: str,
        access_token: str | None = Query(None, description="WOPI access token"),
    ) -> dict:
        """WOPI CheckFileInfo: Return read-only file metadata."""
        return await svc.check_file_info(file_id, access_token)

    @app.get("/wopi/files/{file_id}/contents", response_class=StreamingResponse)
    async def wopi_get_file(
        file_id: str,
        access_token: str | None = Query(None, description="WOPI access token"),
    ) -> StreamingResponse:
        """WOPI GetFile: Stream file content."""
        download = await svc.get_file(file_id, access_token)
        return StreamingResponse(
            download.stream,
            media_type=download.media_type,
            headers={
                "Content-Disposition": download.content_disposition,
                "X-WOPI-ItemVersion": download.document.version,
            },
        )


__all__ = [
    "API_TOKEN_HEADER_NAME",
    "api_key_scheme",
    "auth_dependency",
    "content_security_policy",
    "create_app",
    "register_endpoint",
    "require_token",
]
