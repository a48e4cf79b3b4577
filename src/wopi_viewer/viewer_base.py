# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for the viewer host: capabilities, documents, endpoints, interfaces.

ViewerServerBase is the foundation layer of wopi-viewer, providing:

1. Configuration: ViewerConfig instance at self.config
2. Capabilities: CapabilityStore, issuer, validator and sweeper
3. Documents: DocumentStore with the configured document registered
4. Endpoints: Registry at self.endpoints with autodiscovered Endpoint classes
5. Interfaces: Lazy `api` (FastAPI) and `cli` (Click) properties

Class Hierarchy:
    ViewerServerBase (this class)
        └── ViewerProxy (viewer_proxy.py): adds WOPI protocol handlers

Usage (testing without runtime):
    base = ViewerServerBase(ViewerConfig(jwt_secret="test"), clock=fake_clock)
    capability = base.issuer.issue("sample-document")

Usage (production via proxy.api):
    proxy = ViewerProxy(config=viewer_config_from_env())
    app = proxy.api  # FastAPI app with auto-start/stop lifespan
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import TYPE_CHECKING

from .capabilities import (
    CapabilityIssuer,
    CapabilityStore,
    CapabilitySweeper,
    CapabilityValidator,
)
from .capabilities.store import Clock
from .interface import BaseEndpoint
from .storage import DocumentStore
from .viewer_config import ViewerConfig

if TYPE_CHECKING:
    import click
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

_SECRET_FILE = Path("/run/secrets/wopi_jwt_secret")


class ViewerServerBase:
    """Foundation layer: config, capability lifecycle, documents, interfaces.

    Attributes:
        config: ViewerConfig instance with all configuration
        capabilities: CapabilityStore shared by issuer, validator and sweeper
        issuer: CapabilityIssuer
        validator: CapabilityValidator
        sweeper: CapabilitySweeper background task
        documents: DocumentStore
        endpoints: Dict of Endpoint instances keyed by name

    Properties:
        api: FastAPI app (lazy, created on first access)
        cli: Click CLI group (lazy, created on first access)
    """

    def __init__(self, config: ViewerConfig | None = None, clock: Clock | None = None):
        """Initialize base viewer host.

        Args:
            config: ViewerConfig instance. If None, creates default.
            clock: Time source for capability expiry. Defaults to time.time.
        """
        self.config = config or ViewerConfig()

        secret = self._load_signing_secret()
        self.capabilities = CapabilityStore(clock=clock)
        self.issuer = CapabilityIssuer(
            self.capabilities,
            secret,
            ttl=self.config.token_ttl,
            algorithm=self.config.jwt_algorithm,
        )
        self.validator = CapabilityValidator(
            self.capabilities, secret, algorithm=self.config.jwt_algorithm
        )
        self.sweeper = CapabilitySweeper(self.capabilities, interval=self.config.sweep_interval)

        self.documents = DocumentStore()
        self.documents.register(
            self.config.document_id,
            self.config.document_path,
            display_name=self.config.document_name,
        )

        self.endpoints: dict[str, BaseEndpoint] = {}
        self._discover_endpoints()

    def _load_signing_secret(self) -> str:
        """Resolve the capability signing secret.

        Sources (in priority order):
        1. config.jwt_secret
        2. /run/secrets/wopi_jwt_secret file (Docker/K8s secrets)
        3. Random per-process secret (capabilities do not survive restarts)
        """
        if self.config.jwt_secret:
            return self.config.jwt_secret

        if _SECRET_FILE.exists():
            secret = _SECRET_FILE.read_text().strip()
            if secret:
                return secret

        logger.warning(
            "No JWT secret configured (WOPI_JWT_SECRET); using a random per-process secret"
        )
        return secrets.token_urlsafe(32)

    def _discover_endpoints(self) -> None:
        """Autodiscover Endpoint classes from wopi_viewer.entities."""
        for endpoint_class in BaseEndpoint.discover():
            # InstanceEndpoint needs proxy reference, others just need the store
            if endpoint_class.name == "instance":
                self.endpoints[endpoint_class.name] = endpoint_class(self.capabilities, proxy=self)
            else:
                self.endpoints[endpoint_class.name] = endpoint_class(self.capabilities)

    def endpoint(self, name: str) -> BaseEndpoint:
        """Get endpoint by name."""
        if name not in self.endpoints:
            raise ValueError(f"Endpoint '{name}' not found")
        return self.endpoints[name]

    # -------------------------------------------------------------------------
    # Interface factories (lazy properties)
    # -------------------------------------------------------------------------

    @property
    def api(self) -> FastAPI:
        """FastAPI app with all routes and lifespan.

        Created on first access. Includes default lifespan that calls
        start() on startup and stop() on shutdown.

        Usage:
            uvicorn wopi_viewer.server:app
        """
        if getattr(self, "_api", None) is None:
            from .interface import create_app

            self._api = create_app(self, api_token=self.config.api_token)  # type: ignore[arg-type]
        return self._api

    @property
    def cli(self) -> click.Group:
        """Click CLI group with service commands (serve, check).

        Usage:
            wopi-viewer --help
        """
        if getattr(self, "_cli", None) is None:
            self._cli = self._create_cli()
        return self._cli

    def _create_cli(self) -> click.Group:
        """Build Click CLI: serve and check commands."""
        import asyncio

        import click

        @click.group()
        @click.version_option(package_name="wopi-viewer")
        def cli() -> None:
            """wopi-viewer: read-only WOPI document host."""
            pass

        @cli.command("serve")
        @click.option("--host", default="0.0.0.0", help="Bind host")
        @click.option("--port", "-p", default=self.config.port, help="Bind port")
        @click.option("--reload", is_flag=True, help="Enable auto-reload")
        def serve_cmd(host: str, port: int, reload: bool) -> None:
            """Start the API server."""
            import uvicorn

            uvicorn.run(
                "wopi_viewer.server:app",
                host=host,
                port=port,
                reload=reload,
            )

        @cli.command("check")
        @click.option("--file-id", default=None, help="Document to check (default: configured)")
        def check_cmd(file_id: str | None) -> None:
            """Check that a document can be served."""
            file_id = file_id or self.config.document_id
            doc = asyncio.run(self.documents.stat(file_id))
            if doc is None:
                click.echo(f"{file_id}: not found", err=True)
                raise SystemExit(1)
            if doc.size == 0:
                click.echo(f"{file_id}: empty ({doc.path})", err=True)
                raise SystemExit(1)
            click.echo(f"{file_id}: {doc.display_name} {doc.size} bytes ({doc.media_type})")

        return cli


__all__ = ["ViewerServerBase"]
