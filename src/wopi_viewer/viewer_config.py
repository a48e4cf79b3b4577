# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclass for the viewer host.

ViewerConfig is the single entry point for all configuration. It can be
built explicitly or from WOPI_* environment variables via
viewer_config_from_env().

Usage:
    config = ViewerConfig(
        document_path="/data/documents/sample.docx",
        wopi_base_url="https://host.example.com",
        wopi_client_url="https://word-view.officeapps.live.com/wv/wordviewerframe.aspx",
    )
    proxy = ViewerProxy(config=config)

    # Access config
    ttl = proxy.config.token_ttl
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

ANONYMOUS_SUBJECT = "anonymous"

_TRUE_VALUES = ("1", "true", "yes")


def _default_cors_origins() -> list[str]:
    return ["http://localhost:3000", "http://127.0.0.1:3000"]


def _default_frame_sources() -> list[str]:
    return ["'self'", "*.officeapps.live.com", "*.office.com"]


@dataclass
class ViewerConfig:
    """Main configuration container for the viewer host.

    Top-Level Settings:
        instance_name: Service identifier for display
        port: Default API server port
        api_token: Optional token for the management API (X-API-Token)
        debug: Expose internal error detail in 500 responses

    Capability Settings:
        jwt_secret: HMAC secret used to sign capabilities
        jwt_algorithm: JWT signing algorithm
        token_ttl: Capability time-to-live in seconds
        sweep_interval: Seconds between expired-capability sweeps

    WOPI Settings:
        wopi_base_url: Public base URL the provider uses to reach this host
        wopi_client_url: Provider viewer frame URL (Office Online, Collabora...)
        ui_locale: Locale passed to the provider as ui/rs
        company_timezone: Timezone reported in CheckFileInfo
        brand_name: Breadcrumb brand name
        folder_name: Breadcrumb folder name
        owner_id: OwnerId reported in CheckFileInfo

    Document Settings:
        document_id: File id of the served document
        document_path: Filesystem path of the served document
        document_name: Display name (defaults to the path basename)

    Security Headers:
        cors_origins: Browser origins allowed to call the Access endpoint
        frame_sources: CSP frame-src list for the provider viewer frame

    Trust Boundary:
        trust_upstream_identity: The Access call performs no authentication.
            Deployments rely on the upstream network/identity boundary. When
            True, the subject is read from identity_header if present.
        identity_header: Header carrying the upstream-authenticated user
    """

    instance_name: str = "wopi-viewer"
    """Instance name for display and identification."""

    port: int = 8080
    """Default port for API server."""

    api_token: str | None = None
    """Management API token. If None, management routes are open."""

    debug: bool = False
    """Include exception messages in generic 500 responses."""

    jwt_secret: str | None = None
    """Capability signing secret. If None, a random one is generated at startup."""

    jwt_algorithm: str = "HS256"

    token_ttl: int = 3600
    """Capability time-to-live in seconds (default 1 hour)."""

    sweep_interval: float = 300.0
    """Expired-capability sweep interval in seconds (default 5 minutes)."""

    wopi_base_url: str = "http://localhost:8080"
    """Base URL the WOPI client uses to call back into this host."""

    wopi_client_url: str = "https://word-view.officeapps.live.com/wv/wordviewerframe.aspx"
    """WOPI client viewer frame URL."""

    ui_locale: str = "en-US"

    company_timezone: str = "UTC"

    brand_name: str = "DOCX Viewer"

    folder_name: str = "Documents"

    owner_id: str = "admin"

    document_id: str = "sample-document"
    """File id of the document exposed by the host."""

    document_path: str = "documents/sample.docx"
    """Filesystem path of the document exposed by the host."""

    document_name: str | None = None
    """Display name. Defaults to the basename of document_path."""

    cors_origins: list[str] = field(default_factory=_default_cors_origins)
    """Origins allowed to call the Access endpoint from a browser."""

    frame_sources: list[str] = field(default_factory=_default_frame_sources)
    """Content-Security-Policy frame-src: where provider viewer frames may load from."""

    trust_upstream_identity: bool = True
    """Access is unauthenticated; caller trust comes from the deployment boundary."""

    identity_header: str = "X-Forwarded-User"
    """Header read for the subject when trust_upstream_identity is enabled."""

    def __post_init__(self) -> None:
        if self.token_ttl <= 0:
            raise ValueError("token_ttl must be positive")
        if self.sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")


def viewer_config_from_env() -> ViewerConfig:
    """Build ViewerConfig from WOPI_* environment variables.

    Environment variables:
        WOPI_INSTANCE: Instance name (default: "wopi-viewer")
        WOPI_PORT: Server port (default: 8080)
        WOPI_API_TOKEN: Management API token (default: None, no auth)
        WOPI_DEBUG: Expose error detail (default: false)
        WOPI_JWT_SECRET: Capability signing secret (default: random)
        WOPI_TOKEN_TTL: Capability TTL in seconds (default: 3600)
        WOPI_SWEEP_INTERVAL: Sweep interval in seconds (default: 300)
        WOPI_BASE_URL: Public base URL of this host
        WOPI_CLIENT_URL: WOPI client viewer frame URL
        WOPI_UI_LOCALE: Provider UI locale (default: en-US)
        WOPI_TIMEZONE: CompanyTimezone (default: UTC)
        WOPI_BRAND_NAME: Breadcrumb brand name
        WOPI_OWNER_ID: OwnerId (default: admin)
        WOPI_DOCUMENT_ID: Served file id (default: sample-document)
        WOPI_DOCUMENT_PATH: Served file path (default: documents/sample.docx)
        WOPI_DOCUMENT_NAME: Display name (default: path basename)
        WOPI_CORS_ORIGINS: Comma-separated allowed origins
        WOPI_FRAME_SOURCES: Comma-separated CSP frame-src entries
        WOPI_TRUST_UPSTREAM: Read subject from identity header (default: true)
        WOPI_IDENTITY_HEADER: Identity header (default: X-Forwarded-User)

    Returns:
        ViewerConfig instance populated from environment.
    """
    defaults = ViewerConfig()
    cors = os.environ.get("WOPI_CORS_ORIGINS")
    frames = os.environ.get("WOPI_FRAME_SOURCES")
    return ViewerConfig(
        instance_name=os.environ.get("WOPI_INSTANCE", defaults.instance_name),
        port=int(os.environ.get("WOPI_PORT", str(defaults.port))),
        api_token=os.environ.get("WOPI_API_TOKEN"),
        debug=os.environ.get("WOPI_DEBUG", "").lower() in _TRUE_VALUES,
        jwt_secret=os.environ.get("WOPI_JWT_SECRET"),
        token_ttl=int(os.environ.get("WOPI_TOKEN_TTL", str(defaults.token_ttl))),
        sweep_interval=float(
            os.environ.get("WOPI_SWEEP_INTERVAL", str(defaults.sweep_interval))
        ),
        wopi_base_url=os.environ.get("WOPI_BASE_URL", defaults.wopi_base_url),
        wopi_client_url=os.environ.get("WOPI_CLIENT_URL", defaults.wopi_client_url),
        ui_locale=os.environ.get("WOPI_UI_LOCALE", defaults.ui_locale),
        company_timezone=os.environ.get("WOPI_TIMEZONE", defaults.company_timezone),
        brand_name=os.environ.get("WOPI_BRAND_NAME", defaults.brand_name),
        owner_id=os.environ.get("WOPI_OWNER_ID", defaults.owner_id),
        document_id=os.environ.get("WOPI_DOCUMENT_ID", defaults.document_id),
        document_path=os.environ.get("WOPI_DOCUMENT_PATH", defaults.document_path),
        document_name=os.environ.get("WOPI_DOCUMENT_NAME"),
        cors_origins=(
            [o.strip() for o in cors.split(",") if o.strip()]
            if cors
            else defaults.cors_origins
        ),
        frame_sources=(
            [s.strip() for s in frames.split(",") if s.strip()]
            if frames
            else defaults.frame_sources
        ),
        trust_upstream_identity=os.environ.get("WOPI_TRUST_UPSTREAM", "true").lower()
        in _TRUE_VALUES,
        identity_header=os.environ.get("WOPI_IDENTITY_HEADER", defaults.identity_header),
    )


__all__ = ["ANONYMOUS_SUBJECT", "ViewerConfig", "viewer_config_from_env"]
