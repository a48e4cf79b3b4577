# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""wopi-viewer: read-only WOPI host for a single document.

A front-end calls the Access endpoint, embeds the returned URL in a viewer
frame, and the WOPI client (Office Online, Collabora Online, OnlyOffice)
calls back with a short-lived signed capability bound to that one file.

Main components:
    ViewerConfig: Configuration dataclass
    ViewerProxy: Host service with WOPI protocol handlers
    viewer_config_from_env: Factory to build config from environment

Usage:
    from wopi_viewer import ViewerProxy, ViewerConfig

    config = ViewerConfig(
        document_path="/data/documents/sample.docx",
        wopi_base_url="https://host.example.com",
    )
    proxy = ViewerProxy(config=config)
    app = proxy.api  # FastAPI application
"""

__version__ = "0.1.0"

from .viewer_config import ViewerConfig, viewer_config_from_env
from .viewer_proxy import ViewerProxy

__all__ = [
    "ViewerConfig",
    "ViewerProxy",
    "viewer_config_from_env",
    "main",
]


def main() -> None:
    """CLI entry point. Creates a ViewerProxy from the environment and runs the CLI."""
    proxy = ViewerProxy(config=viewer_config_from_env())
    proxy.cli()
