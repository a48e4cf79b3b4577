# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Interface layer for the HTTP API.

Components:
    BaseEndpoint: Base class for management endpoint definitions.
    POST: Decorator marking an endpoint method as HTTP POST.
    create_app: FastAPI application factory.
    register_api_endpoint: Register endpoint as FastAPI routes.

Example:
    Create a FastAPI application::

        from wopi_viewer.interface import create_app
        from wopi_viewer.viewer_proxy import ViewerProxy

        proxy = ViewerProxy()
        app = create_app(proxy, api_token="secret")
"""

from .endpoint_base import POST, BaseEndpoint
from .api_base import create_app
from .api_base import register_endpoint as register_api_endpoint

__all__ = [
    "BaseEndpoint",
    "POST",
    "create_app",
    "register_api_endpoint",
]
