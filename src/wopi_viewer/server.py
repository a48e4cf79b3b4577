# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ASGI application entry point for uvicorn.

Configuration via WOPI_* environment variables (see viewer_config).

Example:
    Run with uvicorn::

        WOPI_JWT_SECRET=... WOPI_DOCUMENT_PATH=/data/sample.docx \\
            uvicorn wopi_viewer.server:app --host 0.0.0.0 --port 8080

    Or via CLI::

        wopi-viewer serve --port 8080

Note:
    The application includes a lifespan context manager that calls
    proxy.start() on startup and proxy.stop() on shutdown, so the
    capability sweeper lives exactly as long as the server.
"""

from .viewer_config import viewer_config_from_env
from .viewer_proxy import ViewerProxy

# Create proxy and expose its API (includes lifespan management)
_proxy = ViewerProxy(config=viewer_config_from_env())
app = _proxy.api
