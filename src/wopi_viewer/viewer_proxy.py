# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Main ViewerProxy class: WOPI protocol implementation.

ViewerProxy extends ViewerServerBase with the three protocol operations.
It holds no per-session state: every call is validated against the
CapabilityStore, so Metadata and Content may arrive in any order, be
repeated, or be skipped.

    [no capability] --access(file_id)--> [capability issued]
    [capability issued] --check_file_info(file_id, token)--> [metadata]
    [capability issued] --get_file(file_id, token)--> [bytes streamed]

Usage:
    from wopi_viewer import ViewerProxy, ViewerConfig

    proxy = ViewerProxy(config=ViewerConfig(document_path="/data/sample.docx"))

    # As FastAPI app
    app = proxy.api

    # Or run directly
    await proxy.start()
    result = await proxy.access()
    info = await proxy.check_file_info(result["fileId"], result["accessToken"])
    await proxy.stop()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from urllib.parse import quote, urlencode

from .capabilities.store import Clock
from .errors import DocumentNotFound, InternalFailure
from .storage import Document
from .viewer_base import ViewerServerBase
from .viewer_config import ANONYMOUS_SUBJECT, ViewerConfig

logger = logging.getLogger(__name__)


@dataclass
class FileDownload:
    """A validated GetFile response, ready to be streamed."""

    document: Document
    stream: AsyncIterator[bytes]

    @property
    def media_type(self) -> str:
        return self.document.media_type

    @property
    def content_disposition(self) -> str:
        """Content-Disposition value; non-ASCII names use the RFC 5987 form."""
        name = self.document.display_name.replace('"', "")
        quoted = quote(name)
        if quoted != name:
            return f"attachment; filename*=utf-8''{quoted}"
        return f'attachment; filename="{name}"'


class ViewerProxy(ViewerServerBase):
    """WOPI protocol host for a single read-only document.

    Attributes:
        config: ViewerConfig instance
        capabilities: CapabilityStore
        documents: DocumentStore
        endpoints: Dict of management endpoint instances

    WOPI Protocol:
        - access: Mint a capability and build the provider URL
        - check_file_info: Return read-only file metadata
        - get_file: Stream file content
    """

    def __init__(self, config: ViewerConfig | None = None, clock: Clock | None = None):
        """Initialize ViewerProxy.

        Args:
            config: ViewerConfig instance. If None, creates default.
            clock: Time source for capability expiry. Defaults to time.time.
        """
        super().__init__(config, clock=clock)
        self._active = False

    @property
    def active(self) -> bool:
        """True between start() and stop()."""
        return self._active

    async def start(self) -> None:
        """Start the host: begin sweeping expired capabilities."""
        await self.sweeper.start()
        self._active = True
        logger.info(f"ViewerProxy '{self.config.instance_name}' started")

    async def stop(self) -> None:
        """Stop the host: stop the sweeper and drop every capability."""
        self._active = False
        await self.sweeper.stop()
        self.capabilities.clear()
        logger.info(f"ViewerProxy '{self.config.instance_name}' stopped")

    # -------------------------------------------------------------------------
    # URL helpers
    # -------------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self.config.wopi_base_url.rstrip("/")

    def wopi_src(self, file_id: str) -> str:
        """WOPISrc: the URL the provider calls back for file_id."""
        return f"{self.base_url}/wopi/files/{quote(file_id, safe='')}"

    def document_url(self, file_id: str, access_token: str) -> str:
        """Provider-facing URL to embed in the viewer frame."""
        query = urlencode(
            {
                "WOPISrc": self.wopi_src(file_id),
                "access_token_hint": access_token,
                "ui": self.config.ui_locale,
                "rs": self.config.ui_locale,
            }
        )
        return f"{self.config.wopi_client_url}?{query}"

    # -------------------------------------------------------------------------
    # WOPI Protocol handlers
    # -------------------------------------------------------------------------

    async def _servable_document(self, file_id: str) -> Document:
        try:
            doc = await self.documents.stat(file_id)
        except OSError as e:
            raise InternalFailure(f"Cannot stat document '{file_id}': {e}") from e
        if doc is None or doc.size == 0:
            raise DocumentNotFound(file_id)
        return doc

    async def access(self, file_id: str | None = None, subject: str | None = None) -> dict:
        """Discovery/Access: mint a capability for one document.

        Args:
            file_id: Document to open. Defaults to the configured document.
            subject: Caller identity. Defaults to the anonymous subject.

        Returns:
            Dict with success, documentUrl, accessToken, accessTokenTtl
            (expiry in epoch milliseconds, as WOPI hosts report it) and fileId.

        Raises:
            DocumentNotFound: If the document is missing or empty.
        """
        file_id = file_id or self.config.document_id
        await self._servable_document(file_id)

        capability = self.issuer.issue(file_id, subject or ANONYMOUS_SUBJECT)
        return {
            "success": True,
            "documentUrl": self.document_url(file_id, capability.token),
            "accessToken": capability.token,
            "accessTokenTtl": int(capability.expires_at * 1000),
            "fileId": file_id,
        }

    async def check_file_info(self, file_id: str, access_token: str | None) -> dict:
        """WOPI CheckFileInfo: Return file metadata.

        The permission set is fixed to read-only: no write, no update, no
        locking.

        Args:
            file_id: File identifier from the request path.
            access_token: Capability presented by the provider.

        Returns:
            CheckFileInfo dict (BaseFileName, Size, OwnerId, Version, ...).

        Raises:
            Unauthorized: If the capability is invalid, expired or bound to
                another file.
            DocumentNotFound: If the document vanished or became empty.
        """
        grant = self.validator.validate_for(access_token, file_id)
        doc = await self._servable_document(file_id)
        logger.info(f"WOPI CheckFileInfo: file_id={file_id} subject={grant.subject}")

        access_url = f"{self.base_url}/wopi/api/document/access"
        contents_url = f"{self.wopi_src(file_id)}/contents?" + urlencode(
            {"access_token": access_token}
        )
        return {
            "BaseFileName": doc.display_name,
            "OwnerId": self.config.owner_id,
            "Size": doc.size,
            "Version": doc.version,
            "UserId": grant.subject,
            "UserFriendlyName": grant.subject,
            "IsAnonymousUser": grant.subject == ANONYMOUS_SUBJECT,
            "UserCanWrite": False,
            "UserCanNotWriteRelative": True,
            "SupportsUpdate": False,
            "SupportsLocks": False,
            "SupportsGetLock": False,
            "ReadOnly": True,
            "CloseButtonClosesWindow": True,
            "HideExportOption": True,
            "HideSaveOption": True,
            "HidePrintOption": False,
            "IsEditRecommended": False,
            "HostViewUrl": access_url,
            "HostEditUrl": access_url,
            "Actions": [{"ActionType": "view", "Url": contents_url}],
            "CompanyTimezone": self.config.company_timezone,
            "BreadcrumbBrandName": self.config.brand_name,
            "BreadcrumbFolderName": self.config.folder_name,
            "BreadcrumbDocName": doc.display_name,
        }

    async def get_file(self, file_id: str, access_token: str | None) -> FileDownload:
        """WOPI GetFile: Validate and open the document for streaming.

        The capability store is not touched once validation returns, so
        streaming never holds the store lock.

        Returns:
            FileDownload with the document snapshot and a byte iterator.

        Raises:
            Unauthorized: As check_file_info.
            DocumentNotFound: As check_file_info.
        """
        grant = self.validator.validate_for(access_token, file_id)
        doc = await self._servable_document(file_id)
        logger.info(
            f"WOPI GetFile: file_id={file_id} subject={grant.subject} size={doc.size}"
        )
        return FileDownload(document=doc, stream=self.documents.open_read_stream(file_id))


__all__ = ["FileDownload", "ViewerProxy"]
