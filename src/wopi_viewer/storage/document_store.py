# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Read-only document store keyed by WOPI file_id.

The store is a passive byte source: it reports existence, size and
modification time, and streams file content on demand. It never writes.

Example:
    store = DocumentStore()
    store.register("sample-document", "/data/documents/sample.docx")

    if await store.is_servable("sample-document"):
        doc = await store.stat("sample-document")
        async for chunk in store.open_read_stream("sample-document"):
            ...
"""

from __future__ import annotations

import asyncio
import logging
import stat
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

# Media types for the Office formats a WOPI viewer can render
MEDIA_TYPES = {
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".doc": "application/msword",
    ".xls": "application/vnd.ms-excel",
    ".ppt": "application/vnd.ms-powerpoint",
    ".odt": "application/vnd.oasis.opendocument.text",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".odp": "application/vnd.oasis.opendocument.presentation",
    ".pdf": "application/pdf",
}
DEFAULT_MEDIA_TYPE = "application/octet-stream"


def media_type_for(name: str) -> str:
    """Content type for a document name, based on its extension."""
    return MEDIA_TYPES.get(Path(name).suffix.lower(), DEFAULT_MEDIA_TYPE)


@dataclass(frozen=True)
class Document:
    """Snapshot of a document's metadata.

    Attributes:
        file_id: WOPI file identifier.
        path: Filesystem location.
        display_name: Name shown to the provider (BaseFileName).
        size: Size in bytes.
        last_modified: Modification time (epoch seconds).
    """

    file_id: str
    path: Path
    display_name: str
    size: int
    last_modified: float

    @property
    def version(self) -> str:
        """Version stamp derived from last-modified time (milliseconds)."""
        return str(int(self.last_modified * 1000))

    @property
    def media_type(self) -> str:
        return media_type_for(self.display_name)


class DocumentStore:
    """Registry of file_id -> local path with async metadata accessors."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size
        self._paths: dict[str, tuple[Path, str]] = {}

    def register(self, file_id: str, path: str | Path, display_name: str | None = None) -> None:
        """Expose a file under file_id.

        Args:
            file_id: WOPI file identifier.
            path: Filesystem path. Need not exist yet.
            display_name: Name reported to the provider. Defaults to basename.
        """
        path = Path(path)
        self._paths[file_id] = (path, display_name or path.name)

    def file_ids(self) -> list[str]:
        return list(self._paths)

    def _resolve(self, file_id: str) -> tuple[Path, str] | None:
        return self._paths.get(file_id)

    async def exists(self, file_id: str) -> bool:
        resolved = self._resolve(file_id)
        if resolved is None:
            return False
        return await asyncio.to_thread(resolved[0].is_file)

    async def size(self, file_id: str) -> int:
        doc = await self.stat(file_id)
        return doc.size if doc else 0

    async def last_modified(self, file_id: str) -> float | None:
        doc = await self.stat(file_id)
        return doc.last_modified if doc else None

    async def stat(self, file_id: str) -> Document | None:
        """Document metadata, or None if unknown or missing on disk."""
        resolved = self._resolve(file_id)
        if resolved is None:
            return None
        path, display_name = resolved
        try:
            st = await asyncio.to_thread(path.stat)
        except (FileNotFoundError, NotADirectoryError):
            return None
        if not stat.S_ISREG(st.st_mode):
            return None
        return Document(
            file_id=file_id,
            path=path,
            display_name=display_name,
            size=st.st_size,
            last_modified=st.st_mtime,
        )

    async def is_servable(self, file_id: str) -> bool:
        """True if the document exists and has content."""
        doc = await self.stat(file_id)
        return doc is not None and doc.size > 0

    async def open_read_stream(self, file_id: str) -> AsyncIterator[bytes]:
        """Yield the document content in chunks.

        The file handle is closed when the iterator is exhausted or closed
        early (e.g. the client disconnected mid-transfer).

        Raises:
            FileNotFoundError: If file_id is unknown or missing on disk.
        """
        resolved = self._resolve(file_id)
        if resolved is None:
            raise FileNotFoundError(file_id)
        handle = await asyncio.to_thread(resolved[0].open, "rb")
        sent = 0
        try:
            while True:
                chunk = await asyncio.to_thread(handle.read, self.chunk_size)
                if not chunk:
                    break
                sent += len(chunk)
                yield chunk
        finally:
            handle.close()
            logger.debug(f"Closed stream for file_id={file_id} after {sent} bytes")


__all__ = [
    "DEFAULT_MEDIA_TYPE",
    "Document",
    "DocumentStore",
    "MEDIA_TYPES",
    "media_type_for",
]
