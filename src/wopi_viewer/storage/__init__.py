# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Read-only document storage.

Local filesystem only. Documents are registered under a WOPI file_id and
served as a byte stream; the host never writes back.

Usage:
    from wopi_viewer.storage import DocumentStore

    store = DocumentStore()
    store.register("sample-document", "/data/documents/sample.docx")
    doc = await store.stat("sample-document")
"""

from .document_store import DEFAULT_MEDIA_TYPE, MEDIA_TYPES, Document, DocumentStore, media_type_for

__all__ = ["DEFAULT_MEDIA_TYPE", "Document", "DocumentStore", "MEDIA_TYPES", "media_type_for"]
