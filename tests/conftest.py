# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared pytest fixtures for wopi_viewer tests."""

from __future__ import annotations

import pytest

from wopi_viewer.viewer_config import ViewerConfig
from wopi_viewer.viewer_proxy import ViewerProxy

TEST_SECRET = "test-signing-secret-0123456789abcdef"
DOCX_BYTES = b"PK\x03\x04" + b"fake docx payload " * 64


class FakeClock:
    """Controllable time source for capability expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def secret():
    """Capability signing secret used by every test proxy."""
    return TEST_SECRET


@pytest.fixture
def docx_bytes():
    """Content of the sample document."""
    return DOCX_BYTES


@pytest.fixture
def clock():
    """Fake clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def document(tmp_path):
    """Non-empty sample.docx in a temporary documents folder."""
    path = tmp_path / "documents" / "sample.docx"
    path.parent.mkdir()
    path.write_bytes(DOCX_BYTES)
    return path


@pytest.fixture
def config(document):
    """ViewerConfig pointing at the temporary document."""
    return ViewerConfig(
        jwt_secret=TEST_SECRET,
        token_ttl=3600,
        sweep_interval=300,
        wopi_base_url="https://host.example.com",
        wopi_client_url="https://viewer.example.com/wv/wordviewerframe.aspx",
        document_id="sample-document",
        document_path=str(document),
    )


@pytest.fixture
def proxy(config, clock):
    """ViewerProxy wired to the fake clock."""
    return ViewerProxy(config=config, clock=clock)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
