# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the management routes generated from entity endpoints."""

from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from wopi_viewer.capabilities.store import fingerprint
from wopi_viewer.viewer_proxy import ViewerProxy

API_TOKEN = "mgmt-token"
AUTH = {"X-API-Token": API_TOKEN}


@pytest.fixture
def secured_proxy(config, clock):
    return ViewerProxy(config=replace(config, api_token=API_TOKEN), clock=clock)


@pytest.fixture
def client(secured_proxy):
    return TestClient(secured_proxy.api)


class TestManagementAuth:
    """X-API-Token handling."""

    @pytest.mark.parametrize("headers", [{}, {"X-API-Token": "wrong"}])
    def test_rejects_missing_or_wrong_token(self, client, headers):
        response = client.get("/instance/status", headers=headers)

        assert response.status_code == 401

    def test_accepts_token(self, client):
        assert client.get("/instance/status", headers=AUTH).status_code == 200

    def test_open_without_configured_token(self, proxy):
        """No api_token configured: management routes are open."""
        client = TestClient(proxy.api)

        assert client.get("/instance/status").status_code == 200

    def test_health_needs_no_token(self, client):
        assert client.get("/health").status_code == 200

    def test_wopi_routes_ignore_api_token(self, client):
        """WOPI routes are governed by capabilities, not X-API-Token."""
        assert client.get("/wopi/api/document/access").status_code == 200


class TestInstanceRoutes:
    """GET /instance/status."""

    def test_status_counts_capabilities(self, client, secured_proxy):
        client.get("/wopi/api/document/access")
        client.get("/wopi/api/document/access")

        body = client.get("/instance/status", headers=AUTH).json()

        assert body["ok"] is True
        assert body["instance"] == "wopi-viewer"
        assert body["capabilities"] == 2

    def test_status_reports_lifecycle(self, secured_proxy):
        """active follows the app lifespan."""
        with TestClient(secured_proxy.api) as client:
            assert client.get("/instance/status", headers=AUTH).json()["active"] is True

        assert secured_proxy.active is False
        body = TestClient(secured_proxy.api).get("/instance/status", headers=AUTH).json()
        assert body["active"] is False


class TestCapabilityRoutes:
    """/capabilities/* routes."""

    def test_list_hides_raw_tokens(self, client):
        """Listing exposes fingerprints, never tokens."""
        token = client.get("/wopi/api/document/access").json()["accessToken"]

        listed = client.get("/capabilities/list", headers=AUTH).json()

        assert len(listed) == 1
        assert listed[0]["fingerprint"] == fingerprint(token)
        assert listed[0]["file_id"] == "sample-document"
        assert listed[0]["subject"] == "anonymous"
        assert token not in str(listed)

    def test_list_newest_first_and_filter(self, client, clock, secured_proxy):
        first = client.get("/wopi/api/document/access").json()["accessToken"]
        clock.advance(10)
        second = client.get("/wopi/api/document/access").json()["accessToken"]

        listed = client.get("/capabilities/list", headers=AUTH).json()
        assert [c["fingerprint"] for c in listed] == [fingerprint(second), fingerprint(first)]

        filtered = client.get(
            "/capabilities/list", params={"file_id": "other"}, headers=AUTH
        ).json()
        assert filtered == []

    def test_list_skips_expired(self, client, clock):
        client.get("/wopi/api/document/access")
        clock.advance(3600)

        assert client.get("/capabilities/list", headers=AUTH).json() == []

    def test_revoke(self, client):
        """Revoked capabilities are refused by the WOPI routes."""
        token = client.get("/wopi/api/document/access").json()["accessToken"]

        response = client.post(
            "/capabilities/revoke", json={"fingerprint": fingerprint(token)}, headers=AUTH
        )

        assert response.json() == {"ok": True, "fingerprint": fingerprint(token)}
        check = client.get("/wopi/files/sample-document", params={"access_token": token})
        assert check.status_code == 401

    def test_revoke_unknown(self, client):
        response = client.post(
            "/capabilities/revoke", json={"fingerprint": "0" * 16}, headers=AUTH
        )

        assert response.json()["ok"] is False

    def test_revoke_requires_fingerprint(self, client):
        response = client.post("/capabilities/revoke", json={}, headers=AUTH)

        assert response.status_code == 422

    def test_cleanup(self, client, clock, secured_proxy):
        client.get("/wopi/api/document/access")
        clock.advance(3600)
        client.get("/wopi/api/document/access")

        dry = client.post("/capabilities/cleanup", json={"dry_run": True}, headers=AUTH).json()
        assert dry == {"deleted": 0, "would_delete": 1}
        assert len(secured_proxy.capabilities) == 2

        done = client.post("/capabilities/cleanup", json={}, headers=AUTH).json()
        assert done == {"deleted": 1}
        assert len(secured_proxy.capabilities) == 1
