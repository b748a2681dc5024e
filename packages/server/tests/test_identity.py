"""
Tests for identity resolution (session email > claimed email > address).
"""

from __future__ import annotations

import pytest
from starlette.requests import Request

from app.core.identity import anonymous_identity, client_address, resolve_identity


def _request(headers: dict | None = None, client: tuple | None = ("10.0.0.7", 5123)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestResolveIdentity:
    def test_session_email_wins(self):
        identity = resolve_identity("Owner@Example.com", "1.2.3.4", claimed_email="other@example.com")
        assert identity == "owner@example.com"

    def test_claimed_email_when_anonymous(self):
        assert resolve_identity(None, "1.2.3.4", claimed_email=" Voter@Example.com ") == "voter@example.com"

    def test_address_fallback(self):
        assert resolve_identity(None, "1.2.3.4") == "anonymous-1.2.3.4@feedbackhub.local"

    def test_blank_emails_are_ignored(self):
        assert resolve_identity("  ", "1.2.3.4", claimed_email="") == "anonymous-1.2.3.4@feedbackhub.local"

    def test_deterministic(self):
        assert resolve_identity(None, "5.6.7.8") == resolve_identity(None, "5.6.7.8")

    def test_same_address_shares_identity(self):
        """Voters behind one NAT address collapse to one identity."""
        assert resolve_identity(None, "203.0.113.9") == resolve_identity(None, "203.0.113.9")
        assert resolve_identity(None, "203.0.113.9") != resolve_identity(None, "203.0.113.10")


class TestAnonymousIdentity:
    def test_ipv6_is_email_safe(self):
        assert anonymous_identity("2001:DB8::1", "feedbackhub.local") == "anonymous-2001-db8--1@feedbackhub.local"

    def test_missing_address(self):
        assert anonymous_identity("", "example.test") == "anonymous-unknown@example.test"


class TestClientAddress:
    def test_first_forwarded_hop(self):
        req = _request({"X-Forwarded-For": "198.51.100.1, 10.0.0.1"})
        assert client_address(req) == "198.51.100.1"

    def test_real_ip_header(self):
        req = _request({"X-Real-IP": "198.51.100.2"})
        assert client_address(req) == "198.51.100.2"

    def test_socket_peer(self):
        assert client_address(_request()) == "10.0.0.7"

    @pytest.mark.parametrize("client", [None, ("", 0)])
    def test_unknown(self, client):
        assert client_address(_request(client=client)) == "unknown"
