"""
Identity resolution for voting and admission control.

An identity is the string a vote's uniqueness and a rate-limit bucket are
scoped to. Precedence: authenticated session email, then a voter-supplied
email, then a synthetic email derived from the client's network address.

Known limitation: every anonymous voter behind one address (NAT, office
proxy) shares a single identity, so they get one vote between them.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from app.core.config import get_settings

UNKNOWN_ADDRESS = "unknown"


def client_address(request: Request) -> str:
    """Best-effort client address: first X-Forwarded-For hop, X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_ADDRESS


def anonymous_identity(address: str, domain: Optional[str] = None) -> str:
    domain = domain or get_settings().anonymous_email_domain
    address = (address or UNKNOWN_ADDRESS).strip().lower()
    # IPv6 colons are not valid in a local part
    return f"anonymous-{address.replace(':', '-')}@{domain}"


def resolve_identity(
    session_email: Optional[str],
    address: str,
    claimed_email: Optional[str] = None,
) -> str:
    """Map an inbound actor to its stable identity key. Pure; no side effects."""
    for email in (session_email, claimed_email):
        if email and email.strip():
            return email.strip().lower()
    return anonymous_identity(address)
