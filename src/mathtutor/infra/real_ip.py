"""Client key extraction for rate limiting.

Behind a reverse proxy ``request.client.host`` is the proxy's address, so
the key is taken from proxy headers in priority order:

1. ``CF-Connecting-IP``: set by Cloudflare
2. ``X-Real-IP``: set by some proxy configs
3. ``X-Forwarded-For``: leftmost entry
4. ``request.client.host``: direct access / local dev

Requests with none of these share the ``"anonymous"`` key.
"""

from __future__ import annotations

from fastapi import Request

_REAL_IP_HEADER_NAMES = [
    "cf-connecting-ip",
    "x-real-ip",
    "x-forwarded-for",
]

ANONYMOUS_CLIENT_KEY = "anonymous"


def get_real_ip(request: Request) -> str:
    """Extract the client IP used as the rate-limit key.

    Usable as a FastAPI dependency::

        real_ip: str = Depends(get_real_ip)
    """
    for header in _REAL_IP_HEADER_NAMES:
        value = request.headers.get(header)
        if value:
            ip = value.split(",")[0].strip()
            if ip:
                return ip

    if request.client and request.client.host:
        return request.client.host

    return ANONYMOUS_CLIENT_KEY
