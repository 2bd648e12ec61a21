"""Request utility functions."""

from fastapi import Request

LOOPBACK_ADDRESS = "127.0.0.1"


def get_client_ip(request: Request) -> str:
    """
    Extract the caller's subject key for rate limiting, respecting proxy headers.

    Checks headers in order:
    1. X-Forwarded-For (may contain chain: "client, proxy1, proxy2")
    2. X-Real-IP (single IP from nginx)
    3. Loopback default

    The value is passed on as an opaque string and is not validated here.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in chain is the original client
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return LOOPBACK_ADDRESS
