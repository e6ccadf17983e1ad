"""
Security headers for API responses.

The chat widget only ever talks JSON to this backend, so the policy is
locked down to same-origin and no framing.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class SecurityHeaders:
    """
    Headers added:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Content-Security-Policy: (configurable)
    - Strict-Transport-Security (production only)
    """

    DEFAULT_CSP = "default-src 'none'; frame-ancestors 'none'"

    @classmethod
    def get_headers(cls, csp: str | None = None, hsts: bool = False) -> dict[str, str]:
        headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Content-Security-Policy": csp or cls.DEFAULT_CSP,
        }
        if hsts:
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return headers

    @classmethod
    def apply_to_response(cls, response: Response, csp: str | None = None, hsts: bool = False) -> Response:
        for name, value in cls.get_headers(csp, hsts).items():
            response.headers.setdefault(name, value)
        return response


def add_security_headers(app: FastAPI, csp: str | None = None, hsts: bool = False) -> None:
    """Attach SecurityHeaders to every response of ``app``."""

    class SecurityHeadersMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next: Any) -> Any:
            response = await call_next(request)
            return SecurityHeaders.apply_to_response(response, csp, hsts)

    app.add_middleware(SecurityHeadersMiddleware)
