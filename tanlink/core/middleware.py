"""Custom middleware for response hardening."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Applied to every response. The API only serves JSON, so the CSP is strict.
BASE_SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; form-action 'self'",
    "Permissions-Policy": "camera=(), geolocation=(), microphone=(), payment=(), usb=()",
}

# Owner routes carry private data and must never be cached by intermediaries.
PRIVATE_PREFIX = "/api/"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses.

    Owner API responses additionally get `Cache-Control: no-store`; public
    profile snapshots are left cacheable. HSTS is only sent when enabled
    (production behind HTTPS).
    """

    def __init__(
        self,
        app: object,
        enable_hsts: bool = False,
        hsts_max_age: int = 31536000,  # 1 year
    ) -> None:
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.hsts_max_age = hsts_max_age

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)

        for name, value in BASE_SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)

        if request.url.path.startswith(PRIVATE_PREFIX):
            response.headers["Cache-Control"] = "no-store"

        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={self.hsts_max_age}; includeSubDomains"
            )

        return response
