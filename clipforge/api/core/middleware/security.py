from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from clipforge.api.core.constants import API_VERSION_HEADER
from clipforge.api.core.messages import MessageCode, get_default_message
from clipforge.utils.logger import get_logger
from clipforge.utils.settings.app import AppSettings

logger = get_logger(__name__)

# Set by CORSMiddleware, never overridden here
CORS_HEADERS = {
    "Access-Control-Allow-Origin",
    "Access-Control-Allow-Methods",
    "Access-Control-Allow-Headers",
    "Access-Control-Allow-Credentials",
    "Access-Control-Expose-Headers",
    "Access-Control-Max-Age",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, is_production: bool = False):
        super().__init__(app)
        self.is_production = is_production
        self.static_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "X-Permitted-Cross-Domain-Policies": "none",
            API_VERSION_HEADER: AppSettings().API_VERSION,
        }

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        headers = dict(self.static_headers)
        # Balances and artifact URLs are per caller
        if not request.url.path.startswith("/health"):
            headers["Cache-Control"] = "no-store"

        if self.is_production and request.url.scheme == "https":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        for key, value in headers.items():
            if key not in response.headers and key not in CORS_HEADERS:
                response.headers[key] = value

        return response


class PayloadSizeMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared body exceeds MAX_REQUEST_SIZE."""

    def __init__(self, app, max_request_size: int | None = None):
        super().__init__(app)
        self.max_request_size = max_request_size or AppSettings().MAX_REQUEST_SIZE

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("Content-Length")
        if (
            content_length
            and content_length.isdigit()
            and int(content_length) > self.max_request_size
        ):
            logger.warning(
                "Request too large",
                content_length=int(content_length),
                path=request.url.path,
            )
            # Exception handlers do not wrap BaseHTTPMiddleware
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={
                    "message_code": MessageCode.BAD_REQUEST,
                    "message": get_default_message(MessageCode.BAD_REQUEST),
                    "details": {
                        "description": f"Request size ({content_length} bytes) exceeds "
                        f"maximum allowed ({self.max_request_size} bytes)"
                    },
                },
            )

        return await call_next(request)
