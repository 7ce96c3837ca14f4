"""
Cross-origin isolation headers middleware.

The browser client uses SharedArrayBuffer-backed audio worklets, which are
only available on cross-origin isolated pages.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class CrossOriginIsolationMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds cross-origin isolation headers to HTTP responses.

    Headers added (only when the response does not set them already):
    - Cross-Origin-Opener-Policy: same-origin
    - Cross-Origin-Embedder-Policy: require-corp
    """

    HEADERS = {
        "Cross-Origin-Opener-Policy": "same-origin",
        "Cross-Origin-Embedder-Policy": "require-corp",
    }

    async def dispatch(self, request: Request, call_next) -> Response:
        """
        Add isolation headers to the response.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            Response with cross-origin isolation headers added.
        """
        response = await call_next(request)

        for name, value in self.HEADERS.items():
            if name not in response.headers:
                response.headers[name] = value

        return response
