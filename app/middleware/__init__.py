"""Raw ASGI middleware: request timeout and request id.

Added in main.create_app; the last one added is outermost.
"""

from app.middleware.request_id import RequestIDMiddleware
from app.middleware.timeout import TimeoutMiddleware

__all__ = ["RequestIDMiddleware", "TimeoutMiddleware"]
