"""Root logger configuration: stdout, one line per record."""

import logging
import sys

from app.core.config import get_settings
from app.middleware.request_id import request_id_var
from app.shared.telemetry.tracing import current_trace_id

_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "[req=%(request_id)s trace=%(trace_id)s] %(message)s"
)


class RequestContextFilter(logging.Filter):
    """Stamp each record with the serving request id and active trace id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.trace_id = current_trace_id() or "-"
        return True


def setup_logging() -> None:
    """DEBUG when settings.debug is on, INFO otherwise."""
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=_FORMAT,
        handlers=[handler],
        force=True,
    )
