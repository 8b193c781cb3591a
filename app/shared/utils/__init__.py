"""Small stateless helpers: UTC time, ids, display-text cleaning."""

from app.shared.utils.datetime import ensure_utc, from_timestamp_utc, utc_now
from app.shared.utils.generators import generate_cuid
from app.shared.utils.sanitization import clean_display_text, strip_html

__all__ = [
    "clean_display_text",
    "ensure_utc",
    "from_timestamp_utc",
    "generate_cuid",
    "strip_html",
    "utc_now",
]
