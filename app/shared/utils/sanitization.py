"""Input sanitization for user-supplied display text (names, company names)."""

from html import unescape

import nh3


def strip_html(value: str) -> str:
    """Remove every HTML tag with nh3 and return plain text.

    nh3 entity-encodes what it keeps, so the result is unescaped back to
    plain text ("Alice & Co" stays as typed). Output is escaped again
    wherever it is rendered as HTML.
    """
    if not value:
        return value
    return unescape(nh3.clean(value, tags=set(), attributes={})).strip()


def clean_display_text(value: str | None) -> str | None:
    """strip_html for optional fields; None stays None."""
    if value is None:
        return None
    return strip_html(value)
