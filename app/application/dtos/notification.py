"""DTO for outbound email."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email ready for dispatch."""

    to: str
    subject: str
    html: str
    text: str
    tag: str = "transactional"
