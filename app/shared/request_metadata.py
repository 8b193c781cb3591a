"""Derive client metadata (IP, user agent, request id) from a Starlette request."""

from __future__ import annotations

from starlette.requests import Request

from app.application.dtos.identity import RequestMetadata


def get_client_ip(request: Request) -> str | None:
    """X-Forwarded-For first hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


def get_request_metadata(request: Request) -> RequestMetadata:
    """Metadata attached to every security event written for this request."""
    return RequestMetadata(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


def get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)
