"""Shared API schema bases and the uniform response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for API bodies: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {success, data?, message?}. Errors use the exception handlers."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class MessageResponse(BaseModel):
    """Envelope for endpoints that only acknowledge."""

    success: bool = True
    message: str
