"""Shared schema configuration and response envelopes."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema that speaks camelCase on the wire and accepts snake_case too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataEnvelope(BaseModel, Generic[T]):
    """Successful response carrying a payload."""

    success: bool = True
    data: T


class MessageDataEnvelope(BaseModel, Generic[T]):
    """Successful response carrying a message and a payload."""

    success: bool = True
    message: str
    data: T


class ListEnvelope(BaseModel, Generic[T]):
    """Successful list response."""

    success: bool = True
    count: int
    data: list[T]


class MessageEnvelope(BaseModel):
    """Successful response carrying only a message."""

    success: bool = True
    message: str


class ErrorEnvelope(BaseModel):
    """Failure response, documented for OpenAPI."""

    success: bool = False
    error: str
    details: str | list | None = None
