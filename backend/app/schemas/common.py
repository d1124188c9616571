"""Schemas shared by every router."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (both accepted on input)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx raised by the API."""

    detail: str
    type: str | None = Field(
        default=None,
        description="'InvalidRequest' for schema errors, else the exception class",
    )
