"""Pydantic schemas for the rewrite and verify endpoints.

Field names follow the browser client's camelCase (``apiKey``) on the wire.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RewriteRequest(BaseModel):
    """Text to rewrite plus an optional caller-supplied key."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(
        ...,
        description="Text to rewrite.",
    )
    api_key: str | None = Field(
        default=None,
        alias="apiKey",
        description="Caller's own upstream API key; the server default is used when omitted.",
    )


class RewriteResponse(BaseModel):
    text: str = Field(..., description="The rewritten text.")


class VerifyRequest(BaseModel):
    """Key to probe. Optional in the schema so a missing key gets a 400, not a 422."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(
        default=None,
        alias="apiKey",
        description="Upstream API key to verify. The server default is never used here.",
    )


class VerifyResponse(BaseModel):
    status: Literal["valid"] = "valid"


class VerifyFailureResponse(BaseModel):
    status: Literal["invalid"] = "invalid"
    error: str


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human-readable error message.")
