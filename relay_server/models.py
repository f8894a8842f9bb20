"""Data models for the relay server."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RelayRequest(BaseModel):
    """Caller's description of the outbound request to perform."""

    model_config = ConfigDict(extra="ignore")

    method: Annotated[str, Field(description="HTTP method for the outbound call")] = ""
    url: Annotated[str, Field(description="Absolute target URL")] = ""
    headers: Annotated[
        dict[str, str], Field(description="Headers set verbatim on the outbound call")
    ] = {}

    @field_validator("headers", mode="before")
    @classmethod
    def _null_headers(cls, value):
        return {} if value is None else value


class RelayResponse(BaseModel):
    """Summary of a completed relay call. The body itself stays in the registry."""

    id: Annotated[str, Field(description="Identifier the body was stored under")]
    status: Annotated[int, Field(description="Upstream HTTP status code")]
    headers: Annotated[
        dict[str, str], Field(description="Upstream headers, first value per name")
    ] = {}
    length: Annotated[int, Field(ge=0, description="Byte length of the upstream body")]
