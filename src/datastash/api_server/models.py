# src/datastash/api_server/models.py
"""
Pydantic models for the datastash Data API.

Every body carries a numeric ``code`` (0 on success) and a ``message``.
Lookups of unknown UIDs are answered with HTTP 200 and the NOT_FOUND
body; only malformed requests and internal failures use HTTP error
statuses.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Response(BaseModel):
    """Base response body."""
    code: int = Field(description="0 on success, otherwise an error code")
    message: str = Field(description="Human readable status")


class DataPostResponse(Response):
    """Response to POST /data."""
    uid: str = Field(description="The UID the data was stored with")


class DataGetResponse(Response):
    """Response to GET /data for a stored record."""
    data: Any = Field(description="The stored payload, verbatim")
    created_at: datetime = Field(serialization_alias="createdAt", description="When the record was stored")
    ttl: int = Field(ge=0, description="Remaining lifetime in seconds, 0 if the record does not expire")


NOT_FOUND = Response(code=10, message="Not found")
