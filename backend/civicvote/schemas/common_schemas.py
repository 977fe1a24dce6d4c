"""
Shared schema building blocks
"""

from datetime import datetime
from typing import Annotated, Optional
from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel
from civicvote.core.utils import format_timestamp_with_timezone

# Datetimes go out as ISO strings with a 'Z' suffix
Timestamp = Annotated[
    datetime,
    PlainSerializer(format_timestamp_with_timezone, return_type=Optional[str], when_used="json"),
]

class APIModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class LocationInfo(APIModel):
    """Location summary"""
    id: str
    name: str
    kind: str
    code: Optional[str] = None

class UserSummary(APIModel):
    """Minimal user info"""
    id: str
    name: str

class SuccessResponse(APIModel):
    """Plain success acknowledgement"""
    success: bool
    message: str
