"""
User and Game records as returned by the Openstats API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Wire format is camelCase; unknown fields are dropped so newer servers don't break older clients.
API_MODEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Game(BaseModel):
    model_config = ConfigDict(**API_MODEL_CONFIG, frozen=True)

    rid: str
    created_at: datetime
    slug: str


class User(BaseModel):
    model_config = ConfigDict(**API_MODEL_CONFIG, frozen=True)

    rid: str
    created_at: datetime
    slug: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio_text: Optional[str] = None
