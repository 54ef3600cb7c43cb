"""
Database Schemas for the Knowledge Library

Each Pydantic model describes a MongoDB document. Books embed their chapters
and chapters embed their topics, so a book document owns its whole subtree:
- Book -> "books"
- Reader -> "readers"
- SiteSettings -> "site_settings" (single document)

Documents are stored and returned with camelCase keys (``accentColor``,
``updatedAt``); Python code uses the snake_case attribute names.
"""

from datetime import datetime, timezone
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Topic(Document):
    title: str = Field(..., description="Topic heading")
    content: str = Field(..., description="Topic body text")


class Chapter(Document):
    title: str = Field(..., description="Chapter title")
    synopsis: Optional[str] = Field(None, description="Short chapter synopsis")
    topics: List[Topic] = Field(default_factory=list, description="Topics in reading order")


class Book(Document):
    title: str = Field(..., description="Book title")
    subtitle: Optional[str] = Field(None, description="Optional subtitle")
    description: Optional[str] = Field(None, description="Back-cover description")
    accent_color: Optional[str] = Field(None, description="CSS colour used on cards")
    cover_image: Optional[str] = Field(None, description="Cover image URL")
    updated_at: datetime = Field(default_factory=utcnow, description="Last modification time")
    chapters: List[Chapter] = Field(default_factory=list, description="Chapters in reading order")


class Reader(Document):
    name: str = Field(..., description="Display name chosen by the reader")
    created_at: datetime = Field(default_factory=utcnow, description="Registration time")


class SiteSettings(Document):
    site_title: str = Field(..., description="Masthead shown on every page")
