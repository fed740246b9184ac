"""Lesson catalog model."""

from __future__ import annotations

from urllib.parse import quote

from pydantic import BaseModel, Field, field_validator

YOUTUBE_EMBED_BASE = "https://www.youtube-nocookie.com/embed/"
YOUTUBE_WATCH_BASE = "https://www.youtube.com/watch?v="


class Lesson(BaseModel):
    """One catalog entry, as stored in the lesson file.

    ``id`` is compared as a string everywhere, so numeric ids in the file
    are stringified on load.
    """

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    desc: str = Field(min_length=1)
    youtube_id: str = Field(min_length=1)

    model_config = {"frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def embed_url(self) -> str:
        """Privacy-enhanced player URL for iframes."""
        return YOUTUBE_EMBED_BASE + quote(self.youtube_id, safe="")

    @property
    def watch_url(self) -> str:
        """Regular YouTube watch page."""
        return YOUTUBE_WATCH_BASE + quote(self.youtube_id, safe="")
