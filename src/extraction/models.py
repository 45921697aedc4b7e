"""Structured episode content extracted from a transcript."""

from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Track(BaseModel):
    """A piece of music mentioned during the episode."""

    title: str = Field(..., min_length=1)
    artist: str = Field(..., min_length=1)
    label: Optional[str] = None
    year: Optional[str] = None
    genre: Optional[str] = None
    link: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _first_link(cls, data: Any) -> Any:
        # Models sometimes answer with "links" (a list or a single URL) instead of "link"
        if isinstance(data, dict) and "link" not in data and data.get("links"):
            links = data["links"]
            data = {**data, "link": links if isinstance(links, str) else links[0]}
        return data

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("label", "year", "genre", "link", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)


class Event(BaseModel):
    """A festival, party or venue mentioned during the episode."""

    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    type: Optional[str] = None

    @field_validator("location", "type", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)


class Guest(BaseModel):
    name: str = Field(..., min_length=1)
    project: Optional[str] = None
    links: List[str] = Field(default_factory=list)

    @field_validator("project", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("links", mode="before")
    @classmethod
    def _links_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class ExtractionPayload(BaseModel):
    """Shape of the JSON object the language model is asked to return."""

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    opening_monologue: Optional[str] = None
    tracks: List[Track] = Field(default_factory=list)
    events: List[Event] = Field(default_factory=list)
    guests: List[Guest] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)

    @field_validator("tracks", "events", "guests", "topics", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("opening_monologue", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ExtractedContent(ExtractionPayload):
    """Everything needed to render and publish an episode document."""

    episode_number: int = Field(..., ge=0)
    duration: str = "0:00"
    pub_date: date
    markdown_content: str = ""
    is_fallback: bool = False
