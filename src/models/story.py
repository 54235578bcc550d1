"""Pydantic models for extracted newsletter stories"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExtractedStory(BaseModel):
    """A single story as returned by the LLM, without email metadata"""

    headline: str = Field(..., description="Short headline of the story")
    teaser: str = Field(default="", description="Content type prefix plus a short summary")
    url: str = Field(default="", description="Primary link to the story")


class StoryExtractionResult(BaseModel):
    """Structured output expected from the LLM"""

    stories: List[ExtractedStory] = Field(
        default_factory=list, description="List of identified news stories"
    )


class Story(BaseModel):
    """A story extracted from a newsletter email, persisted as one JSON file"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "headline": "Rust 2.0 announced",
                "teaser": "Article. The Rust team outlines the roadmap for the next edition.",
                "url": "https://example.com/rust-2",
                "from_email": "digest@example.com",
                "from_name": "The Weekly Digest",
                "date": "2025-01-15T10:30:00+01:00",
            }
        }
    )

    headline: str = Field(..., description="Short headline of the story")
    teaser: str = Field(default="", description="Teaser text")
    url: str = Field(default="", description="Primary link to the story")
    from_email: str = Field(default="", description="Sender address of the newsletter")
    from_name: str = Field(default="", description="Sender display name of the newsletter")
    date: datetime = Field(..., description="Date of the newsletter email")
    filename: Optional[str] = Field(
        None, description="Story file name, populated when read back from disk"
    )

    def to_record(self) -> dict:
        """
        Serializable representation written to disk.

        The filename is derived from the path on read-back and never stored.
        """
        return self.model_dump(mode="json", exclude={"filename"})
