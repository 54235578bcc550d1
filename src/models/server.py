"""Pydantic models for FastAPI server endpoints"""

from pydantic import Field

from src.models.story import Story


class StoryResponse(Story):
    """Story annotated with its saved-for-later status"""

    saved: bool = Field(default=False, description="Whether the story is saved")
