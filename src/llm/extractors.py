"""LLM-based story extraction from newsletter emails"""

from typing import Any, List, Optional, Protocol

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, ValidationError

from src.llm.client import get_llm_client
from src.llm.prompts import build_extraction_prompt
from src.models.configs import LLMConfig
from src.models.email import ParsedEmail
from src.models.errors import StoryExtractionError
from src.models.story import ExtractedStory, Story, StoryExtractionResult


class StoryExtractor(Protocol):
    """Anything that turns a parsed email into stories."""

    def extract(self, email: ParsedEmail) -> List[Story]:
        """
        Extract stories from an email.

        Raises:
            StoryExtractionError: If extraction fails; no partial list is returned
        """
        ...


def to_stories(extracted: List[ExtractedStory], email: ParsedEmail) -> List[Story]:
    """
    Attach email provenance to extracted stories.

    Args:
        extracted: Stories as returned by the extraction service
        email: Email the stories came from

    Returns:
        List of Story objects
    """
    return [
        Story(
            headline=item.headline,
            teaser=item.teaser,
            url=item.url,
            from_email=email.from_email,
            from_name=email.from_name,
            date=email.date,
        )
        for item in extracted
    ]


class OpenAIStoryExtractor:
    """Extracts stories with an OpenAI compatible chat model."""

    def __init__(self, config: LLMConfig, llm: Optional[Any] = None):
        """
        Args:
            config: LLM settings
            llm: Pre-built structured-output runnable (mainly for tests)
        """
        self.config = config
        self._structured_llm = llm or get_llm_client(
            config, output_structure=StoryExtractionResult
        )

    def extract(self, email: ParsedEmail) -> List[Story]:
        prompt = build_extraction_prompt(email.subject, email.body)

        try:
            response = self._structured_llm.invoke([HumanMessage(content=prompt)])
        except Exception as e:
            # Covers API errors, timeouts and replies that are not valid JSON
            raise StoryExtractionError(f"failed to call LLM API: {e}") from e

        if response is None:
            raise StoryExtractionError("no response from LLM API")

        try:
            if isinstance(response, BaseModel):
                response = response.model_dump()
            result = StoryExtractionResult.model_validate(response)
        except ValidationError as e:
            raise StoryExtractionError(f"failed to parse LLM response: {e}") from e

        return to_stories(result.stories, email)


class StubStoryExtractor:
    """Deterministic extractor returning predefined stories, for tests."""

    def __init__(
        self,
        stories: Optional[List[ExtractedStory]] = None,
        error: Optional[Exception] = None,
    ):
        self.stories = list(stories or [])
        self.error = error
        self.calls: List[ParsedEmail] = []

    def extract(self, email: ParsedEmail) -> List[Story]:
        self.calls.append(email)
        if self.error is not None:
            raise self.error
        return to_stories(self.stories, email)
