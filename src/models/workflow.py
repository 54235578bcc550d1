"""Story extraction run state models"""

from pydantic import BaseModel, Field


class ProcessingResult(BaseModel):
    """
    Aggregate counts of a story extraction run.

    Every scanned message is counted in ``total``; each message that was
    reached ends in exactly one of processed, skipped or errors.
    """

    total: int = Field(default=0, description="Number of messages selected for processing")
    processed: int = Field(default=0, description="Messages whose stories were written")
    skipped: int = Field(default=0, description="Messages whose stories already existed")
    errors: int = Field(default=0, description="Messages that failed to parse, extract or persist")
    cancelled: bool = Field(
        default=False, description="Whether the run stopped early (timeout or interrupt)"
    )

    @property
    def has_errors(self) -> bool:
        return self.errors > 0
