"""Models for the config files"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LLMConfig(BaseModel):
    """Configuration for the LLM provider used for story extraction"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "provider": "openai",
                "model": "gpt-4o-mini",
                "api_key": "sk-...",
                "base_url": "https://api.openai.com/v1",
            }
        }
    )

    provider: str = Field(default="openai", description="LLM provider name")
    model: str = Field(default="gpt-4o-mini", description="Model name")
    api_key: str = Field(default="", description="API key for the provider")
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of an OpenAI compatible API",
    )
    timeout: float = Field(default=60.0, gt=0, description="Per-call timeout in seconds")
    max_retries: int = Field(default=2, ge=0, description="Retries on transient API errors")
    max_tokens: int = Field(
        default=4096,
        gt=0,
        description="Completion token limit, large enough for newsletters with many stories",
    )


class StoryExtractorConfig(BaseModel):
    """Configuration for the story extractor CLI"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "maildir": "~/Maildir/Newsletters",
                "storydir": "~/stories",
                "limit": 0,
                "verbose": False,
                "llm": {"model": "gpt-4o-mini"},
            }
        }
    )

    llm: LLMConfig = Field(default_factory=LLMConfig, description="LLM settings")
    maildir: str = Field(default="", description="Path to the Maildir directory")
    storydir: str = Field(default="", description="Output directory for story files")
    limit: int = Field(
        default=0, ge=0, description="Maximum number of emails to process (0 = unlimited)"
    )
    run_timeout: Optional[float] = Field(
        default=None, gt=0, description="Overall run time budget in seconds"
    )
    verbose: bool = Field(default=False, description="Enable DEBUG logging")
    log_headers: bool = Field(default=False, description="Log parsed email headers")
    log_bodies: bool = Field(default=False, description="Log parsed email headers and bodies")
    log_stories: bool = Field(default=False, description="Log extracted stories")


class UiServerConfig(BaseModel):
    """Configuration for the UI server"""

    storydir: str = Field(default="", description="Directory containing story files")
    savedir: str = Field(default="", description="Directory for saved stories")
    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8080, gt=0, lt=65536, description="Port to listen on")
    verbose: bool = Field(default=False, description="Enable DEBUG logging")
