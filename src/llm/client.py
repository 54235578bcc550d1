"""OpenAI chat client wrapper"""

import os
from typing import Union

from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from src.models.configs import LLMConfig

SUPPORTED_PROVIDERS = ("openai",)


def get_llm_client(
    config: LLMConfig,
    output_structure: type[BaseModel] | None = None,
) -> Union[ChatOpenAI, Runnable]:
    """
    Get a chat model for an OpenAI compatible API.

    Args:
        config: LLM settings (model, key, base URL, timeout)
        output_structure: Optional pydantic model; the client then returns
            validated instances parsed from a JSON object reply

    Returns:
        ChatOpenAI client instance, or a structured-output runnable

    Raises:
        ValueError: If the provider is unsupported or no API key is available
    """
    if config.provider.lower() not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported LLM provider: {config.provider}")

    api_key = config.api_key or os.getenv("OPENAI_API_KEY", "")
    if not api_key:
        raise ValueError("LLM API key not set (llm.api_key or OPENAI_API_KEY)")

    llm = ChatOpenAI(
        model=config.model,
        api_key=api_key,  # type: ignore
        base_url=config.base_url or None,
        timeout=config.timeout,
        max_retries=config.max_retries,
        max_tokens=config.max_tokens,  # type: ignore
        verbose=False,
    )

    if output_structure:
        return llm.with_structured_output(output_structure, method="json_mode")

    return llm
