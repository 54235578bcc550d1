"""Main CLI entry point for the story extraction workflow"""

import argparse
import os
import sys
import threading
from importlib.metadata import PackageNotFoundError, version
from typing import List, Optional

from src.config.config_loader import load_story_extractor_config
from src.extraction_workflow.processor import Processor
from src.llm.extractors import OpenAIStoryExtractor, StoryExtractor
from src.models.configs import StoryExtractorConfig
from src.models.errors import ConfigError, MaildirError
from src.models.workflow import ProcessingResult
from src.utils.logger import get_logger

PACKAGE_NAME = "news-story-extractor"


def get_version() -> str:
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "unknown"


def build_parser(prog: str = "story-extractor") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Extract stories from newsletter emails in a Maildir into JSON files.",
    )
    parser.add_argument("--maildir", help="Path to the Maildir directory")
    parser.add_argument("--storydir", help="Output directory for story files")
    parser.add_argument(
        "--config",
        help="Path to the YAML config file (default: ./story-extractor.yaml or ~/story-extractor.yaml)",
    )
    parser.add_argument(
        "--limit", type=int, help="Maximum number of emails to process (0 = unlimited)"
    )
    parser.add_argument("--timeout", type=float, help="Overall run time budget in seconds")
    parser.add_argument(
        "--verbose", action="store_true", default=None, help="Enable detailed log output"
    )
    parser.add_argument(
        "--log-headers",
        action="store_true",
        default=None,
        help="Log parsed email headers (requires --verbose)",
    )
    parser.add_argument(
        "--log-bodies",
        action="store_true",
        default=None,
        help="Log parsed email headers and bodies (requires --verbose)",
    )
    parser.add_argument(
        "--log-stories",
        action="store_true",
        default=None,
        help="Log extracted stories (requires --verbose)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    return parser


def validate_config(config: StoryExtractorConfig) -> None:
    """
    Check the values the extractor cannot run without.

    Raises:
        ConfigError: If maildir, storydir or the LLM API key is missing
            (OPENAI_API_KEY in the environment counts as a key)
    """
    if not config.maildir:
        raise ConfigError("maildir is required")
    if not config.storydir:
        raise ConfigError("storydir is required")
    if not (config.llm.api_key or os.getenv("OPENAI_API_KEY")):
        raise ConfigError("llm.api_key is required")


def run_extractor(
    config: StoryExtractorConfig,
    extractor: Optional[StoryExtractor] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ProcessingResult:
    """
    Run the story extraction workflow with the given configuration.

    Args:
        config: Validated extractor configuration
        extractor: Story extractor (default: OpenAI backed)
        cancel_event: Optional event that stops the run between messages

    Returns:
        ProcessingResult with the aggregate counts

    Raises:
        MaildirError: If the Maildir cannot be read
    """
    log = get_logger("story-extractor", config.verbose)
    log.info(
        "starting story extractor: maildir=%s storydir=%s limit=%d",
        config.maildir,
        config.storydir,
        config.limit,
    )
    log.debug(
        "LLM configuration loaded: provider=%s model=%s", config.llm.provider, config.llm.model
    )

    if extractor is None:
        extractor = OpenAIStoryExtractor(config.llm)

    processor = Processor(config, log, extractor)
    return processor.run(cancel_event=cancel_event)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Usage:
        python -m src.main --maildir <maildir> --storydir <storydir> [--config <file>]

    Returns:
        Process exit code: 0 on success, 1 on configuration or run errors
    """
    args = build_parser().parse_args(argv)

    overrides = {
        "maildir": args.maildir,
        "storydir": args.storydir,
        "limit": args.limit,
        "run_timeout": args.timeout,
        "verbose": args.verbose,
        "log_headers": args.log_headers,
        "log_bodies": args.log_bodies,
        "log_stories": args.log_stories,
    }

    try:
        config = load_story_extractor_config(args.config, overrides)
        validate_config(config)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        result = run_extractor(config)
    except MaildirError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: failed to create LLM client: {e}", file=sys.stderr)
        return 1

    # Report results
    print("Story extraction completed!")
    print(f"  Emails found: {result.total}")
    print(f"  Processed: {result.processed}")
    print(f"  Skipped (already extracted): {result.skipped}")
    print(f"  Errors: {result.errors}")
    if result.cancelled:
        print("  Run stopped early (timeout or interrupt)")

    if result.has_errors or result.cancelled:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
