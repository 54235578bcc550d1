"""Read back persisted story files"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from src.models.errors import StoryDirectoryNotFound, StoryPersistenceError
from src.models.story import Story

_module_logger = logging.getLogger(__name__)


def read_stories(story_dir: Path | str, logger: Optional[logging.Logger] = None) -> List[Story]:
    """
    Read all story JSON files from a directory.

    Files that cannot be read or do not hold a valid story are skipped.

    Args:
        story_dir: Story directory
        logger: Logger for skipped files

    Returns:
        Stories with ``filename`` set, newest first

    Raises:
        StoryDirectoryNotFound: If the directory doesn't exist
        StoryPersistenceError: If the directory cannot be listed
    """
    log = logger or _module_logger
    directory = Path(story_dir)

    if not directory.is_dir():
        raise StoryDirectoryNotFound(f"directory does not exist: {directory}")

    try:
        paths = sorted(directory.glob("*.json"))
    except OSError as e:
        raise StoryPersistenceError(f"failed to list story files: {e}") from e

    stories: List[Story] = []
    for path in paths:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            story = Story.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            log.debug("skipping unreadable story file: path=%s error=%s", path, e)
            continue

        story.filename = path.name
        stories.append(story)

    # Sort stories by date (newest first)
    stories.sort(key=lambda s: s.date.timestamp(), reverse=True)

    return stories
