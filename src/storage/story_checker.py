"""Existence checks for already extracted stories"""

import os
from datetime import datetime
from pathlib import Path

from src.models.errors import StoryPersistenceError
from src.storage.story_writer import sanitize_message_id


def stories_exist(story_dir: Path | str, message_id: str, date: datetime) -> bool:
    """
    Check if any story files already exist for the given email.

    Matches the naming scheme ``<YYYY-MM-DD>_<message-id>_*.json``. The
    sanitized id is compared literally, so characters like ``[`` that are
    glob metacharacters cannot widen the match.

    Args:
        story_dir: Story directory
        message_id: Message-ID of the email
        date: Date of the email

    Returns:
        True if at least one matching file exists, False otherwise
        (including when the directory doesn't exist)

    Raises:
        StoryPersistenceError: If the directory exists but cannot be listed
    """
    prefix = f"{date.strftime('%Y-%m-%d')}_{sanitize_message_id(message_id)}_"

    try:
        with os.scandir(story_dir) as entries:
            for entry in entries:
                if entry.name.startswith(prefix) and entry.name.endswith(".json"):
                    return True
    except FileNotFoundError:
        return False
    except OSError as e:
        raise StoryPersistenceError(f"failed to check for existing stories: {e}") from e

    return False
