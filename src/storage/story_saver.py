"""Save-for-later store: copies of story files in a separate directory"""

import ntpath
import os
from pathlib import Path
from typing import Set

from src.models.errors import (
    AlreadySavedError,
    InvalidFilenameError,
    StoryNotFoundError,
    StoryPersistenceError,
)
from src.storage.story_writer import DIR_MODE, write_bytes_exclusive


def validate_filename(filename: str) -> None:
    """
    Reject story file names that could escape the story directories.

    Must run before any filesystem operation touches the name.

    Args:
        filename: File name supplied by a caller (e.g. an HTTP path parameter)

    Raises:
        InvalidFilenameError: If the name is not a plain ``*.json`` file name
    """
    if (
        not filename
        or "\x00" in filename
        or ".." in filename
        or "/" in filename
        or "\\" in filename
        or os.path.basename(filename) != filename
        or ntpath.basename(filename) != filename
        or os.path.isabs(filename)
        or ntpath.isabs(filename)
        or ntpath.splitdrive(filename)[0]
        or not filename.endswith(".json")
    ):
        raise InvalidFilenameError(f"invalid filename: {filename!r}")


def list_saved_filenames(saved_dir: Path | str) -> Set[str]:
    """
    List the file names of saved stories.

    Args:
        saved_dir: Saved-stories directory

    Returns:
        Set of ``*.json`` file names; empty if the directory doesn't exist yet

    Raises:
        StoryPersistenceError: If the directory exists but cannot be listed
    """
    directory = Path(saved_dir)
    try:
        with os.scandir(directory) as entries:
            return {
                entry.name
                for entry in entries
                if entry.name.endswith(".json") and not entry.name.startswith(".")
            }
    except FileNotFoundError:
        return set()
    except OSError as e:
        raise StoryPersistenceError(f"failed to access savedir: {e}") from e


def save_story(story_dir: Path | str, saved_dir: Path | str, filename: str) -> Path:
    """
    Copy a story file into the saved directory.

    The copy is byte-identical and published atomically, so a reader never
    sees a partial file and no temp file is left behind on failure.

    Args:
        story_dir: Directory holding the story
        saved_dir: Saved-stories directory (created with owner-only access if missing)
        filename: Story file name

    Returns:
        Path of the saved copy

    Raises:
        InvalidFilenameError: If the file name is unsafe
        AlreadySavedError: If the story is already saved
        StoryNotFoundError: If the story file doesn't exist
        StoryPersistenceError: On any other I/O failure
    """
    validate_filename(filename)

    saved = Path(saved_dir)
    try:
        saved.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise StoryPersistenceError(f"failed to create savedir: {e}") from e

    destination = saved / filename
    if destination.exists():
        raise AlreadySavedError(f"story is already saved: {filename}")

    source = Path(story_dir) / filename
    try:
        data = source.read_bytes()
    except FileNotFoundError as e:
        raise StoryNotFoundError(f"story not found: {filename}") from e
    except OSError as e:
        raise StoryPersistenceError(f"failed to read story file: {e}") from e

    try:
        created = write_bytes_exclusive(saved, destination, data)
    except OSError as e:
        raise StoryPersistenceError(f"failed to write saved story: {e}") from e

    if not created:
        raise AlreadySavedError(f"story is already saved: {filename}")

    return destination


def unsave_story(saved_dir: Path | str, filename: str) -> None:
    """
    Remove a story from the saved directory.

    Args:
        saved_dir: Saved-stories directory
        filename: Story file name

    Raises:
        InvalidFilenameError: If the file name is unsafe
        StoryNotFoundError: If the story is not saved
        StoryPersistenceError: On any other I/O failure
    """
    validate_filename(filename)

    path = Path(saved_dir) / filename
    try:
        os.remove(path)
    except FileNotFoundError as e:
        raise StoryNotFoundError(f"story is not saved: {filename}") from e
    except OSError as e:
        raise StoryPersistenceError(f"failed to remove saved story: {e}") from e
