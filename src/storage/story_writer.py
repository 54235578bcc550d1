"""Crash-safe persistence of stories as individual JSON files"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List

from src.models.errors import StoryPersistenceError
from src.models.story import Story

# Characters that are unsafe in file names on common filesystems
_UNSAFE_CHARS = str.maketrans({c: "_" for c in '/\\:*?"<>|'})

FILE_MODE = 0o600
DIR_MODE = 0o700


def sanitize_message_id(message_id: str) -> str:
    """
    Make a Message-ID safe for use in a file name.

    Strips the enclosing angle brackets and replaces filesystem-unsafe
    characters with underscores, e.g. ``"<a/b:c>"`` becomes ``"a_b_c"``.

    Args:
        message_id: Message-ID header value

    Returns:
        Sanitized identifier
    """
    s = message_id
    if s.startswith("<"):
        s = s[1:]
    if s.endswith(">"):
        s = s[:-1]
    return s.translate(_UNSAFE_CHARS)


def story_filename(message_id: str, date: datetime, index: int) -> str:
    """
    Build the deterministic file name of a story.

    Args:
        message_id: Message-ID of the source email
        date: Date of the source email
        index: 1-based position of the story within the email

    Returns:
        File name of the form ``<YYYY-MM-DD>_<message-id>_<index>.json``
    """
    return f"{date.strftime('%Y-%m-%d')}_{sanitize_message_id(message_id)}_{index}.json"


def write_bytes_exclusive(directory: Path, destination: Path, data: bytes) -> bool:
    """
    Atomically create a file, never overwriting an existing one.

    The data is written to a temp file inside ``directory`` and then published
    under its final name, so readers never see a partial file. The temp file
    is removed on every path.

    Args:
        directory: Directory holding the destination (temp files go here too)
        destination: Final path
        data: File content

    Returns:
        True if this call created the file, False if it already existed

    Raises:
        OSError: If writing or publishing genuinely failed
    """
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, FILE_MODE)

        try:
            # link() fails if the destination exists, so a concurrent writer's file is never replaced
            os.link(tmp_path, destination)
            return True
        except FileExistsError:
            return False
        except OSError:
            # Filesystem without hard links: O_EXCL still never replaces a file
            return _create_exclusive(destination, data)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass


def _create_exclusive(destination: Path, data: bytes) -> bool:
    """
    Create ``destination`` with O_EXCL and write ``data`` into it.

    Readers may observe the file before it is complete. A write failure
    removes the partial file.
    """
    try:
        fd = os.open(destination, os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
    except FileExistsError:
        return False

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
    except OSError:
        os.unlink(destination)
        raise
    return True


def write_stories_to_dir(
    story_dir: Path | str, message_id: str, date: datetime, stories: List[Story]
) -> List[Path]:
    """
    Write stories to individual JSON files.

    Files that already exist are skipped: another run or a concurrent
    process already produced them. Safe to call concurrently from several
    processes against the same directory.

    Args:
        story_dir: Output directory (created with owner-only access if missing)
        message_id: Message-ID of the source email
        date: Date of the source email
        stories: Stories in extraction order

    Returns:
        Paths of the files created by this call

    Raises:
        StoryPersistenceError: If a story file could not be written
    """
    directory = Path(story_dir)
    try:
        directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise StoryPersistenceError(f"failed to create story directory {directory}: {e}") from e

    written: List[Path] = []
    for i, story in enumerate(stories, start=1):
        path = directory / story_filename(message_id, date, i)

        # Skip if present from an earlier or concurrent run
        if path.exists():
            continue

        data = json.dumps(story.to_record(), indent=2, ensure_ascii=False).encode("utf-8")

        try:
            created = write_bytes_exclusive(directory, path, data)
        except OSError as e:
            # Another process may have won the race despite our failure
            if path.exists():
                continue
            raise StoryPersistenceError(f"failed to write story file {path}: {e}") from e

        if created:
            written.append(path)

    return written
