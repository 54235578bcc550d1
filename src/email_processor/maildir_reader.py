"""Enumerate message files from a Maildir directory tree"""

import os
from pathlib import Path
from typing import List

from src.models.errors import MaildirError

MESSAGE_DIRS = ("cur", "new")
SKIPPED_DIR = "tmp"


def read_maildir(maildir_path: Path | str) -> List[Path]:
    """
    Find all message files in a Maildir tree.

    Messages are regular files inside any directory named ``cur`` or ``new``
    at any depth, so nested sub-mailboxes are included. Subtrees rooted at a
    directory named ``tmp`` are skipped entirely.

    Args:
        maildir_path: Root of the Maildir tree

    Returns:
        Message file paths, newest first (Maildir names start with a timestamp)

    Raises:
        MaildirError: If the root doesn't exist or the tree cannot be walked
    """
    root = Path(maildir_path)

    if not root.exists():
        raise MaildirError(f"failed to read maildir: directory not found: {root}")
    if not root.is_dir():
        raise MaildirError(f"failed to read maildir: not a directory: {root}")

    def _raise(error: OSError):
        raise error

    messages: List[Path] = []
    try:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            # Prune tmp subtrees in place so os.walk never descends into them
            dirnames[:] = [d for d in dirnames if d != SKIPPED_DIR]

            if os.path.basename(dirpath) not in MESSAGE_DIRS:
                continue

            for filename in filenames:
                path = Path(dirpath) / filename
                if path.is_file():
                    messages.append(path)
    except OSError as e:
        raise MaildirError(f"failed to read maildir: {e}") from e

    messages.sort(key=lambda p: (p.name, str(p)), reverse=True)

    return messages
