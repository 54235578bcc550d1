import hashlib


def compute_content_hash(*args, len=16) -> str:
    """
    Compute a truncated SHA256 hex digest of the given values.

    Values are converted to strings and concatenated without a separator, so
    ``compute_content_hash("ab", "c") == compute_content_hash("abc")``.

    Args:
        *args: Values to include in the hash (None contributes nothing)
        len: Length of the returned hash string (default 16)

    Returns:
        Hex string of SHA256 hash
    """
    content_str = "".join("" if arg is None else str(arg) for arg in args)
    return hashlib.sha256(content_str.encode("utf-8")).hexdigest()[:len]
