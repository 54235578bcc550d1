"""Email parsing from Maildir message files"""

import logging
import re
from datetime import datetime, timezone
from email import policy
from email.errors import MessageError, MissingHeaderBodySeparatorDefect
from email.header import decode_header, make_header
from email.message import Message
from email.parser import BytesParser
from email.utils import parseaddr, parsedate_to_datetime
from pathlib import Path
from typing import Optional, Tuple

from src.email_processor.html_cleaner import html_to_text
from src.models.email import ParsedEmail
from src.models.errors import EmailParseError
from src.utils.compute_content_hash import compute_content_hash

_module_logger = logging.getLogger(__name__)

_FOLDING = re.compile(r"\r?\n[ \t]+")


def read_email_file(file_path: Path | str, logger: Optional[logging.Logger] = None) -> ParsedEmail:
    """
    Read and parse a single message file.

    Args:
        file_path: Path to the message file
        logger: Logger for fallback warnings

    Returns:
        ParsedEmail with the file path recorded

    Raises:
        EmailParseError: If the file cannot be opened or parsed
    """
    path = Path(file_path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise EmailParseError(f"failed to open file {path}: {e}") from e

    return parse_email(raw, file_path=str(path), logger=logger)


def parse_email(
    raw: bytes, file_path: Optional[str] = None, logger: Optional[logging.Logger] = None
) -> ParsedEmail:
    """
    Parse a raw RFC 5322 message into a ParsedEmail.

    Unparseable Subject, From and Date headers never abort the parse: the raw
    subject is kept, the raw From header becomes the address, and the current
    time replaces the date. A missing Message-ID is replaced by a fallback
    derived from subject, sender and date, so parsing the same bytes again
    yields the same id.

    Args:
        raw: Raw message bytes
        file_path: Optional source path, stored on the result
        logger: Logger for fallback warnings

    Returns:
        ParsedEmail object

    Raises:
        EmailParseError: If the header block is malformed or a multipart body is broken
    """
    log = logger or _module_logger

    try:
        msg = BytesParser(policy=policy.compat32).parsebytes(raw)
    except (MessageError, ValueError, TypeError) as e:
        raise EmailParseError(f"failed to read email: {e}") from e

    if not msg.keys():
        raise EmailParseError("failed to read email: no headers found")
    if any(isinstance(d, MissingHeaderBodySeparatorDefect) for d in msg.defects):
        raise EmailParseError("failed to read email: malformed header line")

    subject = _decode_header_value(msg.get("Subject"))
    from_email, from_name = _parse_from(msg.get("From"))

    raw_date = _unfold(msg.get("Date"))
    date = _parse_date(raw_date)
    if date is None:
        if raw_date:
            log.warning(
                "failed to parse email date, using current time: date_header=%r", raw_date
            )
        else:
            log.warning("email missing Date header, using current time")
        date = datetime.now(timezone.utc)
        # Hash the header text so repeated parses of these bytes agree
        date_key = raw_date
    else:
        date_key = date.isoformat()

    message_id = _unfold(msg.get("Message-ID")).strip()
    if not message_id:
        message_id = f"<generated-{compute_content_hash(subject, from_email, date_key)}@fallback>"
        log.warning("email missing Message-ID header, generated fallback: generated_id=%s", message_id)

    body = _extract_body(msg)

    return ParsedEmail(
        subject=subject,
        from_email=from_email,
        from_name=from_name,
        date=date,
        message_id=message_id,
        body=body,
        file_path=file_path,
    )


def _unfold(value) -> str:
    """Join folded header lines into a single line."""
    if value is None:
        return ""
    return _FOLDING.sub(" ", str(value)).strip()


def _decode_header_value(value) -> str:
    """
    Decode MIME encoded-words in a header value.

    Args:
        value: Raw header value (str or email.header.Header)

    Returns:
        Decoded text, or the raw value if decoding fails
    """
    if value is None:
        return ""

    unfolded = _unfold(value)
    try:
        return str(make_header(decode_header(unfolded)))
    except (UnicodeError, LookupError, ValueError, MessageError):
        return unfolded


def _parse_from(value) -> Tuple[str, str]:
    """
    Parse a From header into (address, display name).

    Args:
        value: Raw From header value

    Returns:
        Tuple of address and name; the raw header and an empty name if unparseable
    """
    raw = _unfold(value)
    if not raw:
        return "", ""

    name, address = parseaddr(raw)
    if not address or "@" not in address:
        return raw, ""

    return address, _decode_header_value(name) if name else ""


def _parse_date(value: str) -> Optional[datetime]:
    """
    Parse an RFC 5322 date.

    Args:
        value: Date header text

    Returns:
        Timezone-aware datetime object or None
    """
    if not value:
        return None

    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None

    # "-0000" (unknown zone) parses naive; treat it as UTC
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _extract_body(msg: Message) -> str:
    """
    Select the plain text body of a message.

    Multipart messages are walked recursively. Plain text wins over HTML;
    HTML is reduced to text when it is the only body available.
    """
    if msg.get("Content-Type") is None:
        return _decode_payload(msg)

    if msg.get_content_maintype() == "multipart":
        if not msg.is_multipart():
            raise EmailParseError("failed to parse multipart: missing or invalid boundary")
        return _extract_multipart_body(msg)

    if msg.get_content_type() == "text/html":
        return html_to_text(_decode_payload(msg))

    return _decode_payload(msg)


def _extract_multipart_body(msg: Message) -> str:
    plain_text = ""
    html_text = ""

    for part in msg.walk():
        if part.is_multipart():
            continue
        if part.get_content_disposition() == "attachment":
            continue

        content_type = part.get_content_type()
        if content_type == "text/plain" and not plain_text:
            plain_text = _decode_payload(part)
        elif content_type == "text/html" and not html_text:
            html_text = _decode_payload(part)

    # Prefer plain text over HTML
    if plain_text.strip():
        return plain_text
    if html_text:
        return html_to_text(html_text)

    return ""


def _decode_payload(part: Message) -> str:
    """
    Decode a non-multipart payload to text.

    Transfer encodings are undone and the declared charset honoured, falling
    back to UTF-8 with replacement characters.
    """
    payload = part.get_payload(decode=True)
    if payload is None:
        payload = part.get_payload()
        return payload if isinstance(payload, str) else ""

    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")
