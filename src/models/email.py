"""Pydantic models for email data structures"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ParsedEmail(BaseModel):
    """Email parsed from a Maildir message file"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "subject": "The Weekly Digest #42",
                "from_email": "digest@example.com",
                "from_name": "The Weekly Digest",
                "date": "2025-01-15T10:30:00+01:00",
                "message_id": "<123@example.com>",
                "body": "This week: three articles worth reading...",
                "file_path": "/home/user/Maildir/cur/1736933400.M1P2.host:2,S",
            }
        }
    )

    subject: str = Field(default="", description="Decoded subject line")
    from_email: str = Field(
        default="", description="Sender address, or the raw From header if unparseable"
    )
    from_name: str = Field(default="", description="Sender display name")
    date: datetime = Field(..., description="Sent date (current time if header missing)")
    message_id: str = Field(..., description="Message-ID header or generated fallback")
    body: str = Field(default="", description="Plain text body")
    file_path: Optional[str] = Field(None, description="Message file the email was read from")
