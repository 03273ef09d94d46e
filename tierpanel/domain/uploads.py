from datetime import datetime
from uuid import UUID

from tierpanel.domain.errors import ValidationError
from tierpanel.rules.models import UploadsRules


def file_extension(filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    return ext.lower() if dot else ""


def validate_upload(data: bytes, filename: str, rules: UploadsRules) -> str:
    """Check an uploaded file against the upload rules; returns its extension."""
    if not data:
        raise ValidationError("File is empty", field="file")
    if len(data) > rules.max_upload_bytes:
        raise ValidationError(
            f"File exceeds {rules.max_upload_bytes} bytes", field="file"
        )
    ext = file_extension(filename)
    if ext not in rules.allowed_extensions:
        raise ValidationError(f"File type '.{ext}' is not allowed", field="file")
    return ext


def object_key(prefix: str, account_id: UUID, now: datetime, ext: str) -> str:
    """Key derived from (account, timestamp) so repeated uploads never collide."""
    millis = int(now.timestamp() * 1000)
    return f"{prefix}/{account_id}-{millis}.{ext}"
