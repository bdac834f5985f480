from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.exceptions import FileManagerError

if TYPE_CHECKING:
    from app.services.archive_builder import Archive


class Severity(str, Enum):
    SUCCESS = "success"
    DANGER = "danger"


class DownloadPayload:
    """Bytes to send for a download: a stored file or a transient archive."""

    def __init__(self, path: Path, filename: str, media_type: str,
                 content_length: int, archive: Optional['Archive'] = None):
        self.path = path
        self.filename = filename
        self.media_type = media_type
        self.content_length = content_length
        self.archive = archive

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'

    def release(self) -> None:
        if self.archive is not None:
            self.archive.release()


class UploadItem(BaseModel):
    """One part of an upload batch, already spooled to ``temp_path``."""
    name: str
    temp_path: Path
    size: int
    # 0 means the transport delivered the part intact
    error: int = 0


class Outcome(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    severity: Severity
    message: str
    error: Optional[str] = None
    count: Optional[int] = None
    status_code: int = Field(default=200, exclude=True)
    download: Optional[DownloadPayload] = Field(default=None, exclude=True)

    @classmethod
    def success(cls, message: str, **kwargs) -> 'Outcome':
        return cls(ok=True, severity=Severity.SUCCESS, message=message, **kwargs)

    @classmethod
    def failure(cls, error: FileManagerError) -> 'Outcome':
        return cls(
            ok=False,
            severity=Severity.DANGER,
            message=error.message,
            error=error.code,
            status_code=error.status_code,
        )
