from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, computed_field

from app.utils.formatting import format_size


class DirectoryEntry(BaseModel):
    name: str
    is_directory: bool
    size_bytes: Optional[int] = None
    modified_at: datetime

    @computed_field
    @property
    def size_label(self) -> str:
        if self.is_directory or self.size_bytes is None:
            return "-"
        return format_size(self.size_bytes)


class QuotaState(BaseModel):
    limit_bytes: int
    used_bytes: int

    @computed_field
    @property
    def available_bytes(self) -> int:
        return max(self.limit_bytes - self.used_bytes, 0)


class Breadcrumb(BaseModel):
    name: str
    path: str


class Listing(BaseModel):
    path: str
    breadcrumbs: List[Breadcrumb]
    entries: List[DirectoryEntry]
    quota: QuotaState
