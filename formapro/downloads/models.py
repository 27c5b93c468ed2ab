# module formapro.downloads.models
from typing import Optional
from pydantic import BaseModel, Field


class DownloadRequest(BaseModel):
    """user_id est facultatif: l'identité vient du jeton; un user_id tiers est refusé."""
    user_id: Optional[str] = None
    formation_id: str = Field(min_length=1)


class DownloadLink(BaseModel):
    url: str
    expires_in: int


class LedgerEntry(BaseModel):
    id: Optional[str] = None
    user_id: str
    formation_id: str
    download_count: int = Field(default=0, ge=0)
    max_downloads: int = Field(default=3, ge=0)
    last_download: Optional[str] = None

    @property
    def remaining(self) -> int:
        return max(self.max_downloads - self.download_count, 0)

    @property
    def exhausted(self) -> bool:
        return self.download_count >= self.max_downloads
