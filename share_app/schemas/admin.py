from typing import List, Union

from share_app.schemas.base import CamelModel
from share_app.schemas.file import FileResponse
from share_app.schemas.link import LinkResponse
from share_app.schemas.text import TextResponse


class AdminStats(CamelModel):
    total_urls: int
    total_clicks: int
    total_files: int
    total_downloads: int
    total_texts: int
    total_views: int
    storage_used: int


class AdminPage(CamelModel):
    items: List[Union[LinkResponse, FileResponse, TextResponse]]
    page: int
    limit: int
    total: int
    total_pages: int


class CleanupResult(CamelModel):
    message: str
    removed_count: int
    orphans_removed: int = 0
