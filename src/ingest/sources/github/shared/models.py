from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SearchResultItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uri: str = Field(alias="html_url")
    stars: int = Field(alias="stargazers_count")


class SearchResults(BaseModel):
    """
    GitHub search API 한 페이지 결과
    """
    total_count: int = 0
    items: List[SearchResultItem] = Field(default_factory=list)


class RepoInfo(BaseModel):
    full_name: str
    stars: int


class ProbeResult(BaseModel):
    status_code: int
    final_uri: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
