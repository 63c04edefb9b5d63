from typing import List, Optional
from pydantic import BaseModel, Field


class BucketsOptions(BaseModel):
    """
    한 번의 crawl run 동안 변하지 않는 bucket source 설정
    """
    official_buckets_list_url: str
    github_buckets_search_queries: List[str] = Field(default_factory=list)
    ignored_buckets_list_url: Optional[str] = None
    manual_buckets_list_url: Optional[str] = None
    ignored_buckets: List[str] = Field(default_factory=list)
    manual_buckets: List[str] = Field(default_factory=list)
