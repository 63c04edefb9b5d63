from pydantic_settings import BaseSettings
from typing import List, Optional

from core.config.buckets_options import BucketsOptions


class AppSettings(BaseSettings):
    MONGO_URL: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "scoop_search"
    MANIFESTS_COLLECTION: str = "manifests"
    BUCKETS_QUEUE_COLLECTION: str = "bucket_crawl_jobs"

    # ===== GitHub =====
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_RESULTS_PER_PAGE: int = 100
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # ===== Buckets =====
    OFFICIAL_BUCKETS_LIST_URL: str = (
        "https://raw.githubusercontent.com/ScoopInstaller/Scoop/master/buckets.json"
    )
    GITHUB_BUCKETS_SEARCH_QUERIES: List[str] = [
        "https://api.github.com/search/repositories?q=topic:scoop-bucket",
    ]
    IGNORED_BUCKETS_LIST_URL: Optional[str] = None
    MANUAL_BUCKETS_LIST_URL: Optional[str] = None
    IGNORED_BUCKETS: List[str] = []
    MANUAL_BUCKETS: List[str] = []

    # Dispatch 주기
    MAX_DEGREE_OF_PARALLELISM: int = 8
    DISPATCH_INTERVAL_SECONDS: int = 3600
    DISPATCH_RUN_ONCE: bool = False

    class Config:
        # docker-compose env_file 환경변수 사용 중
        env_file = ".env"
        extra = "ignore"

    def buckets_options(self) -> BucketsOptions:
        return BucketsOptions(
            official_buckets_list_url=self.OFFICIAL_BUCKETS_LIST_URL,
            github_buckets_search_queries=self.GITHUB_BUCKETS_SEARCH_QUERIES,
            ignored_buckets_list_url=self.IGNORED_BUCKETS_LIST_URL,
            manual_buckets_list_url=self.MANUAL_BUCKETS_LIST_URL,
            ignored_buckets=self.IGNORED_BUCKETS,
            manual_buckets=self.MANUAL_BUCKETS,
        )


settings = AppSettings()
