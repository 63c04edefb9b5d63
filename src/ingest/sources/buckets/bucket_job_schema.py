from datetime import datetime, timezone
from typing import Literal
from pydantic import BaseModel

BucketJobStatus = Literal["pending", "running", "done", "failed"]


class QueueItem(BaseModel):
    """
    downstream manifest 인덱싱에 넘기는 작업 단위
    """
    bucket: str
    stars: int = -1
    official: bool = False


def create_bucket_job(item: QueueItem, max_attempts: int = 3) -> dict:
    """
    bucket_crawl_jobs 컬렉션용 document 생성

    Args:
        item: bucket uri, stars, official 여부
    """
    now = datetime.now(timezone.utc)

    return {
        "bucket": item.bucket,
        "stars": item.stars,
        "official": item.official,
        "status": "pending",
        "attempts": 0,
        "max_attempts": max_attempts,
        "created_at": now,
        "updated_at": now,
        "error_message": None,
    }
