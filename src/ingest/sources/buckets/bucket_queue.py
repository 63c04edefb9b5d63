from motor.motor_asyncio import AsyncIOMotorDatabase

from core.concurrency import CancellationToken
from ingest.sources.buckets.bucket_job_schema import QueueItem, create_bucket_job


class BucketQueue:
    """
    Append-only outbound queue (MongoDB job 컬렉션)
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "bucket_crawl_jobs"):
        self.jobs_col = db[collection_name]

    async def add(self, item: QueueItem, token: CancellationToken):
        await token.run(self.jobs_col.insert_one(create_bucket_job(item)))


async def ensure_bucket_job_indexes(db: AsyncIOMotorDatabase, collection_name: str = "bucket_crawl_jobs"):
    """bucket_crawl_jobs 컬렉션 인덱스 생성"""
    col = db[collection_name]

    # status + created_at: pending job을 오래된 순서로 가져오기
    await col.create_index(
        [("status", 1), ("created_at", 1)],
        name="status_created_asc",
    )

    await col.create_index(
        [("bucket", 1)],
        name="bucket",
    )
