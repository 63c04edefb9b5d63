from typing import Dict, Iterable, List, Set

from core.concurrency import (
    MAX_DEGREE_OF_PARALLELISM,
    CancellationToken,
    for_each_async,
    map_async,
)
from core.logging.logger import get_logger
from ingest.sources.buckets.bucket_job_schema import QueueItem
from ingest.sources.buckets.bucket_queue import BucketQueue
from ingest.sources.github.shared.client import GitHubClient

UNKNOWN_STARS = -1


class BucketDispatcher:
    """
    bucket별 stars/official 결정 후 queue에 적재
    """

    def __init__(
        self,
        client: GitHubClient,
        queue: BucketQueue,
        max_parallelism: int = MAX_DEGREE_OF_PARALLELISM,
    ):
        self.client = client
        self.queue = queue
        self.max_parallelism = max_parallelism
        self.logger = get_logger(__name__)

    async def resolve_bucket(
        self,
        bucket: str,
        github_buckets: Dict[str, int],
        official_buckets: Set[str],
        token: CancellationToken,
    ) -> QueueItem:
        if bucket in github_buckets:
            stars = github_buckets[bucket]
        else:
            repo = await self.client.get_repo(bucket, token)
            stars = repo.stars if repo is not None else UNKNOWN_STARS

        return QueueItem(bucket=bucket, stars=stars, official=bucket in official_buckets)

    async def resolve_buckets(
        self,
        buckets: Iterable[str],
        github_buckets: Dict[str, int],
        official_buckets: Set[str],
        token: CancellationToken,
    ) -> List[QueueItem]:
        return await map_async(
            buckets,
            lambda bucket: self.resolve_bucket(bucket, github_buckets, official_buckets, token),
            token,
            max_parallelism=self.max_parallelism,
        )

    async def queue_buckets_for_indexing(self, items: List[QueueItem], token: CancellationToken):
        self.logger.info(f"Adding {len(items)} buckets for indexing.")

        async def add(item: QueueItem):
            self.logger.debug(
                f"Adding bucket '{item.bucket}' (stars: {item.stars}, official: {item.official}) to queue."
            )
            await self.queue.add(item, token)

        await for_each_async(
            items,
            add,
            token,
            max_parallelism=self.max_parallelism,
            description="queue item",
            logger=self.logger,
        )
