import asyncio
from typing import Set

from core.concurrency import MAX_DEGREE_OF_PARALLELISM, CancellationToken
from core.config.buckets_options import BucketsOptions
from core.logging.logger import get_logger
from ingest.index.manifest_indexer import ManifestIndexer
from ingest.sources.buckets.bucket_queue import BucketQueue
from ingest.sources.buckets.bucket_sources import RESULTS_PER_PAGE, BucketSourceReader
from ingest.sources.buckets.dispatcher import BucketDispatcher
from ingest.sources.buckets.index_cleaner import IndexCleaner
from ingest.sources.buckets.reconciler import reconcile_buckets
from ingest.sources.github.shared.client import GitHubClient


class DispatchBucketsCrawler:
    """
    Stateless crawl run: bucket 수집 → 인덱스 정리 → queue dispatch
    """

    def __init__(
        self,
        client: GitHubClient,
        indexer: ManifestIndexer,
        queue: BucketQueue,
        options: BucketsOptions,
        max_parallelism: int = MAX_DEGREE_OF_PARALLELISM,
        results_per_page: int = RESULTS_PER_PAGE,
    ):
        self.options = options
        self.sources = BucketSourceReader(
            client, options, max_parallelism=max_parallelism, results_per_page=results_per_page
        )
        self.cleaner = IndexCleaner(indexer, max_parallelism=max_parallelism)
        self.dispatcher = BucketDispatcher(client, queue, max_parallelism=max_parallelism)
        self.logger = get_logger(__name__)

    async def run(self, token: CancellationToken) -> Set[str]:
        """
        1) 4개 source + 현재 인덱스 bucket 목록 동시 조회
        2) reconcile
        3) 인덱스에서 사라진 bucket 제거
        4) stars/official 결정 후 queue 적재

        Returns:
            이번 run의 authoritative bucket set
        """
        results = await asyncio.gather(
            self.sources.retrieve_official_buckets(token),
            self.sources.search_for_buckets_on_github(token),
            self.sources.retrieve_buckets(self.options.ignored_buckets_list_url, False, token),
            self.sources.retrieve_buckets(self.options.manual_buckets_list_url, True, token),
            self.cleaner.get_index_buckets(token),
            return_exceptions=True,
        )
        # 모든 source가 끝난 뒤에 실패 전파 (취소 포함)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        token.raise_if_cancellation_requested()

        official_buckets, github_buckets, ignored_buckets, manual_buckets, index_buckets = results

        self.logger.info(f"Found {len(official_buckets)} official buckets.")
        self.logger.info(f"Found {len(github_buckets)} buckets on GitHub.")
        self.logger.info(f"Found {len(self.options.ignored_buckets)} buckets to ignore.")
        self.logger.info(f"Found {len(ignored_buckets)} buckets to ignore from external list.")
        self.logger.info(f"Found {len(self.options.manual_buckets)} buckets to manually add.")
        self.logger.info(f"Found {len(manual_buckets)} buckets to manually add from external list.")

        all_buckets = reconcile_buckets(
            official=official_buckets,
            github=github_buckets.keys(),
            manual_config=self.options.manual_buckets,
            manual_list=manual_buckets,
            ignore_config=self.options.ignored_buckets,
            ignore_list=ignored_buckets,
        )

        await self.cleaner.clean_index_from_non_existent_buckets(
            all_buckets, token, index_buckets=index_buckets
        )

        items = await self.dispatcher.resolve_buckets(
            all_buckets, github_buckets, official_buckets, token
        )
        await self.dispatcher.queue_buckets_for_indexing(items, token)

        return all_buckets
