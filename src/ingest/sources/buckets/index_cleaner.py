from typing import Iterable, List, Optional

from core.concurrency import (
    MAX_DEGREE_OF_PARALLELISM,
    CancellationToken,
    OperationCancelled,
    for_each_async,
)
from core.logging.logger import get_logger
from ingest.index.manifest_indexer import ManifestIndexer


class IndexCleaner:
    """
    더 이상 존재하지 않는 bucket의 manifest를 인덱스에서 제거
    """

    def __init__(self, indexer: ManifestIndexer, max_parallelism: int = MAX_DEGREE_OF_PARALLELISM):
        self.indexer = indexer
        self.max_parallelism = max_parallelism
        self.logger = get_logger(__name__)

    async def get_index_buckets(self, token: CancellationToken) -> List[str]:
        try:
            return await self.indexer.get_buckets(token)
        except OperationCancelled:
            raise
        except Exception as e:
            self.logger.error(f"Unable to list buckets from the index: {e}", exc_info=True)
            return []

    async def clean_index_from_non_existent_buckets(
        self,
        buckets: Iterable[str],
        token: CancellationToken,
        index_buckets: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """
        인덱스에는 있지만 buckets에 없는 bucket의 manifest 전부 삭제

        Args:
            index_buckets: 미리 조회한 인덱스 bucket 목록 (None이면 여기서 조회)
        Returns:
            삭제 대상이었던 bucket 목록
        """
        if index_buckets is None:
            index_buckets = await self.get_index_buckets(token)

        deleted_buckets = sorted(set(index_buckets) - set(buckets))
        self.logger.info(f"{len(deleted_buckets)} buckets to remove from the index.")

        async def delete_bucket(deleted_bucket: str):
            manifests = await self.indexer.get_existing_manifests(deleted_bucket, token)
            self.logger.debug(f"Deleting {len(manifests)} manifests from bucket {deleted_bucket}.")
            await self.indexer.delete_manifests(manifests, token)

        await for_each_async(
            deleted_buckets,
            delete_bucket,
            token,
            max_parallelism=self.max_parallelism,
            description="deleted bucket",
            logger=self.logger,
        )
        return deleted_buckets
