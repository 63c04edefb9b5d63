from typing import Iterable, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReplaceOne

from core.concurrency import CancellationToken
from core.logging.logger import get_logger
from ingest.index.manifest_schema import (
    REPOSITORY_FIELD,
    REPOSITORY_STARS_FIELD,
    SHA_FIELD,
    ManifestStub,
)


class ManifestIndexer:
    """
    MongoDB manifests 컬렉션을 검색 인덱스로 사용하는 indexer
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "manifests"):
        self.col = db[collection_name]
        self.logger = get_logger(__name__)

    async def get_buckets(self, token: CancellationToken) -> List[str]:
        """
        현재 인덱스에 manifest가 있는 bucket(repository) 목록
        """
        buckets = await token.run(self.col.distinct(REPOSITORY_FIELD))
        return [bucket for bucket in buckets if bucket]

    async def get_existing_manifests(
        self, repository: str, token: CancellationToken
    ) -> List[ManifestStub]:
        cursor = self.col.find(
            {REPOSITORY_FIELD: repository},
            {"_id": 1, REPOSITORY_FIELD: 1, REPOSITORY_STARS_FIELD: 1, SHA_FIELD: 1},
        ).sort("_id", 1)
        docs = await token.run(cursor.to_list(length=None))
        return [ManifestStub.from_document(doc) for doc in docs]

    async def delete_manifests(
        self, manifests: Iterable[ManifestStub], token: CancellationToken
    ) -> int:
        ids = [manifest.id for manifest in manifests]
        if not ids:
            return 0

        result = await token.run(self.col.delete_many({"_id": {"$in": ids}}))
        return result.deleted_count

    async def add_manifests(self, documents: List[dict], token: CancellationToken) -> int:
        """
        manifest document upsert (id 기준 merge or upload)
        """
        if not documents:
            return 0

        operations = [
            ReplaceOne({"_id": doc["_id"]}, doc, upsert=True) for doc in documents
        ]
        result = await token.run(self.col.bulk_write(operations, ordered=False))
        self.logger.info(
            f"Upserted {result.upserted_count + result.modified_count} manifests"
        )
        return result.upserted_count + result.modified_count


async def ensure_manifest_indexes(db: AsyncIOMotorDatabase, collection_name: str = "manifests"):
    col = db[collection_name]

    # bucket 단위 조회/삭제용
    await col.create_index(
        [(REPOSITORY_FIELD, 1)],
        name="repository",
    )

    # 이름 70 : 설명 30 가중치 텍스트 검색
    await col.create_index(
        [("name", "text"), ("description", "text")],
        weights={"name": 70, "description": 30},
        name="manifest_text",
    )

    await col.create_index(
        [("metadata.official_repository_number", -1), (REPOSITORY_STARS_FIELD, -1)],
        name="official_stars_desc",
    )
