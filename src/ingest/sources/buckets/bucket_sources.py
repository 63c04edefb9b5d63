import csv
import io
import json
import math
from typing import Dict, Optional, Set

from pydantic import BaseModel

from core.concurrency import (
    MAX_DEGREE_OF_PARALLELISM,
    CancellationToken,
    OperationCancelled,
    for_each_async,
)
from core.config.buckets_options import BucketsOptions
from core.logging.logger import get_logger
from ingest.sources.buckets.bucket_uris import validate_bucket_uri
from ingest.sources.github.shared.client import GitHubClient

RESULTS_PER_PAGE = 100
URL_COLUMN = "url"
UTF8_BOM = "\ufeff"


class BucketListRow(BaseModel):
    url: Optional[str] = None


def build_search_uri(query: str, page: int, per_page: int = RESULTS_PER_PAGE) -> str:
    return f"{query}&per_page={per_page}&page={page}&sort=updated"


class BucketSourceReader:
    """
    bucket 후보를 가져오는 네 가지 source (official, GitHub search, ignored/manual CSV)
    """

    def __init__(
        self,
        client: GitHubClient,
        options: BucketsOptions,
        max_parallelism: int = MAX_DEGREE_OF_PARALLELISM,
        results_per_page: int = RESULTS_PER_PAGE,
    ):
        self.client = client
        self.options = options
        self.max_parallelism = max_parallelism
        self.results_per_page = results_per_page
        self.logger = get_logger(__name__)

    async def retrieve_official_buckets(self, token: CancellationToken) -> Set[str]:
        """
        official list: {"name": "url", ...} JSON
        """
        list_url = self.options.official_buckets_list_url
        try:
            content = await self.client.get_as_string(list_url, token)
            official = json.loads(content) or {}
            return {uri for uri in official.values() if isinstance(uri, str) and uri}
        except OperationCancelled:
            raise
        except Exception as e:
            self.logger.error(f"Unable to read/parse data from '{list_url}': {e}", exc_info=True)
            return set()

    async def retrieve_buckets(
        self, list_url: Optional[str], follow_redirects: bool, token: CancellationToken
    ) -> Set[str]:
        """
        CSV bucket list의 'url' 컬럼을 읽어 각 uri를 검증 후 반환
        """
        if not list_url:
            return set()

        buckets: Set[str] = set()
        try:
            content = await self.client.get_as_string(list_url, token)
            # BOM이 붙은 list는 첫 header 이름 앞에 \ufeff가 남는다
            reader = csv.DictReader(io.StringIO(content.lstrip(UTF8_BOM)))
            if URL_COLUMN not in (reader.fieldnames or []):
                self.logger.warning(
                    f"No '{URL_COLUMN}' column in '{list_url}' (header: {reader.fieldnames})"
                )
                return set()

            rows = [BucketListRow(url=row.get(URL_COLUMN)) for row in reader]
            uris = [row.url for row in rows if row.url]

            async def validate(uri: str):
                canonical = await validate_bucket_uri(
                    self.client, uri, follow_redirects, token, source=list_url
                )
                if canonical is not None:
                    buckets.add(canonical)

            await for_each_async(
                uris,
                validate,
                token,
                max_parallelism=self.max_parallelism,
                description="bucket uri",
                logger=self.logger,
            )
        except OperationCancelled:
            raise
        except Exception as e:
            self.logger.error(f"Unable to read/parse data from '{list_url}': {e}", exc_info=True)
            return set()

        return buckets

    async def search_for_buckets_on_github(self, token: CancellationToken) -> Dict[str, int]:
        """
        검색 query마다 첫 페이지로 total_count 확인 후 나머지 페이지를 순차 조회

        query끼리는 동시 실행(max_parallelism), 같은 query의 페이지는 순차.
        결과는 uri -> stars, 나중 페이지가 덮어쓴다.
        """
        buckets: Dict[str, int] = {}

        async def search(query: str):
            first_results = await self.client.get_search_results(
                build_search_uri(query, 1, self.results_per_page), token
            )
            if first_results is None:
                return

            for item in first_results.items:
                buckets[item.uri] = item.stars

            total_pages = math.ceil(first_results.total_count / self.results_per_page)
            for page in range(2, total_pages + 1):
                results = await self.client.get_search_results(
                    build_search_uri(query, page, self.results_per_page), token
                )
                if results is None:
                    continue
                for item in results.items:
                    buckets[item.uri] = item.stars

        await for_each_async(
            self.options.github_buckets_search_queries,
            search,
            token,
            max_parallelism=self.max_parallelism,
            description="search query",
            logger=self.logger,
        )
        return buckets
