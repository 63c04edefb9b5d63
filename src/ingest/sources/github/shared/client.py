# src/ingest/sources/github/shared/client.py

import asyncio
from typing import Optional
from urllib.parse import urlparse

import httpx
from github import Auth, Github, GithubException
from pydantic import ValidationError

from core.concurrency import CancellationToken, OperationCancelled
from core.logging.logger import get_logger
from ingest.sources.github.shared.models import (
    ProbeResult,
    RepoInfo,
    SearchResults,
)

GITHUB_API_HOST = "api.github.com"
GITHUB_HOSTS = {"github.com", "www.github.com"}


class GitHubClient:
    """
    Low-level GitHub wrapper.
    Only responsible for HTTP communication.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": "scoop-buckets-crawler"},
            transport=transport,
        )
        self.client = Github(auth=Auth.Token(token)) if token else Github()
        self.logger = get_logger(__name__)

    def _headers_for(self, uri: str) -> dict:
        # 토큰은 GitHub API 호출에만 붙인다
        if self.token and urlparse(uri).hostname == GITHUB_API_HOST:
            return {
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
            }
        return {}

    async def get_as_string(self, uri: str, token: CancellationToken) -> str:
        """
        uri 내용을 text로 가져온다. 실패 시 예외 전파
        """
        response = await token.run(
            self.http.get(uri, headers=self._headers_for(uri), follow_redirects=True)
        )
        response.raise_for_status()
        return response.text

    async def send(
        self,
        method: str,
        uri: str,
        follow_redirects: bool,
        token: CancellationToken,
    ) -> ProbeResult:
        """
        임의 request 전송. follow_redirects=False면 redirect를 따라가지 않는다

        Returns:
            status code와 최종 request uri
        """
        request = self.http.build_request(method, uri, headers=self._headers_for(uri))
        response = await token.run(
            self.http.send(request, follow_redirects=follow_redirects)
        )
        return ProbeResult(
            status_code=response.status_code,
            final_uri=str(response.url) if response.url else None,
        )

    async def get_search_results(
        self, uri: str, token: CancellationToken
    ) -> Optional[SearchResults]:
        """
        Search API 한 페이지 호출. 실패하면 None
        """
        try:
            response = await token.run(
                self.http.get(uri, headers=self._headers_for(uri))
            )
            if response.status_code != 200:
                self.logger.warning(
                    f"Search '{uri}' returned status {response.status_code}"
                )
                return None
            return SearchResults.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            self.logger.error(f"Failed to get search results for {uri}: {e}")
            return None

    async def get_repo(
        self, repository_uri: str, token: CancellationToken
    ) -> Optional[RepoInfo]:
        """
        Core API: 단일 repository 조회

        Args:
            repository_uri: https://github.com/owner/repo
        Returns:
            RepoInfo or None if not found
        """
        parsed = urlparse(repository_uri)
        if parsed.hostname not in GITHUB_HOSTS:
            # GitHub 외 호스팅 bucket은 stars 조회 불가
            return None

        full_name = parsed.path.strip("/")
        try:
            repo = await token.run(asyncio.to_thread(self.client.get_repo, full_name))
            return RepoInfo(full_name=repo.full_name, stars=repo.stargazers_count)
        except OperationCancelled:
            raise
        except GithubException as e:
            self.logger.warning(
                f"GitHub API error ({e.status}) for {repository_uri}"
            )
            return None
        except Exception as e:
            self.logger.error(f"Failed to get repository {repository_uri}: {e}")
            return None

    async def aclose(self):
        await self.http.aclose()
        self.client.close()
