from typing import Optional

import httpx

from core.concurrency import CancellationToken
from core.logging.logger import get_logger
from ingest.sources.github.shared.client import GitHubClient

logger = get_logger(__name__)

GIT_SUFFIX = ".git"


def normalize_bucket_uri(uri: str) -> str:
    """
    trailing '.git' 제거. 이미 정규화된 uri는 그대로 반환
    """
    uri = uri.strip()
    while uri.endswith(GIT_SUFFIX):
        uri = uri[: -len(GIT_SUFFIX)]
    return uri


async def validate_bucket_uri(
    client: GitHubClient,
    raw_uri: str,
    follow_redirects: bool,
    token: CancellationToken,
    source: str = "",
) -> Optional[str]:
    """
    HEAD 요청으로 repository 존재 확인 후 최종 uri 반환

    Returns:
        redirect가 반영된 canonical uri, 접근 불가면 None
    """
    uri = normalize_bucket_uri(raw_uri)

    try:
        probe = await client.send("HEAD", uri, follow_redirects, token)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Skipping '{uri}' because the request failed: {e} (from '{source}')")
        return None

    if probe.final_uri is None:
        return None

    if not probe.is_success:
        logger.warning(
            f"Skipping '{uri}' because it returns '{probe.status_code}' status (from '{source}')"
        )
        return None

    if probe.final_uri != uri:
        logger.warning(f"'{uri}' redirects to '{probe.final_uri}' (from '{source}')")

    return probe.final_uri
