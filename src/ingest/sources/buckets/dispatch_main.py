import asyncio
import signal
from typing import Optional

from core.concurrency import CancellationToken, OperationCancelled
from core.containers.app_containers import AppContainer
from core.config.settings import settings
from core.logging.logger import get_logger
from ingest.index.manifest_indexer import ManifestIndexer, ensure_manifest_indexes
from ingest.sources.buckets.bucket_queue import BucketQueue, ensure_bucket_job_indexes
from ingest.sources.buckets.crawler import DispatchBucketsCrawler

logger = get_logger(__name__)

# Global references for signal handler
current_token: Optional[CancellationToken] = None
shutdown_requested = False


async def run_once(crawler: DispatchBucketsCrawler):
    """단일 crawl run. run마다 새 cancellation token 사용"""
    global current_token

    token = CancellationToken()
    current_token = token
    try:
        buckets = await crawler.run(token)
        logger.info(f"Crawl run finished ({len(buckets)} buckets dispatched)")
    except OperationCancelled:
        logger.warning("Crawl run cancelled")
    finally:
        current_token = None


async def wait_next_run(interval: int):
    # 1초씩 쪼개서 shutdown 체크
    for _ in range(interval):
        if shutdown_requested:
            break
        await asyncio.sleep(1)


async def main():
    """메인 진입점"""
    container = AppContainer()
    mongo = container.mongo_client()
    client = container.github_client()
    db = mongo[settings.MONGO_DB_NAME]

    logger.info("=" * 60)
    logger.info("Buckets Crawler Dispatcher Starting")
    logger.info("=" * 60)

    # 인덱스 생성
    logger.info("Ensuring indexes...")
    await ensure_manifest_indexes(db, settings.MANIFESTS_COLLECTION)
    await ensure_bucket_job_indexes(db, settings.BUCKETS_QUEUE_COLLECTION)
    logger.info("Indexes ready")

    # MongoDB 연결 테스트
    await mongo.admin.command("ping")
    logger.info("MongoDB connected")

    # Signal 등록 (Ctrl+C, Docker stop)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig, None)

    crawler = DispatchBucketsCrawler(
        client=client,
        indexer=ManifestIndexer(db, settings.MANIFESTS_COLLECTION),
        queue=BucketQueue(db, settings.BUCKETS_QUEUE_COLLECTION),
        options=settings.buckets_options(),
        max_parallelism=settings.MAX_DEGREE_OF_PARALLELISM,
        results_per_page=settings.GITHUB_RESULTS_PER_PAGE,
    )

    try:
        while not shutdown_requested:
            await run_once(crawler)
            if settings.DISPATCH_RUN_ONCE:
                break
            logger.info(f"Next crawl run in {settings.DISPATCH_INTERVAL_SECONDS}s")
            await wait_next_run(settings.DISPATCH_INTERVAL_SECONDS)
    finally:
        await client.aclose()
        mongo.close()


def signal_handler(signum, frame):
    global shutdown_requested

    logger.info(f"Received signal {signum}. Initiating graceful shutdown")
    shutdown_requested = True

    if current_token:
        current_token.cancel()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutdown complete")
