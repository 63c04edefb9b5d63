import asyncio
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from core.logging.logger import get_logger

T = TypeVar("T")

MAX_DEGREE_OF_PARALLELISM = 8


class OperationCancelled(Exception):
    """Raised when a run's cancellation token has been triggered."""


class CancellationToken:
    """
    Run 단위 취소 신호. 모든 동시 작업에 명시적으로 전달된다.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        self._event.set()

    def raise_if_cancellation_requested(self):
        if self._event.is_set():
            raise OperationCancelled()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        awaitable을 실행하되, 취소 요청이 들어오면 즉시 중단한다
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise OperationCancelled()


async def for_each_async(
    items: Iterable[T],
    func: Callable[[T], Awaitable[None]],
    token: CancellationToken,
    max_parallelism: int = MAX_DEGREE_OF_PARALLELISM,
    description: str = "item",
    logger=None,
):
    """
    Semaphore로 동시 실행 수를 제한하며 items 각각에 func 적용

    - 한 item의 실패는 로그만 남기고 다른 item에 영향 없음
    - 취소 요청 이후 아직 시작하지 않은 item은 건너뜀
    - 모든 item이 끝난 뒤 취소 요청이 있었다면 OperationCancelled
    """
    logger = logger or get_logger(__name__)
    semaphore = asyncio.Semaphore(max_parallelism)

    async def run_one(item: T):
        async with semaphore:
            if token.is_cancellation_requested:
                return
            try:
                await func(item)
            except OperationCancelled:
                raise
            except Exception as e:
                logger.error(f"Failed to process {description} '{item}': {e}", exc_info=True)

    await asyncio.gather(*(run_one(item) for item in items), return_exceptions=True)
    token.raise_if_cancellation_requested()


async def map_async(
    items: Iterable[T],
    func: Callable[[T], Awaitable[Optional[object]]],
    token: CancellationToken,
    max_parallelism: int = MAX_DEGREE_OF_PARALLELISM,
) -> list:
    """
    for_each_async와 동일한 제한 하에 결과를 모아 반환 (실패/건너뜀은 제외)
    """
    results = []

    async def collect(item: T):
        results.append(await func(item))

    await for_each_async(items, collect, token, max_parallelism=max_parallelism)
    return results
