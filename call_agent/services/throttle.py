"""
Serialized, rate-limited dispatch queue for language-model requests.

Every provider call in the process goes through one RequestThrottle: jobs
run one at a time in submission order, dispatches are spaced by at least
``min_interval`` seconds, and every job carries a deadline of ``timeout``
seconds from submission. The deadline covers queueing as well as the
request itself, so a caller never waits longer than ``timeout`` however
many jobs are ahead of it. There is no retry here; a failed or expired
job fails its future and the caller falls back to its next strategy.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


class ThrottleClosedError(Exception):
    """Raised for jobs submitted to, or still pending in, a closed throttle."""


class RequestThrottle:
    """Single-worker FIFO queue with a minimum gap between dispatches.

    ``clock`` and ``sleep`` are injectable so tests can drive the gap
    logic with a fake clock instead of real waiting.
    """

    def __init__(
        self,
        min_interval: float,
        timeout: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")
        self.min_interval = min_interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._current: Optional[asyncio.Future] = None
        self._last_dispatch: Optional[float] = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def start(self) -> None:
        """Start the worker task. Must be called from a running event loop."""
        if self._closed:
            raise ThrottleClosedError("Throttle has been closed")
        if self.running:
            return
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._worker = asyncio.get_running_loop().create_task(self._run_worker())
        logger.debug(
            "Request throttle started (min_interval=%.3fs, timeout=%.1fs)",
            self.min_interval,
            self.timeout,
        )

    def submit(self, job: Job) -> asyncio.Future:
        """Enqueue ``job`` and return a future for its result."""
        if self._closed:
            raise ThrottleClosedError("Throttle has been closed")
        if not self.running:
            self.start()
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.put_nowait((job, future, loop.time() + self.timeout))
        return future

    async def run(self, job: Job) -> Any:
        """Submit ``job`` and wait at most ``timeout`` seconds for its result.

        Raises:
            asyncio.TimeoutError: If the deadline passes, queued or running.
        """
        return await asyncio.wait_for(self.submit(job), timeout=self.timeout)

    async def close(self) -> None:
        """Stop the worker and fail every job that has not completed."""
        if self._closed:
            return
        self._closed = True
        in_flight = self._current
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        failed = 0
        if in_flight is not None and not in_flight.done():
            in_flight.set_exception(ThrottleClosedError("Throttle closed mid-request"))
            failed += 1
        self._current = None
        while self._queue is not None and not self._queue.empty():
            _, future, _ = self._queue.get_nowait()
            if not future.done():
                future.set_exception(ThrottleClosedError("Throttle closed before dispatch"))
                failed += 1
        logger.debug("Request throttle closed (%d pending jobs failed)", failed)

    def _expire(self, future: asyncio.Future, where: str) -> None:
        self._current = None
        if future.done():
            return
        logger.warning("Throttled request passed its %.1fs deadline %s", self.timeout, where)
        future.set_exception(asyncio.TimeoutError())

    async def _wait_for_slot(self) -> None:
        if self._last_dispatch is None:
            return
        remaining = self.min_interval - (self._clock() - self._last_dispatch)
        if remaining > 0:
            await self._sleep(remaining)

    async def _run_worker(self) -> None:
        while True:
            job, future, deadline = await self._queue.get()
            if future.done():
                # Caller gave up before dispatch
                continue
            self._current = future
            await self._wait_for_slot()
            remaining = deadline - asyncio.get_running_loop().time()
            if future.done() or remaining <= 0:
                self._expire(future, "before dispatch")
                continue
            self._last_dispatch = self._clock()
            try:
                result = await asyncio.wait_for(job(), timeout=remaining)
            except asyncio.TimeoutError:
                self._expire(future, "in flight")
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._current = None
