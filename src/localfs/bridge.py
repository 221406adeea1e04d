"""Bridge from blocking native calls to awaitables.

Native filesystem calls block the calling thread. The bridge runs them on a
bounded thread pool and lets coroutines await the result. The number of
dispatches in flight (running plus queued) is bounded too: once the bound is
reached, further callers wait for a slot instead of growing the queue.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["BlockingBridge", "BridgeClosedError", "BridgedIterator"]


class BridgeClosedError(RuntimeError):
    """Raised when work is dispatched to a bridge that has been shut down."""

    pass


class BlockingBridge:
    """Runs blocking callables on a bounded worker pool."""

    def __init__(
        self,
        max_workers: int,
        max_pending: int | None = None,
        thread_name_prefix: str = "localfs",
    ) -> None:
        """Initialize the bridge.

        Args:
            max_workers: Number of worker threads.
            max_pending: Maximum dispatches in flight, running or queued.
                Defaults to twice max_workers.
            thread_name_prefix: Prefix for worker thread names.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.max_pending = max(max_pending or max_workers * 2, max_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._closed = False
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._slots: asyncio.Semaphore | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def _slots_for(self, loop: asyncio.AbstractEventLoop) -> asyncio.Semaphore:
        # asyncio primitives belong to one loop; a new loop gets fresh slots.
        with self._lock:
            if self._loop is not loop or self._slots is None:
                self._loop = loop
                self._slots = asyncio.Semaphore(self.max_pending)
            return self._slots

    async def run(
        self,
        func: Callable[..., T],
        *args: Any,
        release: Callable[[T], None] | None = None,
    ) -> T:
        """Run a blocking callable on the pool and await its result.

        If the awaiting task is cancelled, a call that already started keeps
        running in its worker and its result is discarded; a call still
        queued is dropped. ``release`` is called on a discarded result once
        the call finishes.

        Args:
            func: Blocking callable.
            *args: Positional arguments for func.
            release: Called with the result if the caller is cancelled
                before receiving it.

        Returns:
            The callable's return value.

        Raises:
            BridgeClosedError: If the bridge has been shut down.
        """
        if self._closed:
            raise BridgeClosedError("bridge is shut down")

        loop = asyncio.get_running_loop()
        slots = self._slots_for(loop)
        await slots.acquire()
        try:
            future = self._executor.submit(func, *args)
        except RuntimeError as e:
            slots.release()
            raise BridgeClosedError("bridge is shut down") from e
        except BaseException:
            slots.release()
            raise

        future.add_done_callback(lambda _: self._release(loop, slots))
        try:
            return await asyncio.wrap_future(future, loop=loop)
        except asyncio.CancelledError:
            if release is not None:
                future.add_done_callback(partial(_release_discarded, release))
            raise

    @staticmethod
    def _release(loop: asyncio.AbstractEventLoop, slots: asyncio.Semaphore) -> None:
        # Runs in the worker thread once the native call has finished.
        if loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(slots.release)
        except RuntimeError:
            logger.debug("Event loop closed before slot release")

    def submit(self, func: Callable[..., T], *args: Any) -> Future[T]:
        """Submit a blocking callable without awaiting it.

        Raises:
            BridgeClosedError: If the bridge has been shut down.
        """
        if self._closed:
            raise BridgeClosedError("bridge is shut down")
        return self._executor.submit(func, *args)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and release the worker threads.

        Args:
            wait: Block until running calls have finished.
        """
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.debug("Blocking bridge shut down")


def _release_discarded(release: Callable[[T], None], future: Future[T]) -> None:
    # Runs in the worker thread, or inline if the call had already finished.
    if future.cancelled() or future.exception() is not None:
        return
    try:
        release(future.result())
    except Exception:
        logger.exception("Failed to release an abandoned result")


class BridgedIterator(Generic[T]):
    """Async iterator over a blocking, pull-based source.

    Each item is fetched with one bridged call to ``pull``, which returns
    None once the source is exhausted. The source is released through
    ``close`` when it is exhausted, when a pull fails, when the consumer
    calls ``aclose`` or leaves an ``async with`` block. An iterator abandoned
    without any of these, e.g. after ``break`` in ``async for``, releases the
    source when it is garbage collected. The iterator is single pass.

    Pulls and the release never overlap: if the consumer is cancelled while a
    pull is still running in a worker, the release is deferred until that
    pull returns.
    """

    def __init__(
        self,
        bridge: BlockingBridge,
        pull: Callable[[], T | None],
        close: Callable[[], None],
    ) -> None:
        self._bridge = bridge
        self._pull = pull
        self._close = close
        self._lock = threading.Lock()
        self._done = False
        self._released = False

    @property
    def closed(self) -> bool:
        return self._done

    def _locked_pull(self) -> T | None:
        with self._lock:
            if self._released:
                return None
            return self._pull()

    def _locked_close(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
            self._close()

    def _close_now(self) -> bool:
        # False when a pull holds the lock.
        if not self._lock.acquire(blocking=False):
            return False
        try:
            if not self._released:
                self._released = True
                self._close()
        finally:
            self._lock.release()
        return True

    def __aiter__(self) -> BridgedIterator[T]:
        return self

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        try:
            item = await self._bridge.run(self._locked_pull)
        except BaseException:
            await self.aclose()
            raise
        if item is None:
            await self.aclose()
            raise StopAsyncIteration
        return item

    async def aclose(self) -> None:
        """Release the underlying native handle. Safe to call twice."""
        if self._done:
            return
        self._done = True
        if self._close_now():
            return

        # A pull is still running in a worker thread.
        try:
            self._bridge.submit(self._locked_close)
        except BridgeClosedError:
            threading.Thread(target=self._locked_close, daemon=True).start()

    async def __aenter__(self) -> BridgedIterator[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __del__(self) -> None:
        if getattr(self, "_released", True):
            return
        self._done = True
        self._close_now()
