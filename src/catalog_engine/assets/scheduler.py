"""Bounded-concurrency asset upload scheduler.

A fixed pool of asyncio workers pulls files from a FIFO queue until it is
empty. Successful results are buffered and published to the :class:`AssetMap`
in batches; failures are counted and logged but never stop the batch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Generic, Iterable, TypeVar

from catalog_engine.assets.asset_map import AssetMap
from catalog_engine.assets.uploads import UploadFn, coerce_upload_result
from catalog_engine.exceptions import UploadError
from catalog_engine.logging import NullLogger, SessionLogger

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class UploadProgress:
    total: int
    completed: int = 0
    failed: int = 0
    active: int = 0

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.processed / self.total * 100)

    @property
    def done(self) -> bool:
        return self.processed >= self.total and self.active == 0


class UploadScheduler(Generic[T]):
    """Upload many files with at most ``concurrency`` in flight.

    Dequeue order follows input order; completion order does not. The result
    buffer is flushed whenever it holds ``flush_threshold`` entries and once
    more after the last upload finishes.
    """

    def __init__(
        self,
        upload_one: UploadFn[T],
        asset_map: AssetMap,
        *,
        concurrency: int = 5,
        flush_threshold: int = 10,
        accept: Callable[[T], bool] | None = None,
        logger: SessionLogger | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if flush_threshold < 1:
            raise ValueError("flush_threshold must be >= 1")
        self._upload_one = upload_one
        self._asset_map = asset_map
        self._concurrency = concurrency
        self._flush_threshold = flush_threshold
        self._accept = accept
        self._logger = logger or NullLogger()

        self._buffer: dict[str, str] = {}
        self._total = 0
        self._completed = 0
        self._failed = 0
        self._active = 0

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def progress(self) -> UploadProgress:
        return UploadProgress(
            total=self._total,
            completed=self._completed,
            failed=self._failed,
            active=self._active,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def stream(self, files: Iterable[T]) -> AsyncIterator[UploadProgress]:
        """Upload ``files``, yielding a progress snapshot after each one finishes.

        Closing the iterator early does not cancel anything: the remaining
        uploads still run to completion before the iterator finishes closing.
        Cancelling the consumer cancels every in-flight upload. An exception
        that escapes a worker is re-raised here instead of leaving the
        iterator waiting for snapshots that will never arrive.
        """

        pending = list(files)
        accepted = [item for item in pending if self._accept is None or self._accept(item)]

        self._buffer = {}
        self._total = len(accepted)
        self._completed = 0
        self._failed = 0
        self._active = 0

        queue: asyncio.Queue[T] = asyncio.Queue()
        for item in accepted:
            queue.put_nowait(item)

        self._logger.event(
            "upload.started",
            message=f"Uploading {len(accepted)} file(s)",
            total=len(accepted),
            skipped=len(pending) - len(accepted),
            concurrency=self._concurrency,
        )

        updates: asyncio.Queue[UploadProgress] = asyncio.Queue()
        drain = asyncio.create_task(self._drain(queue, updates))
        try:
            for _ in range(len(accepted)):
                yield await self._next_update(updates, drain)
        except asyncio.CancelledError:
            drain.cancel()
            await asyncio.gather(drain, return_exceptions=True)
            raise
        finally:
            if not drain.done():
                await drain

    async def run(self, files: Iterable[T]) -> UploadProgress:
        """Upload ``files`` and return the final progress snapshot."""

        async for _ in self.stream(files):
            pass
        return self.progress

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _next_update(
        self,
        updates: asyncio.Queue[UploadProgress],
        drain: asyncio.Task[None],
    ) -> UploadProgress:
        if updates.empty() and not drain.done():
            getter = asyncio.ensure_future(updates.get())
            try:
                await asyncio.wait({getter, drain}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not getter.done():
                    getter.cancel()
            if getter.done() and not getter.cancelled():
                return getter.result()

        if not updates.empty():
            return updates.get_nowait()

        drain.result()
        raise UploadError("Upload workers stopped before every file was processed")

    async def _drain(self, queue: asyncio.Queue[T], updates: asyncio.Queue[UploadProgress]) -> None:
        workers = [
            asyncio.create_task(self._worker(queue, updates))
            for _ in range(min(self._concurrency, queue.qsize()))
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        self._flush()
        self._logger.event(
            "upload.completed",
            message=f"Uploaded {self._completed} of {self._total} file(s)",
            total=self._total,
            completed=self._completed,
            failed=self._failed,
        )

    async def _worker(self, queue: asyncio.Queue[T], updates: asyncio.Queue[UploadProgress]) -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            self._active += 1
            try:
                result = coerce_upload_result(await self._upload_one(item))
            except asyncio.CancelledError:
                # Only a cancellation aimed at this worker stops it.
                task = asyncio.current_task()
                if task is not None and task.cancelling():
                    raise
                self._record_failure(item, "upload cancelled")
            except Exception as exc:
                self._record_failure(item, str(exc) or type(exc).__name__)
            else:
                self._completed += 1
                self._buffer[result.key] = result.url
                if len(self._buffer) >= self._flush_threshold:
                    self._flush()
            finally:
                self._active -= 1
                queue.task_done()

            updates.put_nowait(self.progress)

    def _record_failure(self, item: T, error: str) -> None:
        self._failed += 1
        self._logger.event(
            "upload.file_failed",
            level=logging.WARNING,
            message=f"Failed to upload {item}",
            file=str(item),
            error=error,
        )

    def _flush(self) -> None:
        if not self._buffer:
            return
        batch, self._buffer = self._buffer, {}
        self._asset_map.merge(batch)
        self._logger.event(
            "upload.flushed",
            level=logging.DEBUG,
            entries=len(batch),
            asset_count=len(self._asset_map),
        )


__all__ = ["UploadProgress", "UploadScheduler"]
