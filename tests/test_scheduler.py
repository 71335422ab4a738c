from __future__ import annotations

import asyncio

import pytest

from catalog_engine.assets import AssetMap, UploadProgress, UploadScheduler, accepts_image
from catalog_engine.assets.uploads import UploadResult


class RecordingAssetMap(AssetMap):
    def __init__(self) -> None:
        super().__init__()
        self.batches: list[int] = []

    def merge(self, entries) -> int:
        self.batches.append(len(entries))
        return super().merge(entries)


class FakeUploader:
    def __init__(self, *, delay: float = 0.01, fail: set[str] | None = None) -> None:
        self.delay = delay
        self.fail = fail or set()
        self.in_flight = 0
        self.peak = 0
        self.started: list[str] = []

    async def __call__(self, name: str) -> dict[str, str]:
        self.started.append(name)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if name in self.fail:
                raise RuntimeError(f"upload refused for {name}")
            return {"key": name, "url": f"https://cdn.example.com/{name}"}
        finally:
            self.in_flight -= 1


def _files(count: int) -> list[str]:
    return [f"image-{idx:02d}.png" for idx in range(count)]


@pytest.mark.asyncio()
async def test_never_exceeds_concurrency_ceiling() -> None:
    uploader = FakeUploader()
    assets = AssetMap()
    files = _files(12)

    progress = await UploadScheduler(uploader, assets, concurrency=5).run(files)

    assert uploader.peak == 5
    assert uploader.started == files
    assert progress == UploadProgress(total=12, completed=12, failed=0, active=0)
    assert set(assets) == set(files)


@pytest.mark.asyncio()
async def test_fewer_files_than_workers() -> None:
    uploader = FakeUploader()

    progress = await UploadScheduler(uploader, AssetMap(), concurrency=5).run(_files(2))

    assert uploader.peak == 2
    assert progress.completed == 2


@pytest.mark.asyncio()
async def test_flushes_at_threshold_and_after_last_upload() -> None:
    assets = RecordingAssetMap()

    await UploadScheduler(FakeUploader(), assets, concurrency=5, flush_threshold=10).run(_files(12))

    assert assets.batches == [10, 2]
    assert len(assets) == 12


@pytest.mark.asyncio()
async def test_failures_are_counted_and_do_not_stop_the_batch(recorded_events) -> None:
    files = _files(10)
    failing = set(files[1::2])
    assets = AssetMap()
    scheduler = UploadScheduler(FakeUploader(fail=failing), assets, concurrency=3, logger=recorded_events.logger)

    progress = await scheduler.run(files)

    assert progress.completed == 5
    assert progress.failed == 5
    assert progress.processed == 10
    assert progress.done
    assert set(assets) == set(files) - failing
    assert len(recorded_events.data_for("catalog.upload.file_failed")) == 5
    assert recorded_events.data_for("catalog.upload.completed") == [{"total": 10, "completed": 5, "failed": 5}]


@pytest.mark.asyncio()
async def test_invalid_results_count_as_failures() -> None:
    results = iter(
        [
            UploadResult(key="a.png", url="https://cdn/a.png"),
            {"key": "b.png", "url": ""},
            {"success": False, "filename": "c.png", "url": "https://cdn/c.png"},
            "not a mapping",
        ]
    )

    async def upload_one(_name: str):
        return next(results)

    assets = AssetMap()
    progress = await UploadScheduler(upload_one, assets, concurrency=1).run(["a", "b", "c", "d"])

    assert (progress.completed, progress.failed) == (1, 3)
    assert dict(assets) == {"a.png": "https://cdn/a.png"}


@pytest.mark.asyncio()
async def test_upload_raising_cancelled_error_counts_as_failure(recorded_events) -> None:
    async def upload_one(name: str):
        await asyncio.sleep(0)
        if name == "b.png":
            raise asyncio.CancelledError()
        return {"key": name, "url": f"https://cdn.example.com/{name}"}

    assets = AssetMap()
    scheduler = UploadScheduler(upload_one, assets, concurrency=2, logger=recorded_events.logger)

    progress = await asyncio.wait_for(scheduler.run(["a.png", "b.png", "c.png"]), timeout=2)

    assert (progress.completed, progress.failed) == (2, 1)
    assert progress.done
    assert set(assets) == {"a.png", "c.png"}
    assert recorded_events.data_for("catalog.upload.file_failed") == [
        {"file": "b.png", "error": "upload cancelled"}
    ]


class _Abort(BaseException):
    pass


@pytest.mark.asyncio()
async def test_worker_escape_is_raised_from_stream() -> None:
    uploader = FakeUploader(delay=0.05)

    async def upload_one(name: str):
        if name == "image-01.png":
            raise _Abort()
        return await uploader(name)

    scheduler = UploadScheduler(upload_one, AssetMap(), concurrency=3)

    with pytest.raises(_Abort):
        await asyncio.wait_for(scheduler.run(_files(6)), timeout=2)

    assert uploader.in_flight == 0
    assert scheduler.progress.active == 0


@pytest.mark.asyncio()
async def test_cancelling_run_cancels_in_flight_uploads() -> None:
    uploader = FakeUploader(delay=10)
    scheduler = UploadScheduler(uploader, AssetMap(), concurrency=3)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(scheduler.run(_files(6)), timeout=0.05)

    assert uploader.started == _files(3)
    assert uploader.in_flight == 0
    assert scheduler.progress.active == 0
    assert scheduler.progress.processed == 0


@pytest.mark.asyncio()
async def test_stream_yields_progress_after_each_completion() -> None:
    scheduler = UploadScheduler(FakeUploader(), AssetMap(), concurrency=4)

    updates = [update async for update in scheduler.stream(_files(7))]

    assert [update.processed for update in updates] == list(range(1, 8))
    assert all(update.total == 7 for update in updates)
    assert all(update.active <= 4 for update in updates)
    assert updates[-1].done
    assert updates[-1].percent == 100


@pytest.mark.asyncio()
async def test_accept_filter_skips_files_before_counting(recorded_events) -> None:
    uploader = FakeUploader()
    scheduler = UploadScheduler(uploader, AssetMap(), accept=accepts_image, logger=recorded_events.logger)

    progress = await scheduler.run(["a.png", "notes.txt", "b.JPG"])

    assert uploader.started == ["a.png", "b.JPG"]
    assert progress.total == 2
    assert recorded_events.data_for("catalog.upload.started") == [{"total": 2, "skipped": 1, "concurrency": 5}]


@pytest.mark.asyncio()
async def test_empty_input_finishes_immediately() -> None:
    assets = RecordingAssetMap()

    progress = await UploadScheduler(FakeUploader(), assets).run([])

    assert progress == UploadProgress(total=0)
    assert progress.done
    assert progress.percent == 0
    assert assets.batches == []


def test_upload_progress_percent_rounds() -> None:
    assert UploadProgress(total=3, completed=1).percent == 33
    assert UploadProgress(total=3, completed=1, failed=1).percent == 67
    assert not UploadProgress(total=3, completed=3, active=1).done


@pytest.mark.parametrize("kwargs", [{"concurrency": 0}, {"flush_threshold": 0}])
def test_scheduler_rejects_non_positive_limits(kwargs) -> None:
    with pytest.raises(ValueError):
        UploadScheduler(FakeUploader(), AssetMap(), **kwargs)
