"""In-process runner: supervision, cancellation, timeouts, concurrency."""

import asyncio

import pytest

from fxstudio.exceptions import JobAlreadyFinishedError, NonZeroExitError
from fxstudio.jobs.in_process_runner import InProcessRunner
from fxstudio.jobs.models import JobKind, JobState
from fxstudio.jobs.store import JobStore
from fxstudio.jobs.worker import RenderWorker


def _run(coro):
    return asyncio.run(coro)


def test_success_records_artifact():
    store = JobStore()

    async def worker(job, on_progress):
        on_progress(0.5)
        return f"video-{job.id}.mp4"

    async def scenario():
        runner = InProcessRunner(store, worker)
        await runner.start()
        job_id = store.create(JobKind.SINGLE, {}, "fake-effect")
        await runner.submit(job_id)
        job = await runner.join(job_id)
        await runner.stop()
        return job

    job = _run(scenario())
    assert job.state == JobState.COMPLETED
    assert job.progress == 100
    assert job.output_artifact == f"video-{job.id}.mp4"


def test_render_error_is_captured():
    store = JobStore()

    async def worker(job, on_progress):
        raise NonZeroExitError(2, "renderer", "crash")

    async def scenario():
        runner = InProcessRunner(store, worker)
        job_id = store.create(JobKind.SINGLE, {}, "fake-effect")
        await runner.submit(job_id)
        return await runner.join(job_id)

    job = _run(scenario())
    assert job.state == JobState.FAILED
    assert job.error_code == "NON_ZERO_EXIT"
    assert "exit code 2" in job.error


def test_unexpected_error_is_captured(caplog):
    store = JobStore()

    async def worker(job, on_progress):
        raise KeyError("missing")

    async def scenario():
        runner = InProcessRunner(store, worker)
        job_id = store.create(JobKind.SINGLE, {}, "fake-effect")
        await runner.submit(job_id)
        return await runner.join(job_id)

    job = _run(scenario())
    assert job.state == JobState.FAILED
    assert job.error_code == "INTERNAL_ERROR"
    assert job.error.startswith("KeyError")
    assert any(r.exc_info for r in caplog.records)


def test_cancel_running_job():
    store = JobStore()

    async def scenario():
        running = asyncio.Event()

        async def worker(job, on_progress):
            running.set()
            await asyncio.sleep(30)
            return "never.mp4"

        runner = InProcessRunner(store, worker)
        job_id = store.create(JobKind.SINGLE, {}, "fake-effect")
        await runner.submit(job_id)
        await running.wait()
        await runner.cancel(job_id)
        job = await runner.join(job_id)
        with pytest.raises(JobAlreadyFinishedError):
            await runner.cancel(job_id)
        return job

    job = _run(scenario())
    assert job.state == JobState.FAILED
    assert job.error_code == "CANCELLED"


def test_cancel_before_start():
    store = JobStore()

    async def worker(job, on_progress):
        return "video.mp4"

    async def scenario():
        runner = InProcessRunner(store, worker)
        job_id = store.create(JobKind.SINGLE, {}, "fake-effect")
        await runner.submit(job_id)
        await runner.cancel(job_id)
        return await runner.join(job_id)

    job = _run(scenario())
    assert job.state == JobState.FAILED
    assert job.error_code == "CANCELLED"
    assert job.started_at is None


def test_timeout():
    store = JobStore()

    async def worker(job, on_progress):
        await asyncio.sleep(30)

    async def scenario():
        runner = InProcessRunner(store, worker, job_timeout=0.2)
        job_id = store.create(JobKind.SINGLE, {}, "fake-effect")
        await runner.submit(job_id)
        return await runner.join(job_id)

    job = _run(scenario())
    assert job.state == JobState.FAILED
    assert job.error_code == "RENDER_TIMEOUT"


def test_concurrency_limit_keeps_jobs_pending():
    store = JobStore()
    active = []
    peak = []

    async def worker(job, on_progress):
        active.append(job.id)
        peak.append(len(active))
        await asyncio.sleep(0.05)
        active.remove(job.id)
        return f"video-{job.id}.mp4"

    async def scenario():
        runner = InProcessRunner(store, worker, max_concurrent=2)
        ids = [store.create(JobKind.SINGLE, {}, "fake-effect") for _ in range(6)]
        for job_id in ids:
            await runner.submit(job_id)
        await asyncio.sleep(0)
        states = [store.get(job_id).state for job_id in ids]
        jobs = [await runner.join(job_id) for job_id in ids]
        return states, jobs

    states, jobs = _run(scenario())
    assert max(peak) == 2
    assert states.count(JobState.PENDING) >= 4
    assert all(job.state == JobState.COMPLETED for job in jobs)


def test_stop_cancels_everything():
    store = JobStore()

    async def worker(job, on_progress):
        await asyncio.sleep(30)

    async def scenario():
        runner = InProcessRunner(store, worker)
        ids = [store.create(JobKind.SINGLE, {}, "fake-effect") for _ in range(3)]
        for job_id in ids:
            await runner.submit(job_id)
        await asyncio.sleep(0.05)
        await runner.stop()
        return ids

    ids = _run(scenario())
    assert all(store.get(job_id).error_code == "CANCELLED" for job_id in ids)
    assert all(store.get(job_id).state == JobState.FAILED for job_id in ids)


def test_worker_runs_fifty_jobs_through_fake_renderer(render_settings, outputs, effects, bundle_factory):
    store = JobStore()
    worker = RenderWorker(registry=effects, outputs=outputs, settings=render_settings)

    async def scenario():
        runner = InProcessRunner(store, worker)
        ids = []
        for _ in range(50):
            job_id = store.create(JobKind.SINGLE, bundle_factory().model_dump(), "fake-effect")
            await runner.submit(job_id)
            ids.append(job_id)
        return [await runner.join(job_id) for job_id in ids]

    jobs = _run(scenario())
    assert all(job.state == JobState.COMPLETED for job in jobs)
    assert all(outputs.exists(job.output_artifact) for job in jobs)
