"""Job record store: state machine, progress rules, snapshots."""

import threading

import pytest

from fxstudio.exceptions import DuplicateJobIdError, InvalidTransitionError, JobNotFoundError
from fxstudio.jobs.models import JobKind, JobState
from fxstudio.jobs.store import JobStore


class FixedIds:
    def next_id(self):
        return "20260101-0000000000000001"


@pytest.fixture
def store():
    return JobStore()


def _rendering(store):
    job_id = store.create(JobKind.SINGLE, {"a": 1}, "text-rain-effect", "Text rain")
    store.transition(job_id, JobState.RENDERING)
    return job_id


def test_create_starts_pending(store):
    job_id = store.create(JobKind.SINGLE, {"a": 1}, "text-rain-effect", "Text rain")
    job = store.get(job_id)
    assert job.state == JobState.PENDING
    assert job.progress == 0
    assert job.effect_id == "text-rain-effect"
    assert job.created_at.tzinfo is not None
    assert job.started_at is None


def test_unknown_job(store):
    with pytest.raises(JobNotFoundError):
        store.get("nope")


def test_duplicate_id_is_fatal():
    store = JobStore(id_generator=FixedIds())
    store.create(JobKind.SINGLE, {}, "x")
    with pytest.raises(DuplicateJobIdError):
        store.create(JobKind.SINGLE, {}, "x")


def test_happy_path_sets_timestamps_and_progress(store):
    job_id = _rendering(store)
    job = store.get(job_id)
    assert job.started_at is not None

    store.report_progress(job_id, 0.5)
    job = store.transition(job_id, JobState.COMPLETED, output_artifact=f"video-{job_id}.mp4")
    assert job.state == JobState.COMPLETED
    assert job.progress == 100
    assert job.completed_at >= job.started_at
    assert job.output_artifact == f"video-{job_id}.mp4"


@pytest.mark.parametrize("terminal", [JobState.COMPLETED, JobState.FAILED])
@pytest.mark.parametrize("target", list(JobState))
def test_terminal_states_are_closed(store, terminal, target):
    job_id = _rendering(store)
    if terminal == JobState.COMPLETED:
        store.transition(job_id, terminal, output_artifact="video.mp4")
    else:
        store.transition(job_id, terminal, error="boom", error_code="X")

    with pytest.raises(InvalidTransitionError):
        store.transition(job_id, target, output_artifact="other.mp4", error="again")
    assert store.get(job_id).state == terminal


def test_pending_cannot_complete(store):
    job_id = store.create(JobKind.SINGLE, {}, "x")
    with pytest.raises(InvalidTransitionError):
        store.transition(job_id, JobState.COMPLETED, output_artifact="video.mp4")


def test_pending_can_fail(store):
    job_id = store.create(JobKind.SINGLE, {}, "x")
    job = store.transition(job_id, JobState.FAILED, error="cancelled", error_code="CANCELLED")
    assert job.state == JobState.FAILED
    assert job.completed_at is not None


def test_completed_requires_artifact(store):
    job_id = _rendering(store)
    with pytest.raises(InvalidTransitionError):
        store.transition(job_id, JobState.COMPLETED)
    assert store.get(job_id).state == JobState.RENDERING


def test_failed_requires_error(store):
    job_id = _rendering(store)
    with pytest.raises(InvalidTransitionError):
        store.transition(job_id, JobState.FAILED)


def test_invalid_transition_is_logged(store, caplog):
    job_id = store.create(JobKind.SINGLE, {}, "x")
    with pytest.raises(InvalidTransitionError):
        store.transition(job_id, JobState.COMPLETED, output_artifact="v.mp4")
    assert any(r.levelname == "ERROR" and job_id in r.getMessage() for r in caplog.records)


def test_progress_is_monotonic_and_capped(store):
    job_id = _rendering(store)
    assert store.report_progress(job_id, 0.3) == 30
    assert store.report_progress(job_id, 0.1) == 30
    assert store.report_progress(job_id, 0.3) == 30
    assert store.report_progress(job_id, 1.0) == 99
    assert store.report_progress(job_id, 7.0) == 99
    assert store.get(job_id).progress == 99


def test_progress_outside_rendering_rejected(store):
    job_id = store.create(JobKind.SINGLE, {}, "x")
    with pytest.raises(InvalidTransitionError):
        store.report_progress(job_id, 0.5)


def test_snapshots_are_copies(store):
    job_id = store.create(JobKind.SINGLE, {"words": ["a"]}, "x")
    snapshot = store.get(job_id)
    snapshot.input_params["words"].append("b")
    snapshot.progress = 77
    fresh = store.get(job_id)
    assert fresh.input_params == {"words": ["a"]}
    assert fresh.progress == 0


def test_list_in_creation_order_and_delete(store):
    ids = [store.create(JobKind.SINGLE, {}, "x") for _ in range(5)]
    assert [job.id for job in store.list()] == ids
    assert store.delete(ids[0]) is True
    assert store.delete(ids[0]) is False
    assert [job.id for job in store.list()] == ids[1:]


def test_counts(store):
    _rendering(store)
    store.create(JobKind.SINGLE, {}, "x")
    counts = store.counts()
    assert counts == {"pending": 1, "rendering": 1, "completed": 0, "failed": 0}


def test_concurrent_progress_never_decreases(store):
    job_id = _rendering(store)
    seen = []

    def report(start):
        for i in range(start, 100, 4):
            seen.append(store.report_progress(job_id, i / 100))

    threads = [threading.Thread(target=report, args=(s,)) for s in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.get(job_id).progress == 99
    assert max(seen) == 99
