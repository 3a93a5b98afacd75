import threading

from health_portal.models.job_model import GenerationJob
from health_portal.services.errors import BackendError, JobFailedError
from health_portal.services.job_poller import JobPoller
from health_portal.services.query_cache import QueryCache
from health_portal.services.scheduling import IntervalTask, cancel_all


class _Counter(IntervalTask):

    def __init__(self, stop_after: int) -> None:
        super().__init__(0.01, run_immediately=True)
        self.calls = 0
        self.stop_after = stop_after

    def run_once(self) -> bool:
        self.calls += 1
        return self.calls < self.stop_after


def _statuses(*jobs):
    """호출마다 다음 응답을 돌려주는 fetch_job. 예외 객체는 raise."""
    it = iter(jobs)

    def fetch(job_id):
        item = next(it)
        if isinstance(item, Exception):
            raise item
        return item

    return fetch


def test_task_stops_itself_on_terminal_state():
    task = _Counter(stop_after=3).start()

    assert task.join(timeout=2)
    assert task.calls == 3
    assert task.active is False


def test_context_manager_cancels_on_exit():
    task = _Counter(stop_after=10_000)
    with task:
        assert task.active
    assert task.active is False


def test_context_manager_cancels_on_error():
    task = _Counter(stop_after=10_000)
    try:
        with task:
            raise RuntimeError("화면 종료")
    except RuntimeError:
        pass
    assert task.active is False


def test_poller_completes_and_invalidates_cache():
    cache = QueryCache()
    cache.set(("/api/categories-with-quizzes",), "stale")
    done = threading.Event()
    completed = []

    poller = JobPoller(
        _statuses(
            GenerationJob(id="j1", status="processing"),
            BackendError(503, "busy"),
            GenerationJob(id="j1", status="completed", generatedCount=5),
        ),
        "j1",
        cache=cache,
        invalidate_keys=[("/api/categories-with-quizzes",)],
        on_complete=lambda job: (completed.append(job), done.set()),
        interval=0.01,
        done_title="Fatto",
        done_message="{count} elementi",
    )
    with poller:
        assert done.wait(2)
        assert poller.join(timeout=2)

    assert completed[0].generated_count == 5
    assert ("/api/categories-with-quizzes",) not in cache
    assert (poller.notices[0].title, poller.notices[0].message) == ("Fatto", "5 elementi")


def test_poller_reports_failure():
    failures = []
    poller = JobPoller(
        _statuses(GenerationJob(id="j2", status="failed", error="quota")),
        "j2",
        on_failed=failures.append,
        interval=0.01,
    )
    with poller:
        assert poller.join(timeout=2)

    assert isinstance(failures[0], JobFailedError)
    assert failures[0].reason == "quota"
    assert poller.notices[0].message == "quota"
    assert poller.job.is_terminal


def test_cancel_all_stops_running_tasks_and_clears():
    running = _Counter(stop_after=10_000).start()
    finished = _Counter(stop_after=1).start()
    assert finished.join(timeout=2)
    tasks = {"a": running, "b": finished}

    assert cancel_all(tasks) == 1
    assert tasks == {}
    assert running.active is False
    calls = running.calls
    assert running.join(timeout=1)
    assert running.calls == calls
