from prometheus_client import Counter

from printqueue.common.errors import StorageError
from printqueue.common.logs import log_event
from printqueue.common.states import JobState

jobs_created = Counter("printqueue_jobs_created_total", "Print jobs created")
transitions_total = Counter("printqueue_transitions_total", "State transitions applied", ["state"])
requeues_total = Counter("printqueue_requeues_total", "Requeue operations applied", ["scope"])


def _dump(jobs):
    if isinstance(jobs, list):
        return [j.model_dump(mode="json") for j in jobs]
    return jobs.model_dump(mode="json")


class QueueService:
    """
    The print-job state machine: new -> printing -> done, with requeue back to new.

    The only rule enforced is that a state is one of the three known values.
    Which transitions happen, and in which order, is up to the printing agent.
    """

    def __init__(self, repo, notifier):
        self.repo = repo
        self.notifier = notifier

    def create(self, batch_id: str, requested_by: str, payload: str, publish: bool = True):
        job = self.repo.insert(batch_id, requested_by, payload)
        jobs_created.inc()
        log_event("job_created", job_id=job.id, batch_id=batch_id, requested_by=requested_by)
        if publish:
            self.announce(job)
        return job

    def announce(self, jobs) -> None:
        self.notifier.publish(_dump(jobs))

    def list(self):
        return self.repo.list_all()

    def get(self, job_id: int):
        return self.repo.get(job_id)

    def pending(self):
        return self.repo.list_in_state(JobState.NEW)

    def summary(self) -> dict[str, int]:
        return self.repo.count_by_state()

    def store_path(self):
        return self.repo.store.path

    def transition(self, job_id: int, state, last_error: str | None = None, increment_count: bool = False) -> None:
        new_state = JobState.parse(state)
        touched = self.repo.update(job_id, state=new_state, last_error=last_error, increment_count=increment_count)
        if not touched:
            log_event("transition_no_match", job_id=job_id, state=new_state.value)
            return

        transitions_total.labels(state=new_state.value).inc()
        log_event(
            "job_transitioned",
            job_id=job_id,
            state=new_state.value,
            last_error=last_error,
            increment_count=increment_count,
        )
        self._announce_one(job_id)

    def requeue_one(self, job_id: int) -> None:
        touched = self.repo.update(job_id, state=JobState.NEW, last_error=None)
        if not touched:
            return
        requeues_total.labels(scope="job").inc()
        log_event("job_requeued", job_id=job_id)
        self._announce_one(job_id)

    def requeue_batch(self, batch_id: str) -> None:
        touched = self.repo.update_batch(batch_id, state=JobState.NEW, last_error=None)
        if not touched:
            return
        requeues_total.labels(scope="batch").inc()
        log_event("batch_requeued", batch_id=batch_id, jobs=touched)
        self._announce_fetched(self.repo.list_batch, batch_id)

    def _announce_one(self, job_id: int) -> None:
        self._announce_fetched(self.repo.get, job_id)

    def _announce_fetched(self, fetch, key) -> None:
        # the write is already committed; a failed re-read only costs the event
        try:
            jobs = fetch(key)
        except StorageError as e:
            log_event("notify_skipped", key=key, error=str(e))
            return
        if jobs:
            self.announce(jobs)
