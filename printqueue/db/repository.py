from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from printqueue.api.schemas.job import PrintJobOut
from printqueue.common.clock import Clock
from printqueue.common.errors import StorageError
from printqueue.common.logs import log_event
from printqueue.common.states import JobState
from printqueue.db.models import PrintJob


def _storage_error(op, e):
    log_event("storage_error", op=op, error=str(e))
    return StorageError(f"{op} failed: {e.__class__.__name__}")


class JobRepository:
    """
    Data access for print_jobs. Every caller goes through here; nothing else
    touches the table.
    """

    def __init__(self, store, clock: Clock | None = None):
        self.store = store
        self.clock = clock or Clock()

    def insert(self, batch_id: str, requested_by: str, payload: str) -> PrintJobOut:
        now = self.clock.stamp()
        try:
            with self.store.write_lock, self.store.session() as db:
                job = PrintJob(
                    batch_id=batch_id,
                    requested_by=requested_by,
                    payload=payload,
                    state=JobState.NEW.value,
                    print_count=0,
                    last_error=None,
                    created_at=now,
                    updated_at=now,
                )
                db.add(job)
                db.commit()
                return PrintJobOut.model_validate(job)
        except SQLAlchemyError as e:
            raise _storage_error("insert", e) from e

    def get(self, job_id: int) -> PrintJobOut | None:
        try:
            with self.store.session() as db:
                job = db.get(PrintJob, job_id)
                return PrintJobOut.model_validate(job) if job else None
        except SQLAlchemyError as e:
            raise _storage_error("get", e) from e

    def list_all(self) -> list[PrintJobOut]:
        stmt = select(PrintJob).order_by(PrintJob.created_at.desc(), PrintJob.id.desc())
        return self._fetch("list", stmt)

    def list_batch(self, batch_id: str) -> list[PrintJobOut]:
        stmt = select(PrintJob).where(PrintJob.batch_id == batch_id).order_by(PrintJob.id.asc())
        return self._fetch("list_batch", stmt)

    def list_in_state(self, state: JobState) -> list[PrintJobOut]:
        stmt = select(PrintJob).where(PrintJob.state == state.value).order_by(PrintJob.id.asc())
        return self._fetch("list_in_state", stmt)

    def count_by_state(self) -> dict[str, int]:
        stmt = select(PrintJob.state, func.count()).group_by(PrintJob.state)
        try:
            with self.store.session() as db:
                rows = db.execute(stmt).all()
        except SQLAlchemyError as e:
            raise _storage_error("count_by_state", e) from e

        counts = {s.value: 0 for s in JobState}
        counts.update({state: n for state, n in rows})
        counts["total"] = sum(n for _, n in rows)
        return counts

    def update(self, job_id: int, *, state: JobState, last_error: str | None, increment_count: bool = False) -> int:
        values = {
            "state": state.value,
            "last_error": last_error,
            "updated_at": self.clock.stamp(),
        }
        if increment_count:
            values["print_count"] = PrintJob.print_count + 1
        return self._write("update", update(PrintJob).where(PrintJob.id == job_id).values(**values))

    def update_batch(self, batch_id: str, *, state: JobState, last_error: str | None) -> int:
        # one statement, one transaction: readers see all of the batch reset or none of it
        stmt = (
            update(PrintJob)
            .where(PrintJob.batch_id == batch_id)
            .values(state=state.value, last_error=last_error, updated_at=self.clock.stamp())
        )
        return self._write("update_batch", stmt)

    def _fetch(self, op, stmt) -> list[PrintJobOut]:
        try:
            with self.store.session() as db:
                return [PrintJobOut.model_validate(row) for row in db.scalars(stmt)]
        except SQLAlchemyError as e:
            raise _storage_error(op, e) from e

    def _write(self, op, stmt) -> int:
        try:
            with self.store.write_lock, self.store.session() as db:
                result = db.execute(stmt.execution_options(synchronize_session=False))
                db.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            raise _storage_error(op, e) from e
