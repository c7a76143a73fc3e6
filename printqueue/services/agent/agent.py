import os
import time

import requests

from printqueue.common.config import PRINTER_ENDPOINT
from printqueue.common.logs import log_event
from printqueue.common.states import JobState


# ============================================================
# Environment
# ============================================================

POLL_SECONDS = float(os.getenv("AGENT_POLL_SECONDS", "2"))
MAX_LOOPS = int(os.getenv("AGENT_MAX_LOOPS", "0"))
SEND_TIMEOUT_SECONDS = float(os.getenv("AGENT_SEND_TIMEOUT_SECONDS", "10"))


# ============================================================
# Printer transport
# ============================================================

class PrinterError(Exception):
    pass


def http_send(endpoint, body):
    try:
        r = requests.post(endpoint, json=body, timeout=SEND_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        raise PrinterError(str(e)) from e
    if not r.ok:
        raise PrinterError(r.text or f"Printer endpoint responded with {r.status_code}")


# ============================================================
# Agent
# ============================================================

class PrintAgent:
    """
    A consumer of the queue: claims new jobs, hands them to the printer
    endpoint and reports the outcome back through transition().
    """

    def __init__(self, queue, endpoint=None, send=None):
        self.queue = queue
        self.endpoint = endpoint or PRINTER_ENDPOINT
        self.send = send or http_send

    def print_job(self, job) -> bool:
        self.queue.transition(job.id, JobState.PRINTING, None, False)
        log_event("print_started", job_id=job.id, batch_id=job.batch_id)

        body = {
            "id": job.id,
            "batchId": job.batch_id,
            "payload": job.payload,
            "requestedBy": job.requested_by,
        }
        try:
            self.send(self.endpoint, body)
        except Exception as e:
            # back to new so the job is picked up again; the attempt is not counted
            self.queue.transition(job.id, JobState.NEW, str(e), False)
            log_event("print_failed", job_id=job.id, error=str(e))
            return False

        self.queue.transition(job.id, JobState.DONE, None, True)
        log_event("print_done", job_id=job.id)
        return True

    def print_batch(self, batch_id) -> int:
        self.queue.requeue_batch(batch_id)
        jobs = [j for j in self.queue.pending() if j.batch_id == batch_id]
        return sum(1 for job in jobs if self.print_job(job))

    def run_once(self) -> int:
        return sum(1 for job in self.queue.pending() if self.print_job(job))

    def run_forever(self, poll_seconds=POLL_SECONDS, max_loops=MAX_LOOPS):
        loops = 0
        while True:
            if max_loops and loops >= max_loops:
                log_event("agent_exit", reason="max_loops")
                break

            loops += 1
            # failed jobs are back in new; without the pause they would be retried at once
            if not self.run_once():
                time.sleep(poll_seconds)
