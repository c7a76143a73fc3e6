import time

from prometheus_client import start_http_server

from printqueue.api.main import create_app
from printqueue.common.clock import Clock
from printqueue.common.config import METRICS_ENABLED, METRICS_PORT
from printqueue.common.logs import log_event
from printqueue.db.repository import JobRepository
from printqueue.db.session import open_store
from printqueue.services.notifier import Notifier
from printqueue.services.queue import QueueService
from printqueue.services.server import IngestionServer


class PrintQueueHost:
    """
    Owns the one store handle and everything built on it. The ingestion
    server and local callers share the same QueueService.
    """

    def __init__(self, store, clock: Clock | None = None, host: str | None = None, port: int | None = None):
        self.store = store
        self.notifier = Notifier()
        self.repo = JobRepository(store, clock)
        self.queue = QueueService(self.repo, self.notifier)
        self.app = create_app(self.queue)
        self.server = IngestionServer(self.app, host=host, port=port)

    @classmethod
    def open(cls, candidates=None, **kwargs) -> "PrintQueueHost":
        return cls(open_store(candidates), **kwargs)

    def start(self) -> bool:
        # Without ingestion the local path keeps working.
        return self.server.start()

    def close(self) -> None:
        self.server.stop()
        self.store.dispose()


def main():
    if METRICS_ENABLED:
        start_http_server(METRICS_PORT)

    host = PrintQueueHost.open()
    host.start()
    log_event("host_ready", store=str(host.queue.store_path()), ingestion=host.server.running)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        log_event("host_exit", reason="interrupt")
    finally:
        host.close()


if __name__ == "__main__":
    main()
