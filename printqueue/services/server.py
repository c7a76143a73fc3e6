import socket
import threading
import time

import uvicorn

from printqueue.common.config import ingestion_host, ingestion_port
from printqueue.common.logs import log_event


class IngestionServer:
    """
    Runs the ingestion app on a daemon thread.

    The socket is bound up front so a taken port is reported to the host
    instead of tearing down the serving thread.
    """

    def __init__(self, app, host: str | None = None, port: int | None = None):
        self.app = app
        self.host = host if host is not None else ingestion_host()
        self.port = port if port is not None else ingestion_port()
        self._server = None
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            log_event("ingestion_bind_failed", host=self.host, port=self.port, error=str(e))
            return False

        self.port = sock.getsockname()[1]
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level="warning", access_log=False)
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [sock]},
            name="print-ingestion",
            daemon=True,
        )
        self._thread.start()
        log_event("ingestion_listening", url=f"http://{self.host}:{self.port}/print")
        return True

    def wait_started(self, timeout: float = 10.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if self._server is not None and self._server.started:
                return True
            if not self.running:
                return False
            time.sleep(0.05)
        return False

    def stop(self, timeout: float = 5.0) -> None:
        if self._server is None:
            return
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
        log_event("ingestion_stopped", port=self.port)
        self._server = None
        self._thread = None
