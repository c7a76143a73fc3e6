import os


def env(key: str, default: str | None = None) -> str:
    v = os.getenv(key, default)
    if v is None:
        raise RuntimeError(f"Missing env var: {key}")
    return v


DEFAULT_PORT = 3333
DEFAULT_HOST = "0.0.0.0"

APP_ID = env("PRINT_QUEUE_APP_ID", "dev-toolbox")
DB_FILE = env("PRINT_QUEUE_DB_FILE", "tasks.db")

DEFAULT_REQUESTED_BY = "remote"
PRINTER_ENDPOINT = env("PRINTER_ENDPOINT", "http://localhost:3333/print")

METRICS_ENABLED = env("METRICS_ENABLED", "0") == "1"
METRICS_PORT = int(env("METRICS_PORT", "8000"))


# Read at call time so a host (or a test) can change the environment after import.

def ingestion_port() -> int:
    raw = os.getenv("PRINT_QUEUE_PORT")
    try:
        port = int(raw) if raw is not None else DEFAULT_PORT
    except ValueError:
        return DEFAULT_PORT
    if not 0 <= port <= 65535:
        return DEFAULT_PORT
    return port


def ingestion_host() -> str:
    return env("PRINT_QUEUE_HOST", DEFAULT_HOST)


def db_path_override() -> str | None:
    return os.getenv("PRINT_QUEUE_DB_PATH") or None
