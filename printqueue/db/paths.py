import os
import stat
import sys
import tempfile
from pathlib import Path

from sqlalchemy import text

from printqueue.common.config import APP_ID, DB_FILE, db_path_override
from printqueue.common.logs import log_event

PROBE_TABLE = "__writable_probe"


def _app_data_dir() -> Path | None:
    if sys.platform == "win32":
        base = os.getenv("APPDATA")
        return Path(base) if base else None
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    base = os.getenv("XDG_DATA_HOME")
    return Path(base) if base else Path.home() / ".local" / "share"


def _local_app_data_dir() -> Path | None:
    if sys.platform == "win32":
        base = os.getenv("LOCALAPPDATA")
        return Path(base) if base else None
    # macOS and Linux have no separate roaming/local split
    return _app_data_dir()


def _in_app_dir(base_dir) -> Path | None:
    base = base_dir()
    return base / APP_ID / DB_FILE if base else None


def candidate_paths():
    """
    Ordered, lazily evaluated store locations.

    Each entry is a thunk so that a broken platform lookup (no HOME, missing
    APPDATA) only disqualifies its own candidate.
    """
    return [
        lambda: Path(db_path_override()) if db_path_override() else None,
        lambda: _in_app_dir(_app_data_dir),
        lambda: _in_app_dir(_local_app_data_dir),
        lambda: Path.home() / f".{APP_ID}" / DB_FILE,
        lambda: Path(tempfile.gettempdir()) / APP_ID / DB_FILE,
    ]


def ensure_writable(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        return
    mode = path.stat().st_mode
    if mode & stat.S_IWUSR:
        return
    try:
        path.chmod(mode | stat.S_IWUSR)
    except OSError as e:
        # the probe decides whether the file is usable anyway
        log_event("store_readonly_flag_kept", path=str(path), error=str(e))


def probe(engine) -> None:
    """Write, read back and drop a throwaway table; raises if the file refuses writes."""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE TABLE IF NOT EXISTS {PROBE_TABLE} (v INTEGER)"))
        conn.execute(text(f"INSERT INTO {PROBE_TABLE} (v) VALUES (1)"))
        value = conn.execute(text(f"SELECT v FROM {PROBE_TABLE} WHERE v = 1 LIMIT 1")).scalar()
        conn.execute(text(f"DROP TABLE {PROBE_TABLE}"))
    if value != 1:
        raise RuntimeError("write probe did not read back its row")
