import stat

import pytest
from sqlalchemy import inspect

from printqueue.common.errors import NoWritableLocation
from printqueue.db.paths import candidate_paths
from printqueue.db.session import open_store


def _blocked(tmp_path, name):
    # a regular file where a directory is expected: mkdir fails, even for root
    blocker = tmp_path / name
    blocker.write_text("not a directory")
    return blocker / "sub" / "tasks.db"


def test_falls_back_to_last_writable_candidate(tmp_path):
    good = tmp_path / "fallback" / "tasks.db"
    candidates = [
        _blocked(tmp_path, "appdata"),
        _blocked(tmp_path, "localappdata"),
        lambda: None,
        good,
    ]

    store = open_store(candidates)
    try:
        assert store.path == good
        assert good.exists()
        tables = inspect(store.engine).get_table_names()
        assert "print_jobs" in tables
        assert "__writable_probe" not in tables
        with store.engine.connect() as conn:
            assert conn.exec_driver_sql("SELECT COUNT(*) FROM print_jobs").scalar() == 0
    finally:
        store.dispose()


def test_first_success_wins(tmp_path):
    first = tmp_path / "a" / "tasks.db"
    second = tmp_path / "b" / "tasks.db"

    store = open_store([first, second])
    store.dispose()

    assert store.path == first
    assert not second.parent.exists()


def test_candidate_thunk_that_raises_is_skipped(tmp_path):
    def broken():
        raise RuntimeError("Could not determine home directory")

    store = open_store([broken, tmp_path / "tasks.db"])
    store.dispose()
    assert store.path == tmp_path / "tasks.db"


def test_corrupt_file_fails_the_probe(tmp_path):
    corrupt = tmp_path / "corrupt" / "tasks.db"
    corrupt.parent.mkdir()
    corrupt.write_bytes(b"this is definitely not an sqlite database" * 100)
    good = tmp_path / "good" / "tasks.db"

    store = open_store([corrupt, good])
    store.dispose()
    assert store.path == good


def test_readonly_flag_is_cleared(tmp_path):
    path = tmp_path / "tasks.db"
    store = open_store([path])
    store.dispose()
    path.chmod(stat.S_IRUSR | stat.S_IRGRP)

    store = open_store([path])
    store.dispose()
    assert path.stat().st_mode & stat.S_IWUSR


def test_no_writable_location(tmp_path):
    candidates = [_blocked(tmp_path, "one"), _blocked(tmp_path, "two")]

    with pytest.raises(NoWritableLocation) as exc:
        open_store(candidates)

    assert exc.value.attempted == candidates


def test_schema_is_idempotent_and_keeps_rows(tmp_path):
    path = tmp_path / "tasks.db"
    store = open_store([path])
    with store.engine.begin() as conn:
        conn.exec_driver_sql(
            "INSERT INTO print_jobs (batch_id, requested_by, payload, state, print_count, created_at, updated_at) "
            "VALUES ('b', 'me', 'x', 'new', 0, '2026-01-01T00:00:00+00:00', '2026-01-01T00:00:00+00:00')"
        )
    store.dispose()

    store = open_store([path])
    try:
        tables = set(inspect(store.engine).get_table_names())
        assert {"print_jobs", "tasks", "codegen_history"} <= tables
        with store.engine.connect() as conn:
            assert conn.exec_driver_sql("SELECT COUNT(*) FROM print_jobs").scalar() == 1
    finally:
        store.dispose()


def test_candidate_order(monkeypatch, tmp_path):
    monkeypatch.setenv("PRINT_QUEUE_DB_PATH", str(tmp_path / "override.db"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "xdg"))
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "local"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("USERPROFILE", str(tmp_path / "home"))

    paths = [c() for c in candidate_paths()]

    assert paths[0] == tmp_path / "override.db"
    assert paths[3] == tmp_path / "home" / ".dev-toolbox" / "tasks.db"
    assert paths[4].name == "tasks.db"
    assert paths[4].parent.name == "dev-toolbox"


def test_override_unset_yields_no_candidate(monkeypatch):
    monkeypatch.delenv("PRINT_QUEUE_DB_PATH", raising=False)
    assert candidate_paths()[0]() is None


def test_schema_failure_disposes_engine(tmp_path, monkeypatch):
    from printqueue.common.errors import StorageError
    from printqueue.db.session import Store

    disposed = []

    def failing_schema(self):
        raise StorageError("schema initialisation failed: OperationalError")

    monkeypatch.setattr(Store, "init_schema", failing_schema)
    monkeypatch.setattr(Store, "dispose", lambda self: disposed.append(self.path))

    with pytest.raises(StorageError):
        open_store([tmp_path / "tasks.db"])

    assert disposed == [tmp_path / "tasks.db"]
