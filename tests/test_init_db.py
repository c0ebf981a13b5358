"""
Tests for scripts/init_db.py
"""
import importlib.util
import logging
import sqlite3
from pathlib import Path

import pytest

_SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "init_db.py"


@pytest.fixture(scope="module")
def init_db_script():
    spec = importlib.util.spec_from_file_location("init_db_script", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestInitDb:

    @pytest.mark.unit
    def test_creates_table(self, init_db_script, tmp_path):
        db_file = tmp_path / "ledger.db"

        exit_code = init_db_script.main(["--database-url", f"sqlite:///{db_file}"])

        assert exit_code == 0
        with sqlite3.connect(db_file) as conn:
            tables = [row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
        assert "processed_activities" in tables

    @pytest.mark.unit
    def test_rerun_keeps_rows(self, init_db_script, tmp_path):
        db_file = tmp_path / "ledger.db"
        url = f"sqlite:///{db_file}"

        assert init_db_script.main(["--database-url", url]) == 0
        with sqlite3.connect(db_file) as conn:
            conn.execute("INSERT INTO processed_activities (activity_id) VALUES (12345)")

        assert init_db_script.main(["--database-url", url]) == 0
        with sqlite3.connect(db_file) as conn:
            count = conn.execute("SELECT COUNT(*) FROM processed_activities").fetchone()[0]
        assert count == 1

    @pytest.mark.unit
    def test_failure_returns_nonzero(self, init_db_script, tmp_path):
        missing_dir = tmp_path / "does-not-exist" / "ledger.db"

        assert init_db_script.main(["--database-url", f"sqlite:///{missing_dir}"]) == 1
