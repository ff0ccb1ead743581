"""
Tests for Command Line Entry Point

Tests for sidvid/__main__.py
"""

import json

import pytest

from sidvid.__main__ import main
from sidvid.core.config import set_config


@pytest.fixture
def run(temp_dir, capsys):
    """Run the CLI against a temporary storage directory and return stdout."""
    storage = temp_dir / "store"

    def _run(*argv):
        code = main(["--storage", str(storage), *argv])
        out = capsys.readouterr().out
        return code, out

    yield _run
    set_config(None)


class TestCli:
    """End-to-end CLI flow over file storage."""

    def test_session_workflow(self, run, temp_dir):
        code, out = run("new", "--name", "Noir")
        assert code == 0
        session_id = out.strip()

        code, out = run("story", session_id, "a harbor mystery", "--scenes", "2")
        assert code == 0
        assert out.startswith("A Harbor Mystery: 2 scenes")

        code, out = run("characters", session_id)
        assert "Mara Quinn" in out

        code, out = run("list")
        assert session_id in out
        assert "stories=1" in out

        export_path = temp_dir / "export.json"
        code, _ = run("export", session_id, "-o", str(export_path))
        assert code == 0
        assert json.loads(export_path.read_text())["id"] == session_id

    def test_rename(self, run):
        _, out = run("new", "--name", "Draft")
        session_id = out.strip()

        code, out = run("rename", session_id, "Final Cut")
        _, listed = run("list")

        assert code == 0
        assert out.strip() == "Final Cut"
        assert "Final Cut" in listed

    def test_assemble_without_videos_fails(self, run):
        _, out = run("new")

        code, _ = run("assemble", out.strip())

        assert code == 1

    def test_unknown_session_returns_error(self, run):
        code, _ = run("show", "missing")

        assert code == 1

    def test_delete_all(self, run):
        run("new")
        run("new")

        code, _ = run("delete", "--all")
        _, out = run("list")

        assert code == 0
        assert out == ""
