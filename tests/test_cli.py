"""Tests for the snippy command line."""
import io
import json

import pytest

from snippy.cli import build_parser, main


@pytest.fixture
def run(db_path, capsys):
    """Invoke the CLI against the test database; returns (exit code, stdout, stderr)."""
    def _run(*argv):
        code = main(["--db", str(db_path), *argv])
        out, err = capsys.readouterr()
        return code, out, err
    return _run


class TestParser:
    def test_no_command_prints_help(self, run):
        code, out, _ = run()
        assert code == 1
        assert "usage" in out.lower()

    def test_subcommands_registered(self):
        parser = build_parser()
        args = parser.parse_args(["search", "ffmeg", "copy", "--limit", "3"])
        assert args.command == "search"
        assert args.query_text == ["ffmeg", "copy"]
        assert args.limit == 3


class TestAddAndShow:
    def test_add_then_show(self, run):
        code, out, _ = run("add", "greeting", "hello", "world")
        assert code == 0
        assert "Saved snippet 1" in out

        code, out, _ = run("show", "1")
        assert code == 0
        assert "hello world" in out
        assert "greeting" in out

    def test_add_reads_stdin(self, run, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("line one\nline two\n"))
        code, _, _ = run("add", "piped")
        assert code == 0
        _, out, _ = run("show", "1", "--json")
        assert json.loads(out)["content"] == "line one\nline two\n"

    def test_show_missing_returns_1(self, run):
        code, _, err = run("show", "999")
        assert code == 1
        assert "999" in err

    def test_show_json_fields(self, run):
        run("add", "n", "c")
        _, out, _ = run("show", "1", "--json")
        data = json.loads(out)
        assert data["id"] == 1
        assert data["name"] == "n"
        assert data["created_at"]


class TestEdit:
    def test_edit_content(self, run):
        run("add", "notes", "alpha")
        code, out, _ = run("edit", "1", "--content", "gamma")
        assert code == 0
        assert "Updated snippet 1" in out
        _, out, _ = run("show", "1")
        assert "gamma" in out

    def test_edit_requires_a_change(self, run):
        run("add", "notes", "alpha")
        code, _, err = run("edit", "1")
        assert code == 1
        assert "Usage" in err

    def test_edit_missing_returns_1(self, run):
        code, _, _ = run("edit", "42", "--name", "x")
        assert code == 1


class TestSearchAndRecent:
    def test_typo_search_finds_snippet(self, run):
        run("add", "greeting", "hello", "world")
        code, out, _ = run("search", "helo")
        assert code == 0
        assert "greeting" in out
        assert 'Showing results for "hello"' in out

    def test_no_results_message(self, run):
        run("add", "greeting", "hello", "world")
        _, out, _ = run("search", "zzzzzzzz")
        assert 'No results for "zzzzzzzz"' in out

    def test_empty_search_lists_recent(self, run):
        run("add", "first", "one")
        run("add", "second", "two")
        _, out, _ = run("search", "--json")
        data = json.loads(out)
        assert [r["name"] for r in data["results"]] == ["second", "first"]

    def test_recent_json(self, run):
        run("add", "first", "one")
        run("add", "second", "two")
        code, out, _ = run("recent", "--limit", "1", "--json")
        assert code == 0
        data = json.loads(out)
        assert data["count"] == 1
        assert data["results"][0]["name"] == "second"
        assert data["results"][0]["hint"] == "two"

    def test_recent_empty(self, run):
        _, out, _ = run("recent")
        assert "No snippets yet." in out


class TestMaintenance:
    def test_validate_ok(self, run):
        run("add", "greeting", "hello")
        code, out, _ = run("validate")
        assert code == 0
        assert "integrity" in out
        assert "ok" in out

    def test_migrations_listed(self, run):
        code, out, _ = run("migrations")
        assert code == 0
        assert "0001_create_snippets.sql" in out
        assert "0002_create_snippets_fts.sql" in out

    def test_storage_error_exit_code(self, tmp_snippy_dir, capsys):
        blocker = tmp_snippy_dir / "file"
        blocker.write_text("x")
        code = main(["--db", str(blocker / "sub.db"), "recent"])
        assert code == 2
        assert "Error" in capsys.readouterr().err
