"""Tests for the shared CLI helpers and the todomark commands."""

import json
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from todomark.cli import error_exit, json_print, warn
from todomark.config import DEFAULT_ANNOTATIONS
from todomark.main import app

runner = CliRunner()

CONFIG = """\
[[annotations]]
name = "TODO"
pattern = 'TODO:?.*'

[[annotations]]
name = "FIXME"
pattern = 'FIXME:?.*'

[[languages]]
languageIds = ["c"]
lineComments = ['//.*']
blockComments = ['/\\*[\\s\\S]*?\\*/']
skippedBlocks = ['"(?:[^"\\\\\\n]|\\\\.)*"']
"""

SOURCE = 'int x; // TODO: fix\nchar *s = "// FIXME no";\n/* FIXME: yes */\n'


def _project(tmp_path: Path, config: str = CONFIG) -> tuple[Path, Path]:
    cfg = tmp_path / "todomark.toml"
    cfg.write_text(config, encoding="utf-8")
    src = tmp_path / "a.c"
    src.write_text(SOURCE, encoding="utf-8")
    return cfg, src


# ---------------------------------------------------------------------------
# error_exit() / warn() / json_print()
# ---------------------------------------------------------------------------


class TestErrorExit:
    def test_plain_stderr_and_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("something broke")
        assert exc_info.value.exit_code == 1
        captured = capsys.readouterr()
        assert "something broke" in captured.err
        assert captured.out == ""

    def test_custom_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("fatal", code=2)
        assert exc_info.value.exit_code == 2

    def test_json_mode_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            error_exit("bad input", json_mode=True)
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"error": "bad input"}
        assert captured.err == ""

    def test_brackets_printed_literally(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            error_exit("cannot compile pattern '[bold'")
        assert "[bold" in capsys.readouterr().err


class TestWarn:
    def test_stderr_only(self, capsys: pytest.CaptureFixture[str]) -> None:
        warn("careful [x]")
        captured = capsys.readouterr()
        assert "careful [x]" in captured.err
        assert captured.out == ""


class TestJsonPrint:
    def test_dict_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        json_print({"status": "ok", "count": 42})
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"status": "ok", "count": 42}
        assert "\n" in captured.out


# ---------------------------------------------------------------------------
# todomark scan
# ---------------------------------------------------------------------------


class TestScanCommand:
    def test_json_output(self, tmp_path: Path) -> None:
        cfg, src = _project(tmp_path)
        result = runner.invoke(app, ["scan", "--json", "--config", str(cfg), str(src)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["files"] == 1
        assert data["total"] == 2
        first, second = data["annotations"]
        assert first == {
            "file": str(src),
            "kind": "TODO",
            "line": 1,
            "column": 11,
            "text": "TODO: fix",
        }
        assert (second["kind"], second["line"], second["column"]) == ("FIXME", 3, 4)
        assert second["text"] == "FIXME: yes */"

    def test_kind_filter(self, tmp_path: Path) -> None:
        cfg, src = _project(tmp_path)
        result = runner.invoke(
            app, ["scan", "--json", "--kind", "FIXME", "--config", str(cfg), str(src)]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [a["kind"] for a in data["annotations"]] == ["FIXME"]

    def test_table_summary(self, tmp_path: Path) -> None:
        cfg, src = _project(tmp_path)
        result = runner.invoke(app, ["scan", "--config", str(cfg), str(src)])
        assert result.exit_code == 0, result.output
        assert "2 annotations in 1 files" in result.output

    def test_show(self, tmp_path: Path) -> None:
        cfg, src = _project(tmp_path)
        result = runner.invoke(app, ["scan", "--show", "--config", str(cfg), str(src)])
        assert result.exit_code == 0, result.output
        assert "int x; // TODO: fix" in result.output

    def test_fail_on_found(self, tmp_path: Path) -> None:
        cfg, src = _project(tmp_path)
        result = runner.invoke(app, ["scan", "--fail-on", "FIXME", "--config", str(cfg), str(src)])
        assert result.exit_code == 1

    def test_fail_on_ignores_kind_filter(self, tmp_path: Path) -> None:
        cfg, src = _project(tmp_path)
        result = runner.invoke(
            app,
            ["scan", "--kind", "TODO", "--fail-on", "FIXME", "--config", str(cfg), str(src)],
        )
        assert result.exit_code == 1

    def test_fail_on_not_found(self, tmp_path: Path) -> None:
        cfg, _ = _project(tmp_path)
        clean = tmp_path / "clean.c"
        clean.write_text("int y; // nothing here\n", encoding="utf-8")
        result = runner.invoke(app, ["scan", "--fail-on", "TODO", "--config", str(cfg), str(clean)])
        assert result.exit_code == 0, result.output

    def test_language_override(self, tmp_path: Path) -> None:
        cfg, _ = _project(tmp_path)
        src = tmp_path / "notes.txt"
        src.write_text("// TODO here\n", encoding="utf-8")
        result = runner.invoke(
            app, ["scan", "--json", "--language", "c", "--config", str(cfg), str(src)]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["total"] == 1

    def test_no_files(self, tmp_path: Path) -> None:
        cfg, _ = _project(tmp_path)
        result = runner.invoke(app, ["scan", "--config", str(cfg)])
        assert result.exit_code == 1
        assert "At least one file is required" in result.output

    def test_missing_config_file(self, tmp_path: Path) -> None:
        _, src = _project(tmp_path)
        result = runner.invoke(app, ["scan", "--config", str(tmp_path / "nope.toml"), str(src)])
        assert result.exit_code == 1
        assert "Config not found" in result.output

    def test_incomplete_config(self, tmp_path: Path) -> None:
        cfg, src = _project(tmp_path, '[[annotations]]\nname = "A"\npattern = "A"\n')
        result = runner.invoke(app, ["scan", "--config", str(cfg), str(src)])
        assert result.exit_code == 1
        assert "languages" in result.output

    def test_rejected_config(self, tmp_path: Path) -> None:
        dup = CONFIG.replace('name = "FIXME"', 'name = "TODO"')
        cfg, src = _project(tmp_path, dup)
        result = runner.invoke(app, ["scan", "--config", str(cfg), str(src)])
        assert result.exit_code == 1
        assert "duplicate annotation name 'TODO'" in result.output

    def test_defaults_without_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        src = tmp_path / "b.py"
        src.write_text('x = "# TODO no"  # TODO: yes\n', encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["scan", "--json", str(src)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [(a["kind"], a["text"]) for a in data["annotations"]] == [("TODO", "TODO: yes")]


# ---------------------------------------------------------------------------
# todomark kinds
# ---------------------------------------------------------------------------


class TestKindsCommand:
    def test_defaults_json(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["kinds", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["source"] == "defaults"
        assert [k["name"] for k in data["kinds"]] == [a["name"] for a in DEFAULT_ANNOTATIONS]
        info = next(k for k in data["kinds"] if k["name"] == "INFO")
        assert info["markdown"] is True

    def test_config_json(self, tmp_path: Path) -> None:
        cfg, _ = _project(tmp_path)
        result = runner.invoke(app, ["kinds", "--json", "--config", str(cfg)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["source"] == str(cfg)
        assert [k["name"] for k in data["kinds"]] == ["TODO", "FIXME"]
        assert data["languages"][0]["languageIds"] == ["c"]

    def test_table(self, tmp_path: Path) -> None:
        cfg, _ = _project(tmp_path)
        result = runner.invoke(app, ["kinds", "--languages", "--config", str(cfg)])
        assert result.exit_code == 0, result.output
        assert "FIXME" in result.output

    def test_bad_pattern(self, tmp_path: Path) -> None:
        cfg, _ = _project(tmp_path, CONFIG.replace("'TODO:?.*'", "'TODO(['"))
        result = runner.invoke(app, ["kinds", "--config", str(cfg)])
        assert result.exit_code == 1
        assert "cannot compile pattern" in result.output


# ---------------------------------------------------------------------------
# todomark init
# ---------------------------------------------------------------------------


class TestInitCommand:
    def test_writes_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "todomark.toml").is_file()
        assert "Wrote" in result.output

    def test_refuses_existing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "todomark.toml").write_text("# mine\n", encoding="utf-8")
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert (tmp_path / "todomark.toml").read_text(encoding="utf-8") == "# mine\n"

    def test_force_and_path(self, tmp_path: Path) -> None:
        target = tmp_path / "custom.toml"
        target.write_text("# mine\n", encoding="utf-8")
        result = runner.invoke(app, ["init", "--force", "--path", str(target)])
        assert result.exit_code == 0, result.output
        assert "[[languages]]" in target.read_text(encoding="utf-8")

    def test_written_file_drives_scan(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        runner.invoke(app, ["init"])
        src = tmp_path / "m.lua"
        src.write_text("-- NOTE: lua\n", encoding="utf-8")
        result = runner.invoke(app, ["scan", "--json", str(src)])
        assert result.exit_code == 0, result.output
        assert [a["kind"] for a in json.loads(result.stdout)["annotations"]] == ["NOTE"]


class TestHelp:
    def test_umbrella_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("scan", "kinds", "init"):
            assert name in result.output
