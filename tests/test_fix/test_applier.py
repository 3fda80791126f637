"""Tests for writing fixes into source files."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from securefix.fix.applier import LineApplier


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def applier(project: Path) -> LineApplier:
    return LineApplier(project_path=project)


SOURCE = 'function init() {\n    const API_KEY = "sk-123";\n    return API_KEY;\n}\n'
FIXED = 'const API_KEY = process.env.API_KEY || "default_api_key";'


class TestReadLine:
    def test_reads_full_line(self, applier: LineApplier, project: Path):
        (project / "app.js").write_text(SOURCE)
        assert applier.read_line(Path("app.js"), 2) == '    const API_KEY = "sk-123";'

    @pytest.mark.parametrize("line", [0, 5])
    def test_out_of_range(self, applier: LineApplier, project: Path, line: int):
        (project / "app.js").write_text(SOURCE)
        with pytest.raises(IndexError):
            applier.read_line(Path("app.js"), line)


class TestApply:
    def test_replaces_line_keeping_indent(self, applier: LineApplier, project: Path):
        source = project / "app.js"
        source.write_text(SOURCE)

        result = applier.apply(source, 2, FIXED, expected='const API_KEY = "sk-123";')

        assert result.success is True
        assert result.line == 2
        lines = source.read_text().splitlines()
        assert lines[1] == "    " + FIXED
        assert lines[0] == "function init() {"
        assert lines[2] == "    return API_KEY;"

    def test_preserves_crlf(self, applier: LineApplier, project: Path):
        source = project / "app.js"
        source.write_bytes(b'let a = 1;\r\nel.innerHTML = x;\r\n')

        result = applier.apply(source, 2, "el.textContent = x;")

        assert result.success is True
        assert source.read_bytes() == b'let a = 1;\r\nel.textContent = x;\r\n'

    def test_creates_backup_and_manifest(self, applier: LineApplier, project: Path):
        source = project / "app.js"
        source.write_text(SOURCE)

        applier.apply(source, 2, FIXED)

        backups = list((project / ".securefix" / "backups").rglob("*.bak"))
        assert len(backups) == 1
        assert backups[0].read_text() == SOURCE

        manifest = json.loads(next(backups[0].parent.glob("manifest.json")).read_text())
        assert manifest[0]["file"] == str(source)

    def test_changed_line_is_refused(self, applier: LineApplier, project: Path):
        source = project / "app.js"
        source.write_text(SOURCE)

        result = applier.apply(source, 2, FIXED, expected="const API_KEY = 'other';")

        assert result.success is False
        assert "changed" in result.message
        assert source.read_text() == SOURCE

    def test_identical_line_is_not_rewritten(self, applier: LineApplier, project: Path):
        source = project / "app.js"
        source.write_text(SOURCE)

        result = applier.apply(source, 3, "return API_KEY;")

        assert result.success is False
        assert "No changes applied" in result.message
        assert not (project / ".securefix" / "backups").exists()

    def test_missing_file(self, applier: LineApplier, project: Path):
        result = applier.apply(project / "nope.js", 1, FIXED)
        assert result.success is False
        assert "File not found" in result.message

    def test_line_out_of_range(self, applier: LineApplier, project: Path):
        source = project / "app.js"
        source.write_text(SOURCE)
        result = applier.apply(source, 99, FIXED)
        assert result.success is False
        assert "no line 99" in result.message
