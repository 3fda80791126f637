"""Write a resolved fix back into its source file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from securefix.core.config import get_securefix_dir


@dataclass
class ApplyResult:
    success: bool
    message: str
    file: Path | None = None
    line: int = 0


def _split_ending(line: str) -> tuple[str, str]:
    body = line.rstrip("\r\n")
    return body, line[len(body):]


def _indent_of(text: str) -> str:
    return text[: len(text) - len(text.lstrip())]


class LineApplier:
    """Replaces one 1-based source line at a time.

    The untouched file is copied to ``.securefix/backups/<timestamp>/``
    first, and listed in that directory's ``manifest.json``.
    """

    def __init__(self, project_path: Path):
        self.project_path = project_path
        self.backup_root = get_securefix_dir(project_path) / "backups"

    def read_line(self, file: Path, line: int) -> str:
        """Return the whole line at *line*; IndexError if there is none."""
        lines = self._locate(file).read_text(encoding="utf-8").splitlines()
        if not 1 <= line <= len(lines):
            raise IndexError(f"{file} has no line {line}")
        return lines[line - 1]

    def apply(self, file: Path, line: int, new_text: str, expected: str | None = None) -> ApplyResult:
        """Swap line *line* of *file* for *new_text*.

        Indentation and line ending of the old line are kept. When
        *expected* is given the write is refused if the line no longer
        matches it.
        """
        path = self._locate(file)
        if not path.is_file():
            return ApplyResult(False, f"File not found: {file}")

        with open(path, encoding="utf-8", newline="") as f:
            original = f.read()
        lines = original.splitlines(keepends=True)
        if not 1 <= line <= len(lines):
            return ApplyResult(False, f"{file} has no line {line}", file)

        body, ending = _split_ending(lines[line - 1])
        if expected is not None and body.strip() != expected.strip():
            return ApplyResult(
                False, "Source line has changed since it was read. Re-run the fix.", file, line
            )

        updated = _indent_of(body) + new_text.strip() + ending
        if updated == lines[line - 1]:
            return ApplyResult(False, "No changes applied, the line already matches the fix.", file, line)

        self._backup(path, original)
        lines[line - 1] = updated
        path.write_text("".join(lines), encoding="utf-8", newline="")
        return ApplyResult(True, f"Fixed {file}:{line}", file, line)

    def _locate(self, file: Path) -> Path:
        return file if file.is_absolute() else self.project_path / file

    def _backup(self, path: Path, content: str) -> Path:
        stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
        session = self.backup_root / stamp
        session.mkdir(parents=True, exist_ok=True)

        copy = session / f"{path.name}.bak"
        n = 0
        while copy.exists():
            n += 1
            copy = session / f"{path.name}.{n}.bak"
        copy.write_text(content, encoding="utf-8", newline="")

        manifest = session / "manifest.json"
        listed = json.loads(manifest.read_text()) if manifest.exists() else []
        listed.append({"file": str(path), "backup": str(copy), "timestamp": stamp})
        manifest.write_text(json.dumps(listed, indent=2))
        return copy
