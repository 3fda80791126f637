"""Reduce a raw model reply to a single candidate code line.

Models ignore "code only" instructions often enough that every reply goes
through these steps, in order:

1. strip fenced code block markers and inline backticks
2. strip boilerplate prefixes ("Here's the fixed code:") and trailing
   pleasantries ("Hope this helps!")
3. pick the first line with an assignment or call-like token that is not
   an explanation
4. trim, and unwrap a line fully wrapped in quotes
5. append ``;`` to an assignment/call that has neither ``;`` nor ``}``
6. truncate at an import-like token the original snippet does not contain

An empty return value means "no candidate"; it is not an error.
"""

from __future__ import annotations

import re

_FENCE = re.compile(r"```[\w+#.-]*[ \t]*\n?")

_PREFIX = re.compile(
    r"^[ \t]*(?:"
    r"here(?:'s| is) (?:the |your )?(?:fixed|corrected|secure|updated) (?:code|line|version)"
    r"|(?:your )?(?:fixed|corrected|secure|updated) (?:code|line|version)"
    r"|solution|output|answer|result"
    r")[ \t]*:[ \t]*",
    re.IGNORECASE | re.MULTILINE,
)

_SUFFIX = re.compile(
    r"[ \t]*(?:that's it!?|hope (?:this|that) helps!?|let me know\b|i hope\b)[^\n]*$",
    re.IGNORECASE | re.MULTILINE,
)

_ASSIGNMENT = re.compile(r"(?<![=!<>])=(?!=)")
_CALL_LIKE = re.compile(r"[\w$\])]\s*\.\s*[\w$]+\s*\(|\b[\w$]+\(")
_EXPLANATORY = ("explanation", "note:")
_COMMENT_PREFIXES = ("//", "/*", "*", "# ")

_IMPORT_LIKE = re.compile(
    r"\bfrom\s+[\w.@/'\"-]+\s+import\b"
    r"|\bimport\s"
    r"|\brequire\s*\("
    r"|#include\b"
    r"|\busing\s+[\w.]+\s*;"
)


def sanitize(raw: str | None, original: str = "") -> str:
    """Return the single candidate line from a model reply, or ""."""
    if not raw or not raw.strip():
        return ""

    text = strip_formatting(raw)
    text = strip_boilerplate(text)

    line = select_code_line(text)
    if not line:
        return ""

    line = _unwrap_quotes(line.strip())
    line = ensure_terminator(line)
    return truncate_foreign_imports(line, original)


def strip_formatting(text: str) -> str:
    text = _FENCE.sub("", text)
    return text.replace("`", "")


def strip_boilerplate(text: str) -> str:
    text = _PREFIX.sub("", text)
    return _SUFFIX.sub("", text)


def looks_like_code(line: str) -> bool:
    """True for assignment or method-call-like lines."""
    return bool(_ASSIGNMENT.search(line) or _CALL_LIKE.search(line))


def select_code_line(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(_COMMENT_PREFIXES):
            continue
        lowered = stripped.lower()
        if any(marker in lowered for marker in _EXPLANATORY):
            continue
        if looks_like_code(stripped):
            return stripped
    return ""


def ensure_terminator(line: str) -> str:
    if not line or ";" in line or "}" in line:
        return line
    if looks_like_code(line):
        return line + ";"
    return line


def truncate_foreign_imports(line: str, original: str) -> str:
    """Cut the line at the first import-like token the original lacks."""
    for match in _IMPORT_LIKE.finditer(line):
        keyword = _import_keyword(match.group(0))
        if re.search(rf"(?<![\w$]){re.escape(keyword)}(?![\w$])", original):
            continue
        return line[: match.start()].rstrip()
    return line


def _import_keyword(token: str) -> str:
    if "import" in token:
        return "import"
    return token.split("(")[0].split()[0]


def _unwrap_quotes(line: str) -> str:
    if len(line) >= 2 and line[0] == line[-1] and line[0] in "\"'":
        inner = line[1:-1]
        if line[0] not in inner:
            return inner.strip()
    return line
