"""Acceptance checks for generative fix candidates."""

from __future__ import annotations

import re
from typing import Callable

from securefix.core.models import ValidationVerdict, VulnerabilityCategory
from securefix.scanner.classifier import classify

MAX_CANDIDATE_LENGTH = 200
MAX_DOUBLE_QUOTES = 4

BAD_PHRASES = (
    "explanation",
    "note:",
    "comment",
    "here is",
    "fixed version",
    "this is",
    "i hope",
    "let me know",
)

# Tokens from other ecosystems that show up when a model drifts into Python,
# Flask, Java or PHP while fixing a JavaScript line.
FOREIGN_TOKENS = {
    "flask": re.compile(r"\bflask\b", re.IGNORECASE),
    "jsonify": re.compile(r"\bjsonify\b"),
    "os.environ": re.compile(r"\bos\.environ\b"),
    "os.getenv": re.compile(r"\bos\.getenv\b"),
    "def": re.compile(r"^\s*def\s+\w+\s*\("),
    "self.": re.compile(r"\bself\."),
    "System.": re.compile(r"\bSystem\.(?:getenv|out)\b"),
    "<?php": re.compile(r"<\?php"),
    "print(": re.compile(r"^\s*print\s*\("),
}

IMPORT_LIKE = re.compile(
    r"\bfrom\s+[\w.@/'\"-]+\s+import\b|\bimport\s|\brequire\s*\(|#include\b"
)

DECLARATION = re.compile(r"\b(?:const|let|var)\s+([A-Za-z_$][\w$]*)")

_ASSIGNMENT_OR_MEMBER = re.compile(r"=|\.")
_UNSAFE_WRITE = re.compile(r"([\w$.\[\]'\"()]+?)\s*\.(?:innerHTML|outerHTML)\s*\+?=(?!=)")
_DOCUMENT_WRITE = re.compile(r"\bdocument\.write(?:ln)?\s*\(")
_SAFE_SINK = re.compile(r"\.textContent\b|\.innerText\b|DOMPurify\.sanitize\s*\(")
_EVAL_CALL = re.compile(r"(?<![\w.])eval\s*\(")
_MATH_RANDOM = re.compile(r"\bMath\.random\s*\(")
_QUOTED_LITERAL = re.compile(r"=\s*([\"'])([^\"']+)\1")


def declared_names(code: str) -> list[str]:
    """Identifiers introduced by const/let/var, in source order."""
    return DECLARATION.findall(code)


class FixValidator:
    """Decides whether a sanitized generative candidate may be applied.

    Every check runs; the verdict lists every reason the candidate failed
    so callers can log exactly why a fix was refused.
    """

    def __init__(self, max_length: int = MAX_CANDIDATE_LENGTH):
        self.max_length = max_length

    def validate(
        self,
        original: str,
        candidate: str,
        category: VulnerabilityCategory | None = None,
    ) -> ValidationVerdict:
        if category is None:
            category = classify(original)

        reasons: list[str] = []
        reasons += self._check_shape(candidate)
        reasons += self._check_content(original, candidate)
        reasons += self._check_structure(original, candidate)
        reasons += self._check_category(original, candidate, category)
        return ValidationVerdict(accepted=not reasons, reasons=tuple(reasons))

    def _check_shape(self, candidate: str) -> list[str]:
        reasons = []
        if not candidate or not candidate.strip():
            reasons.append("candidate is empty")
        if "\n" in candidate or "\r" in candidate:
            reasons.append("candidate spans multiple lines")
        if len(candidate) > self.max_length:
            reasons.append(
                f"candidate is {len(candidate)} characters (limit {self.max_length})"
            )
        if candidate and not _ASSIGNMENT_OR_MEMBER.search(candidate):
            reasons.append("candidate has no assignment or member access")
        return reasons

    def _check_content(self, original: str, candidate: str) -> list[str]:
        reasons = []
        lowered = candidate.lower()
        for phrase in BAD_PHRASES:
            if phrase in lowered and phrase not in original.lower():
                reasons.append(f"candidate contains explanatory phrase '{phrase}'")

        for name, pattern in FOREIGN_TOKENS.items():
            if pattern.search(candidate) and not pattern.search(original):
                reasons.append(f"candidate contains foreign token '{name}'")

        added_import = IMPORT_LIKE.search(candidate)
        if added_import and not IMPORT_LIKE.search(original):
            reasons.append(f"candidate adds import-like token '{added_import.group(0).strip()}'")

        if candidate.count('"') > MAX_DOUBLE_QUOTES:
            reasons.append("candidate has too many quote characters")
        return reasons

    def _check_structure(self, original: str, candidate: str) -> list[str]:
        reasons = []
        original_names = declared_names(original)
        candidate_names = declared_names(candidate)

        for name in original_names:
            if not re.search(rf"(?<![\w$]){re.escape(name)}(?![\w$])", candidate):
                reasons.append(f"declared identifier '{name}' is missing")

        if len(original_names) != len(candidate_names):
            reasons.append(
                f"declaration count changed ({len(original_names)} -> {len(candidate_names)})"
            )
        return reasons

    def _check_category(
        self, original: str, candidate: str, category: VulnerabilityCategory
    ) -> list[str]:
        check = _CATEGORY_CHECKS.get(category)
        if check is None:
            return []
        return check(original, candidate)


def _secret_check(token: str) -> Callable[[str, str], list[str]]:
    pattern = re.compile(re.escape(token), re.IGNORECASE)

    def check(original: str, candidate: str) -> list[str]:
        reasons = []
        found = pattern.search(original)
        if found and found.group(0) not in candidate:
            reasons.append(f"fix no longer references {found.group(0)}")
        literal = _QUOTED_LITERAL.search(original)
        if literal and re.search(rf"([\"'`]){re.escape(literal.group(2))}\1", candidate):
            reasons.append("hardcoded literal is still assigned")
        return reasons

    return check


def _xss_check(original: str, candidate: str) -> list[str]:
    reasons = []
    unsafe = _UNSAFE_WRITE.search(candidate) or _DOCUMENT_WRITE.search(candidate)
    if unsafe and not _SAFE_SINK.search(candidate):
        reasons.append("unsafe HTML sink is still written")
    sink = _UNSAFE_WRITE.search(original)
    if sink and sink.group(1) not in candidate:
        reasons.append(f"target '{sink.group(1)}' is missing")
    return reasons


def _eval_check(original: str, candidate: str) -> list[str]:
    if _EVAL_CALL.search(candidate):
        return ["eval() is still called"]
    return []


def _random_check(original: str, candidate: str) -> list[str]:
    if _MATH_RANDOM.search(candidate):
        return ["Math.random() is still called"]
    return []


_CATEGORY_CHECKS: dict[VulnerabilityCategory, Callable[[str, str], list[str]]] = {
    VulnerabilityCategory.HARDCODED_API_KEY: _secret_check("API_KEY"),
    VulnerabilityCategory.HARDCODED_PASSWORD: _secret_check("PASSWORD"),
    VulnerabilityCategory.XSS_UNSAFE_WRITE: _xss_check,
    VulnerabilityCategory.CODE_INJECTION: _eval_check,
    VulnerabilityCategory.INSECURE_RANDOM: _random_check,
}


def validate(
    original: str,
    candidate: str,
    category: VulnerabilityCategory | None = None,
) -> ValidationVerdict:
    return FixValidator().validate(original, candidate, category)
