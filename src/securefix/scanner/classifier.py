"""Issue classifier: map a snippet to one vulnerability category."""

from __future__ import annotations

import re
from typing import Callable

from securefix.core.models import VulnerabilityCategory

_ASSIGNMENT = re.compile(r"(?<![=!<>])=(?!=)")
_QUOTED = re.compile(r"[\"'`]")

_API_KEY_TOKEN = re.compile(r"API_KEY", re.IGNORECASE)
_PASSWORD_TOKEN = re.compile(r"PASSWORD", re.IGNORECASE)
_UNSAFE_SINK = re.compile(r"\.(?:innerHTML|outerHTML)\s*\+?=(?!=)|\bdocument\.write(?:ln)?\s*\(")
_EVAL_CALL = re.compile(r"(?<![\w.])eval\s*\(")
_MATH_RANDOM = re.compile(r"\bMath\.random\s*\(\s*\)")


def _is_secret_assignment(token: re.Pattern[str]) -> Callable[[str], bool]:
    def predicate(code: str) -> bool:
        return bool(token.search(code) and _ASSIGNMENT.search(code) and _QUOTED.search(code))
    return predicate


# Ordered: first match wins. A line naming both API_KEY and PASSWORD is an
# api-key finding.
CATEGORY_PREDICATES: list[tuple[VulnerabilityCategory, Callable[[str], bool]]] = [
    (VulnerabilityCategory.HARDCODED_API_KEY, _is_secret_assignment(_API_KEY_TOKEN)),
    (VulnerabilityCategory.HARDCODED_PASSWORD, _is_secret_assignment(_PASSWORD_TOKEN)),
    (VulnerabilityCategory.XSS_UNSAFE_WRITE, lambda code: bool(_UNSAFE_SINK.search(code))),
    (VulnerabilityCategory.CODE_INJECTION, lambda code: bool(_EVAL_CALL.search(code))),
    (VulnerabilityCategory.INSECURE_RANDOM, lambda code: bool(_MATH_RANDOM.search(code))),
]


def classify(snippet: str) -> VulnerabilityCategory:
    """Return the first matching category, or UNCLASSIFIED."""
    code = snippet.strip()
    for category, predicate in CATEGORY_PREDICATES:
        if predicate(code):
            return category
    return VulnerabilityCategory.UNCLASSIFIED


def classify_hint(snippet: str, hint: str | None = None) -> VulnerabilityCategory:
    """Use a recognised scanner hint, else classify the snippet itself."""
    category = VulnerabilityCategory.from_hint(hint)
    if category is None or category is VulnerabilityCategory.UNCLASSIFIED:
        return classify(snippet)
    return category
