"""Rule-based fix generators for deterministic patterns."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from securefix.core.models import VulnerabilityCategory


@dataclass(frozen=True)
class FixRule:
    """One pattern and replacement template for a category."""

    category: VulnerabilityCategory
    pattern: re.Pattern[str]
    replacement: str
    description: str
    manual_steps: tuple[str, ...] = field(default_factory=tuple)


# Read-only after import; safe to share between concurrent requests.
FIX_RULES: dict[VulnerabilityCategory, FixRule] = {
    rule.category: rule
    for rule in (
        FixRule(
            category=VulnerabilityCategory.HARDCODED_API_KEY,
            pattern=re.compile(
                r"\b(const|let|var)\s+(API_KEY|api_key)\s*=\s*[\"'][^\"']*[\"']",
                re.IGNORECASE,
            ),
            replacement=r'\g<1> \g<2> = process.env.\g<2> || "default_api_key"',
            description="Read the API key from the environment",
            manual_steps=("Set the API_KEY environment variable",),
        ),
        FixRule(
            category=VulnerabilityCategory.HARDCODED_PASSWORD,
            pattern=re.compile(
                r"\b(const|let|var)\s+(PASSWORD|password)\s*=\s*[\"'][^\"']*[\"']",
                re.IGNORECASE,
            ),
            replacement=r'\g<1> \g<2> = process.env.\g<2> || "default_password"',
            description="Read the password from the environment",
            manual_steps=("Set the PASSWORD environment variable",),
        ),
        FixRule(
            category=VulnerabilityCategory.XSS_UNSAFE_WRITE,
            pattern=re.compile(r"\.innerHTML\s*(\+?)=(?!=)"),
            replacement=r".textContent \g<1>=",
            description="Write text with textContent instead of innerHTML",
        ),
        FixRule(
            category=VulnerabilityCategory.CODE_INJECTION,
            pattern=re.compile(r"(?<![\w.])eval\s*\(\s*([^)]+?)\s*\)"),
            replacement=r"JSON.parse(\g<1>)",
            description="Parse data with JSON.parse instead of eval",
            manual_steps=("Verify the evaluated input is JSON data",),
        ),
        FixRule(
            category=VulnerabilityCategory.INSECURE_RANDOM,
            pattern=re.compile(r"\bMath\.random\s*\(\s*\)"),
            replacement="crypto.getRandomValues(new Uint32Array(1))[0] / (0xFFFFFFFF + 1)",
            description="Use a cryptographically secure random source",
        ),
    )
}


class RuleBasedFixer:
    """Generates deterministic fixes for common patterns."""

    def __init__(self, rules: dict[VulnerabilityCategory, FixRule] | None = None):
        self.rules = FIX_RULES if rules is None else rules

    def try_fix(self, snippet: str, category: VulnerabilityCategory) -> str | None:
        """Rewrite the snippet. Returns None if no rule applies."""
        rule = self.rules.get(category)
        if rule is None:
            return None

        fixed = rule.pattern.sub(rule.replacement, snippet, count=1)
        # Classification and rule patterns can disagree on malformed input.
        if fixed == snippet:
            return None
        return fixed

    def describe(self, category: VulnerabilityCategory) -> FixRule | None:
        return self.rules.get(category)

    def supports(self, category: VulnerabilityCategory) -> bool:
        return category in self.rules


_default_fixer = RuleBasedFixer()


def rewrite(snippet: str, category: VulnerabilityCategory) -> str | None:
    """Module-level shortcut over the default rule table."""
    return _default_fixer.try_fix(snippet, category)
