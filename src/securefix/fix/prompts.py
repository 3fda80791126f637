"""Prompt construction for generative rewrites."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from securefix.core.models import Prompt, VulnerabilityCategory

SYSTEM_PROMPT = """You are a code security expert. Fix the security vulnerability in the provided code.

STRICT REQUIREMENTS:
1. Return ONLY the corrected line of code
2. NO explanations, comments, or markdown formatting
3. NO code blocks, backticks, or extra text
4. Keep the exact same variable names and structure
5. Only change what's necessary to fix the security issue

Examples:
Input: const API_KEY = "sk-123";
Output: const API_KEY = process.env.API_KEY;

Input: element.innerHTML = userInput;
Output: element.textContent = userInput;"""

HIGH_RISK_THRESHOLD = 0.8


@dataclass(frozen=True)
class PromptTemplate:
    title: str
    instruction: str
    example_before: str
    example_after: str


TEMPLATES: dict[VulnerabilityCategory, PromptTemplate] = {
    VulnerabilityCategory.HARDCODED_API_KEY: PromptTemplate(
        title="Fix this hardcoded API key vulnerability",
        instruction="Replace the hardcoded string with process.env.API_KEY",
        example_before='const API_KEY = "sk-12345";',
        example_after="const API_KEY = process.env.API_KEY;",
    ),
    VulnerabilityCategory.HARDCODED_PASSWORD: PromptTemplate(
        title="Fix this hardcoded password vulnerability",
        instruction="Replace the hardcoded string with process.env.PASSWORD",
        example_before='let password = "hunter2";',
        example_after="let password = process.env.PASSWORD;",
    ),
    VulnerabilityCategory.XSS_UNSAFE_WRITE: PromptTemplate(
        title="Fix this XSS vulnerability",
        instruction="Replace innerHTML with textContent",
        example_before="output.innerHTML = comment;",
        example_after="output.textContent = comment;",
    ),
    VulnerabilityCategory.CODE_INJECTION: PromptTemplate(
        title="Fix this code injection vulnerability",
        instruction="Replace eval() with JSON.parse()",
        example_before="const data = eval(payload);",
        example_after="const data = JSON.parse(payload);",
    ),
    VulnerabilityCategory.INSECURE_RANDOM: PromptTemplate(
        title="Fix this insecure random generation",
        instruction="Replace Math.random() with crypto.getRandomValues()",
        example_before="const token = Math.random();",
        example_after="const token = crypto.getRandomValues(new Uint32Array(1))[0];",
    ),
}

DEFAULT_TEMPLATE = PromptTemplate(
    title="Fix this security issue",
    instruction="Apply security best practices",
    example_before="const query = sql + userInput;",
    example_after="const query = db.escape(sql + userInput);",
)


class ConfidenceScorer(Protocol):
    """Optional hint source: probability that the snippet is vulnerable."""

    def score(self, snippet: str, category: VulnerabilityCategory) -> float:
        ...


def build_prompt(
    snippet: str,
    category: VulnerabilityCategory,
    scorer: ConfidenceScorer | None = None,
) -> Prompt:
    """Build the system and user messages for a single-line rewrite."""
    code = snippet.strip()
    template = TEMPLATES.get(category, DEFAULT_TEMPLATE)

    lines = [
        f"{template.title}:",
        code,
        "",
        template.instruction,
        "",
        "Example:",
        f"Input: {template.example_before}",
        f"Output: {template.example_after}",
    ]

    if scorer is not None and scorer.score(code, category) > HIGH_RISK_THRESHOLD:
        lines.append("")
        lines.append("This line is very likely exploitable; fix it without changing behavior.")

    return Prompt(system=SYSTEM_PROMPT, user="\n".join(lines))
