"""Tests for prompt construction."""

from __future__ import annotations

import pytest

from securefix.core.models import Prompt, VulnerabilityCategory as VC
from securefix.fix.prompts import SYSTEM_PROMPT, TEMPLATES, build_prompt


class _FixedScorer:
    def __init__(self, value: float):
        self.value = value
        self.calls: list[tuple[str, VC]] = []

    def score(self, snippet: str, category: VC) -> float:
        self.calls.append((snippet, category))
        return self.value


class TestBuildPrompt:
    def test_system_message_constraints(self):
        prompt = build_prompt('const API_KEY = "sk-1";', VC.HARDCODED_API_KEY)

        assert isinstance(prompt, Prompt)
        assert prompt.system == SYSTEM_PROMPT
        assert "Return ONLY the corrected line" in prompt.system
        assert "NO code blocks" in prompt.system
        assert "same variable names" in prompt.system

    def test_user_message_embeds_stripped_snippet(self):
        prompt = build_prompt('   const API_KEY = "sk-1";  \n', VC.HARDCODED_API_KEY)

        assert '\nconst API_KEY = "sk-1";\n' in prompt.user
        assert "process.env.API_KEY" in prompt.user

    @pytest.mark.parametrize("category", list(TEMPLATES))
    def test_category_example_included(self, category: VC):
        template = TEMPLATES[category]
        prompt = build_prompt("x = y;", category)

        assert template.instruction in prompt.user
        assert f"Input: {template.example_before}" in prompt.user
        assert f"Output: {template.example_after}" in prompt.user

    def test_unclassified_uses_generic_instruction(self):
        prompt = build_prompt("runQuery(sql + input);", VC.UNCLASSIFIED)

        assert prompt.user.startswith("Fix this security issue:")
        assert "Apply security best practices" in prompt.user

    def test_is_pure(self):
        assert build_prompt("el.innerHTML = x;", VC.XSS_UNSAFE_WRITE) == build_prompt(
            "el.innerHTML = x;", VC.XSS_UNSAFE_WRITE
        )


class TestConfidenceScorer:
    def test_high_score_adds_hint(self):
        scorer = _FixedScorer(0.95)
        prompt = build_prompt("const v = eval(s);", VC.CODE_INJECTION, scorer)

        assert "very likely exploitable" in prompt.user
        assert scorer.calls == [("const v = eval(s);", VC.CODE_INJECTION)]

    def test_low_score_adds_nothing(self):
        with_scorer = build_prompt("const v = eval(s);", VC.CODE_INJECTION, _FixedScorer(0.8))
        without = build_prompt("const v = eval(s);", VC.CODE_INJECTION)

        assert with_scorer == without
