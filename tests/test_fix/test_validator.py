"""Tests for generative candidate validation."""

from __future__ import annotations

import pytest

from securefix.core.models import VulnerabilityCategory as VC
from securefix.fix.validator import FixValidator, declared_names, validate

KEY_LINE = 'const API_KEY = "sk-12345";'


@pytest.fixture
def validator() -> FixValidator:
    return FixValidator()


class TestAccepts:
    def test_env_var_api_key(self, validator: FixValidator):
        verdict = validator.validate(KEY_LINE, "const API_KEY = process.env.API_KEY;")

        assert verdict.accepted is True
        assert verdict.reasons == ()

    def test_textcontent_swap(self, validator: FixValidator):
        verdict = validator.validate(
            "element.innerHTML = userInput;", "element.textContent = userInput;"
        )
        assert verdict.accepted is True

    def test_sanitized_innerhtml_is_allowed(self, validator: FixValidator):
        verdict = validator.validate(
            "element.innerHTML = userInput;",
            "element.innerHTML = DOMPurify.sanitize(userInput);",
        )
        assert verdict.accepted is True

    def test_json_parse(self, validator: FixValidator):
        verdict = validator.validate("const data = eval(payload);", "const data = JSON.parse(payload);")
        assert verdict.accepted is True

    def test_crypto_random(self, validator: FixValidator):
        verdict = validator.validate(
            "const n = Math.random();",
            "const n = crypto.getRandomValues(new Uint32Array(1))[0];",
        )
        assert verdict.accepted is True


class TestShape:
    def test_empty(self, validator: FixValidator):
        verdict = validator.validate(KEY_LINE, "")

        assert verdict.accepted is False
        assert "candidate is empty" in verdict.reasons

    def test_multi_line(self, validator: FixValidator):
        verdict = validator.validate(
            KEY_LINE, "const API_KEY = process.env.API_KEY;\nconsole.log(API_KEY);"
        )
        assert verdict.accepted is False
        assert "candidate spans multiple lines" in verdict.reasons

    def test_too_long(self, validator: FixValidator):
        candidate = "const API_KEY = process.env.API_KEY || " + "x" * 200 + ";"
        verdict = validator.validate(KEY_LINE, candidate)

        assert verdict.accepted is False
        assert any("limit 200" in r for r in verdict.reasons)

    def test_custom_length_limit(self):
        verdict = FixValidator(max_length=20).validate(KEY_LINE, "const API_KEY = process.env.API_KEY;")
        assert any("limit 20" in r for r in verdict.reasons)

    def test_needs_assignment_or_member_access(self, validator: FixValidator):
        verdict = validator.validate("doThing(x);", "doThing(y)")
        assert "candidate has no assignment or member access" in verdict.reasons


class TestContent:
    def test_explanatory_phrase(self, validator: FixValidator):
        verdict = validator.validate(
            "element.innerHTML = userInput;",
            "element.textContent = userInput; // this is safer",
        )
        assert verdict.accepted is False
        assert "candidate contains explanatory phrase 'this is'" in verdict.reasons

    def test_phrase_already_in_original_is_fine(self, validator: FixValidator):
        verdict = validator.validate("box.innerHTML = comment;", "box.textContent = comment;")
        assert verdict.accepted is True

    def test_foreign_python_tokens(self, validator: FixValidator):
        verdict = validator.validate(KEY_LINE, "API_KEY = os.environ.get('API_KEY');")

        assert verdict.accepted is False
        assert "candidate contains foreign token 'os.environ'" in verdict.reasons

    def test_flask_tokens(self, validator: FixValidator):
        verdict = validator.validate(
            "element.innerHTML = userInput;",
            "element.textContent = jsonify(userInput);",
        )
        assert "candidate contains foreign token 'jsonify'" in verdict.reasons

    def test_added_import(self, validator: FixValidator):
        verdict = validator.validate(
            "const n = Math.random();",
            "import crypto from 'crypto'; const n = crypto.randomInt(10);",
        )
        assert verdict.accepted is False
        assert any("import-like token" in r for r in verdict.reasons)

    def test_too_many_quotes(self, validator: FixValidator):
        verdict = validator.validate(
            KEY_LINE, 'const API_KEY = process.env.API_KEY || "a" + "b" + "c";'
        )
        assert "candidate has too many quote characters" in verdict.reasons


class TestStructure:
    def test_declared_names(self):
        assert declared_names("const a = 1; let b = 2; var $c = 3;") == ["a", "b", "$c"]

    def test_renamed_identifier(self, validator: FixValidator):
        verdict = validator.validate(
            "const data = eval(payload);", "const parsed = JSON.parse(payload);"
        )
        assert verdict.accepted is False
        assert "declared identifier 'data' is missing" in verdict.reasons

    def test_identifier_must_match_whole_word(self, validator: FixValidator):
        verdict = validator.validate("const data = eval(payload);", "const dataset = JSON.parse(payload);")
        assert "declared identifier 'data' is missing" in verdict.reasons

    def test_declaration_count_changed(self, validator: FixValidator):
        verdict = validator.validate(
            "const data = eval(payload);",
            "const raw = payload; const data = JSON.parse(raw);",
        )
        assert verdict.accepted is False
        assert "declaration count changed (1 -> 2)" in verdict.reasons


class TestCategoryCoherence:
    def test_api_key_token_must_remain(self, validator: FixValidator):
        verdict = validator.validate(KEY_LINE, "const API_KEY = process.env.SECRET;")
        assert verdict.accepted is True

        verdict = validator.validate('API_KEY = "sk-1";', "key = process.env.TOKEN;")
        assert "fix no longer references API_KEY" in verdict.reasons

    def test_literal_must_be_gone(self, validator: FixValidator):
        verdict = validator.validate(KEY_LINE, 'const API_KEY = process.env.API_KEY || "sk-12345";')

        assert verdict.accepted is False
        assert "hardcoded literal is still assigned" in verdict.reasons

    def test_unchanged_line_is_rejected(self, validator: FixValidator):
        verdict = validator.validate(KEY_LINE, KEY_LINE)
        assert verdict.accepted is False

    def test_password_token(self, validator: FixValidator):
        verdict = validator.validate(
            'let PASSWORD = "p";', "let PASSWORD = process.env.DB_PASS;", VC.HARDCODED_PASSWORD
        )
        assert verdict.accepted is True

    def test_xss_sink_still_written(self, validator: FixValidator):
        verdict = validator.validate(
            "element.innerHTML = userInput;", "element.innerHTML = escape(userInput);"
        )
        assert "unsafe HTML sink is still written" in verdict.reasons

    def test_xss_target_changed(self, validator: FixValidator):
        verdict = validator.validate("element.innerHTML = userInput;", "document.body.textContent = userInput;")
        assert "target 'element' is missing" in verdict.reasons

    @pytest.mark.parametrize("line", [
        "document.write(userInput);",
        "document.writeln(userInput);",
    ])
    def test_document_write_still_called(self, validator: FixValidator, line: str):
        verdict = validator.validate(line, line)

        assert verdict.accepted is False
        assert "unsafe HTML sink is still written" in verdict.reasons

    def test_document_write_with_sanitizer_is_allowed(self, validator: FixValidator):
        verdict = validator.validate(
            "document.write(userInput);", "document.write(DOMPurify.sanitize(userInput));"
        )
        assert verdict.accepted is True

    @pytest.mark.parametrize("candidate", [
        "const API_KEY = process.env.API_KEY || 'sk-12345';",
        "const API_KEY = process.env.API_KEY || `sk-12345`;",
    ])
    def test_literal_in_other_quotes(self, validator: FixValidator, candidate: str):
        verdict = validator.validate(KEY_LINE, candidate)

        assert verdict.accepted is False
        assert "hardcoded literal is still assigned" in verdict.reasons

    def test_literal_as_part_of_other_string_is_fine(self, validator: FixValidator):
        verdict = validator.validate(
            'let PASSWORD = "p";', 'let PASSWORD = process.env.PASSWORD || "prompt";'
        )
        assert "hardcoded literal is still assigned" not in verdict.reasons

    def test_eval_still_called(self, validator: FixValidator):
        verdict = validator.validate("const data = eval(payload);", "const data = eval(String(payload));")
        assert "eval() is still called" in verdict.reasons

    def test_math_random_still_called(self, validator: FixValidator):
        verdict = validator.validate("const n = Math.random();", "const n = Math.random() * 2;")
        assert "Math.random() is still called" in verdict.reasons

    def test_explicit_category_overrides_classification(self, validator: FixValidator):
        verdict = validator.validate("x = y;", "x = Math.random();", VC.INSECURE_RANDOM)
        assert "Math.random() is still called" in verdict.reasons

    def test_unclassified_has_no_category_check(self, validator: FixValidator):
        verdict = validator.validate("runQuery(sql);", "db.runQuery(sql);")
        assert verdict.accepted is True


class TestReasonsAccumulate:
    def test_every_failure_reported(self):
        verdict = validate(KEY_LINE, "import os\nAPI_KEY = os.environ['X']  # explanation")

        assert verdict.accepted is False
        assert "candidate spans multiple lines" in verdict.reasons
        assert "candidate contains explanatory phrase 'explanation'" in verdict.reasons
        assert "candidate contains foreign token 'os.environ'" in verdict.reasons
        assert "declaration count changed (1 -> 0)" in verdict.reasons
        assert len(verdict.reasons) >= 5

    def test_is_pure(self):
        first = validate(KEY_LINE, "const API_KEY = process.env.API_KEY;")
        second = validate(KEY_LINE, "const API_KEY = process.env.API_KEY;")
        assert first == second
