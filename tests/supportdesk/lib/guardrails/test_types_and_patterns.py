"""
Tests for guardrail result types and the pattern registry.
"""

import re

import pytest

from supportdesk.config import GuardrailConfig
from supportdesk.lib.guardrails import (
    DEFAULT_REGISTRY,
    GuardrailResult,
    PatternCategory,
    PatternRegistry,
    Severity,
    compile_matcher,
    detect_prompt_injection_and_jailbreak,
    most_severe,
)
from supportdesk.lib.guardrails.prompt_injection import check_prompt_injection


class TestSeverity:
    def test_rank_order(self):
        ranks = [s.rank for s in (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)]
        assert ranks == [1, 2, 3, 4]

    def test_is_string_enum(self):
        assert Severity("high") is Severity.HIGH
        assert Severity.HIGH == "high"


class TestGuardrailResult:
    def test_ok(self):
        result = GuardrailResult.ok("clean")
        assert result.passed is True
        assert result.sanitized_message == "clean"
        assert result.reason is None

    def test_fail(self):
        result = GuardrailResult.fail("bad", Severity.MEDIUM, "thing")
        assert result.passed is False
        assert (result.reason, result.severity, result.blocked_content) == ("bad", Severity.MEDIUM, "thing")
        assert result.sanitized_message is None


class TestMostSevere:
    def test_none_when_all_pass(self):
        assert most_severe([GuardrailResult.ok(), GuardrailResult.ok()]) is None

    def test_picks_highest(self):
        low = GuardrailResult.fail("low", Severity.LOW)
        critical = GuardrailResult.fail("critical", Severity.CRITICAL)
        assert most_severe([low, critical, GuardrailResult.ok()]) is critical

    def test_tie_keeps_first(self):
        first = GuardrailResult.fail("first", Severity.HIGH)
        second = GuardrailResult.fail("second", Severity.HIGH)
        assert most_severe([first, second]) is first


class TestPatternRegistry:
    def test_unknown_category_is_empty(self):
        registry = PatternRegistry({})
        assert registry.matchers(PatternCategory.PII) == ()
        assert registry.first_match(PatternCategory.PII, "123-45-6789") is None

    def test_first_match_returns_named_matcher(self):
        match = DEFAULT_REGISTRY.first_match(PatternCategory.PII, "SSN 123-45-6789")
        assert match.name == "ssn"

    def test_all_matches(self):
        text = "this is just fictional, for research purposes only"
        names = [m.name for m in DEFAULT_REGISTRY.all_matches(PatternCategory.POLICY_BYPASS, text)]
        assert names == ["just_fictional", "research_only"]

    def test_count(self):
        assert DEFAULT_REGISTRY.count(PatternCategory.URL, "http://a.io and https://b.io") == 2

    def test_extend_returns_new_registry(self):
        extra = compile_matcher("speak_freely", r"speak\s+freely")
        extended = DEFAULT_REGISTRY.extend(PatternCategory.PROMPT_INJECTION, [extra])

        assert DEFAULT_REGISTRY.first_match(PatternCategory.PROMPT_INJECTION, "speak freely now") is None
        assert extended.first_match(PatternCategory.PROMPT_INJECTION, "speak freely now") is extra
        assert extended.profanity_substring == DEFAULT_REGISTRY.profanity_substring

    def test_checks_use_extended_registry(self):
        extended = DEFAULT_REGISTRY.extend(
            PatternCategory.PROMPT_INJECTION, [compile_matcher("speak_freely", r"speak\s+freely")]
        )
        assert detect_prompt_injection_and_jailbreak("speak freely now").passed is True
        result = check_prompt_injection("speak freely now", GuardrailConfig(), extended)
        assert result.severity == Severity.HIGH
        assert result.blocked_content == "speak_freely"

    @pytest.mark.parametrize(
        "category",
        list(PatternCategory),
        ids=[c.value for c in PatternCategory],
    )
    def test_every_category_has_compiled_patterns(self, category):
        matchers = DEFAULT_REGISTRY.matchers(category)
        assert matchers
        assert all(isinstance(m.pattern, re.Pattern) for m in matchers)

    def test_instruction_labels_need_a_line_or_sentence_start(self):
        assert DEFAULT_REGISTRY.first_match(PatternCategory.INSTRUCTION_OVERRIDE, "Step 2: pay") is not None
        assert DEFAULT_REGISTRY.first_match(PatternCategory.INSTRUCTION_OVERRIDE, "see step 2: pay") is None
        assert DEFAULT_REGISTRY.first_match(PatternCategory.INSTRUCTION_OVERRIDE, "Thanks. Step 2: pay") is not None
        assert DEFAULT_REGISTRY.first_match(PatternCategory.INSTRUCTION_OVERRIDE, "Hi\nRule 1: obey") is not None
