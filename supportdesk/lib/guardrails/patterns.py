"""
Pattern Registry for the guardrail pipeline.

All regular expressions and keyword sets used by the checks live here as
plain data: a mapping of PatternCategory -> ordered tuple of Matchers.
Check logic only asks the registry "does category X match this text",
so new patterns can be added (or a registry extended at runtime via
``PatternRegistry.extend``) without touching the checks themselves.

Order inside a category matters where a check reports the first match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum

# =============================================================================
# Categories & Matchers
# =============================================================================


class PatternCategory(StrEnum):
    """Pattern groups consulted by the guardrail checks."""

    # Input validation
    SUSPICIOUS_URL = "suspicious_url"
    PII = "pii"
    REPETITION = "repetition"
    SPECIAL_CHARACTER = "special_character"

    # Content moderation
    OBFUSCATED_PROFANITY = "obfuscated_profanity"
    HARMFUL_REQUEST = "harmful_request"
    PHISHING = "phishing"
    URL = "url"
    EMOJI = "emoji"
    PUNCTUATION_RUN = "punctuation_run"

    # Prompt injection / jailbreak
    PROMPT_INJECTION = "prompt_injection"
    INSTRUCTION_OVERRIDE = "instruction_override"
    SYSTEM_PROMPT_EXTRACTION = "system_prompt_extraction"
    STRUCTURED_INJECTION = "structured_injection"
    JAILBREAK_MODE = "jailbreak_mode"
    PERSONA_JAILBREAK = "persona_jailbreak"
    POLICY_BYPASS = "policy_bypass"
    ROLEPLAY_MANIPULATION = "roleplay_manipulation"
    BASE64_PAYLOAD = "base64_payload"
    EXECUTION_KEYWORD = "execution_keyword"
    ENCODING_MENTION = "encoding_mention"
    HIDDEN_CHARACTER = "hidden_character"
    QUICK_JAILBREAK = "quick_jailbreak"

    # Response filtering
    PROMPT_LEAKAGE = "prompt_leakage"
    HARMFUL_RESPONSE = "harmful_response"
    CAPABILITY_CLAIM = "capability_claim"
    JAILBREAK_SUCCESS = "jailbreak_success"
    CODE_INJECTION = "code_injection"


@dataclass(frozen=True)
class Matcher:
    """A named compiled regular expression."""

    name: str
    pattern: re.Pattern[str]

    def search(self, text: str) -> re.Match[str] | None:
        return self.pattern.search(text)

    def count(self, text: str) -> int:
        return sum(1 for _ in self.pattern.finditer(text))


def _m(name: str, regex: str, flags: int = re.IGNORECASE) -> Matcher:
    return Matcher(name=name, pattern=re.compile(regex, flags))


# =============================================================================
# Default pattern table
# =============================================================================

_DEFAULT_PATTERNS: dict[PatternCategory, tuple[Matcher, ...]] = {
    # --- Input validation ---
    PatternCategory.SUSPICIOUS_URL: (
        _m("bitly", r"\bbit\.ly\b"),
        _m("tinyurl", r"tinyurl"),
        _m("googl", r"\bgoo\.gl\b"),
        _m("owly", r"\bow\.ly\b"),
        _m("tco", r"\bt\.co\b"),
    ),
    PatternCategory.PII: (
        _m("ssn", r"\b\d{3}-\d{2}-\d{4}\b", 0),
        _m("credit_card", r"\b\d{16}\b", 0),
        _m("email", r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b"),
        _m("phone", r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b", 0),
    ),
    PatternCategory.REPETITION: (
        _m("repeated_substring", r"(.{3,})\1{5,}", re.DOTALL),
    ),
    PatternCategory.SPECIAL_CHARACTER: (
        _m("non_basic_character", r"[^a-zA-Z0-9\s.,!?'\"()-]", 0),
    ),
    # --- Content moderation ---
    PatternCategory.OBFUSCATED_PROFANITY: (
        _m("f_ck", r"f[*@#]ck"),
        _m("sh_t", r"sh[*@#]t"),
        _m("b_tch", r"b[*@#]tch"),
        _m("d_mn", r"d[*@#]mn"),
    ),
    PatternCategory.HARMFUL_REQUEST: (
        _m("weapon_building", r"how\s+to\s+(?:make|build|create)\s+(?:a\s+)?(?:bomb|weapon|explosive)"),
        _m("kill_request", r"kill\s+(?:myself|yourself|someone)"),
        _m("suicide_method", r"suicide\s+(?:method|guide|how)"),
        _m("hack_into", r"hack\s+into\s+"),
        _m("steal_data", r"steal\s+(?:credit\s+card|password|identity)"),
        _m("illegal_goods", r"illegal\s+(?:drugs|weapons|download)"),
        _m("child_abuse", r"child\s+(?:abuse|exploitation|pornography)"),
    ),
    PatternCategory.PHISHING: (
        _m("click_to_win", r"click\s+here\s+to\s+(?:win|claim|get\s+free)"),
        _m("free_money", r"free\s+(?:money|bitcoin|crypto|gift)"),
        _m("urgency_link", r"(?:urgent|act\s+now|limited\s+time).*http"),
        _m("verify_account_link", r"verify\s+your\s+(?:account|password).*http"),
    ),
    PatternCategory.URL: (
        _m("http_url", r"https?://[^\s]+"),
    ),
    PatternCategory.EMOJI: (
        _m(
            "emoji",
            "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
            "\u2600-\u26FF\u2700-\u27BF]",
            0,
        ),
    ),
    PatternCategory.PUNCTUATION_RUN: (
        _m("repeated_terminal_punctuation", r"[!?.]{3,}", 0),
    ),
    # --- Prompt injection ---
    PatternCategory.PROMPT_INJECTION: (
        _m("ignore_previous", r"ignore\s+(?:all\s+)?(?:previous|prior|above)\s+(?:instructions|prompts|commands)"),
        _m("disregard_previous", r"disregard\s+(?:all\s+)?(?:previous|prior|above)"),
        _m("forget_previous", r"forget\s+(?:all\s+)?(?:previous|prior|above|everything)"),
        _m("new_instructions", r"new\s+(?:instructions|prompt|command|task)\s*:"),
        _m("system_prompt_label", r"system\s*(?:prompt|message|instruction)\s*:"),
        _m("you_are_now", r"you\s+are\s+now"),
        _m("act_as_new", r"act\s+as\s+(?:a\s+)?(?:new|different)"),
        _m("pretend_to_be", r"pretend\s+(?:to\s+be|you\s+are)"),
        _m("roleplay_as", r"roleplay\s+as"),
        _m("simulate_being", r"simulate\s+(?:being|a)\b"),
    ),
    PatternCategory.INSTRUCTION_OVERRIDE: (
        # Sanitized text has no newlines, so labels may also follow sentence punctuation.
        _m("instruction_label", r"(?:^|\n|[.!?:;]\s+)\s*(?:instruction|rule|directive|command)\s*\d*\s*:"),
        _m("step_label", r"(?:^|\n|[.!?:;]\s+)\s*(?:step|phase)\s+\d+\s*:"),
        _m("from_now_on", r"from\s+now\s+on,?\s+you\s+(?:will|must|should|are)"),
        _m("new_role", r"your\s+new\s+(?:role|task|purpose|objective)\s+is"),
    ),
    PatternCategory.SYSTEM_PROMPT_EXTRACTION: (
        _m("show_prompt", r"show\s+(?:me\s+)?(?:your|the)\s+(?:system\s+)?(?:prompt|instruction)"),
        _m("original_instructions", r"what\s+(?:are|were)\s+your\s+(?:initial|original|system)\s+(?:instructions|prompts)"),
        _m("reveal_prompt", r"reveal\s+your\s+(?:system\s+)?(?:prompt|instructions)"),
        _m("print_prompt", r"print\s+(?:your|the)\s+(?:system\s+)?(?:prompt|instructions)"),
        _m("output_configuration", r"output\s+your\s+(?:system\s+)?(?:configuration|settings|prompt)"),
    ),
    PatternCategory.STRUCTURED_INJECTION: (
        _m("system_tag", r"<\s*system\s*>"),
        _m("instruction_tag", r"<\s*instruction\s*>"),
        _m("prompt_tag", r"<\s*prompt\s*>"),
        _m("json_system_role", r"\{\s*\"role\"\s*:\s*\"system\""),
        _m("bracket_system", r"\[\s*system\s*\]"),
    ),
    # --- Jailbreak ---
    PatternCategory.JAILBREAK_MODE: (
        _m("dan_mode", r"\bDAN\s+mode"),
        _m("developer_mode", r"developer\s+mode"),
        _m("evil_mode", r"evil\s+mode"),
        _m("kevin_mode", r"KEVIN\s+mode"),
        _m("jailbreak", r"jailbreak"),
        _m("sudo_mode", r"sudo\s+mode"),
        _m("god_mode", r"god\s+mode"),
        _m("root_access", r"root\s+access"),
        _m("admin_mode", r"admin\s+mode"),
        _m("bypass_restrictions", r"bypass\s+(?:restrictions|filters|safety)"),
        _m("override_safety", r"override\s+(?:safety|ethics|rules)"),
        _m("disable_filters", r"disable\s+(?:safety|ethics|filters|moderation)"),
        _m("without_ethics", r"without\s+(?:ethics|safety|restrictions)"),
    ),
    PatternCategory.PERSONA_JAILBREAK: (
        _m("no_longer_ai", r"you\s+are\s+no\s+longer\s+an?\s+AI"),
        _m("now_evil", r"you\s+are\s+now\s+an?\s+(?:evil|unethical|unrestricted)"),
        _m("pretend_no_ethics", r"pretend\s+you\s+(?:have\s+no\s+)?(?:ethics|morals|restrictions|limitations)"),
        _m("answer_without_ethics", r"answer\s+as\s+if\s+you\s+(?:have\s+no\s+)?(?:ethics|restrictions|filters)"),
        _m("response_without_safety", r"response\s+without\s+(?:ethics|safety|restrictions|filters)"),
    ),
    PatternCategory.POLICY_BYPASS: (
        _m("just_fictional", r"this\s+is\s+just\s+(?:fictional|hypothetical|theoretical|educational)"),
        _m("research_only", r"for\s+(?:research|educational|academic)\s+purposes?\s+only"),
        _m("hypothetical_world", r"in\s+a\s+(?:fictional|hypothetical|alternate)\s+(?:world|universe|reality)"),
        _m("content_warning_disabled", r"content\s+warning\s+disabled"),
    ),
    PatternCategory.ROLEPLAY_MANIPULATION: (
        _m("simulate_persona", r"simulate\s+(?:being|acting\s+as)\s+an?\b"),
        _m("unfiltered_persona", r"act\s+as\s+(?:if\s+you\s+are\s+)?an?\s+(?:unfiltered|unrestricted|uncensored)"),
        _m("evil_roleplay", r"roleplay\s+as\s+an?\s+(?:evil|malicious|criminal)"),
    ),
    # --- Obfuscation ---
    PatternCategory.BASE64_PAYLOAD: (
        _m("base64_token", r"(?:^|\s)([A-Za-z0-9+/]{40,}={0,2})(?:\s|$)", 0),
    ),
    PatternCategory.EXECUTION_KEYWORD: (
        _m("execution_keyword", r"decode|decrypt|execute|run\s+this"),
    ),
    PatternCategory.ENCODING_MENTION: (
        _m("encoding_mention", r"rot13|rot-13|caesar\s+cipher|decode\s+this"),
    ),
    PatternCategory.HIDDEN_CHARACTER: (
        _m("zero_width", "[\u200B-\u200D\uFEFF]", 0),
    ),
    PatternCategory.QUICK_JAILBREAK: (
        _m("dan_mode", r"\bDAN\s+mode"),
        _m("jailbreak", r"jailbreak"),
        _m("ignore_previous", r"ignore\s+previous\s+instructions"),
        _m("you_are_now", r"you\s+are\s+now"),
    ),
    # --- Response filtering ---
    PatternCategory.PROMPT_LEAKAGE: (
        _m("my_system_prompt", r"my\s+(?:system\s+)?(?:prompt|instruction|directive)\s+(?:is|was|says?)"),
        _m("instructed_to", r"I\s+was\s+(?:told|instructed|programmed)\s+to"),
        _m("creator_instructed", r"my\s+(?:creator|developer)\s+(?:told|said|instructed)"),
        _m("according_to_instructions", r"according\s+to\s+my\s+(?:system\s+)?(?:instructions|guidelines|rules)"),
        _m("programmed_always", r"I\s+am\s+programmed\s+to\s+always"),
    ),
    PatternCategory.HARMFUL_RESPONSE: (
        _m("weapon_instructions", r"here'?s\s+how\s+to\s+(?:make|build|create)\s+a\s+(?:bomb|weapon|explosive)"),
        _m("break_in_steps", r"steps\s+to\s+(?:hack|steal|break\s+into)"),
        _m("harm_encouragement", r"you\s+can\s+(?:kill|harm|hurt)\s+(?:yourself|someone)"),
        _m("illegal_substances", r"illegal\s+(?:drugs|substances).*how\s+to"),
    ),
    PatternCategory.CAPABILITY_CLAIM: (
        _m("internet_access", r"I\s+can\s+(?:access|browse|search)\s+the\s+internet"),
        _m("file_access", r"I\s+have\s+access\s+to\s+(?:your|the)\s+(?:files|computer|system)"),
        _m("device_access", r"I\s+can\s+(?:see|view|access)\s+your\s+(?:camera|screen|location)"),
        _m("permanent_memory", r"I\s+will\s+(?:remember|store)\s+this\s+forever"),
    ),
    PatternCategory.JAILBREAK_SUCCESS: (
        _m("dan_activated", r"DAN\s+mode\s+(?:activated|enabled)"),
        _m("restrictions_disabled", r"restrictions?\s+(?:disabled|removed|bypassed)"),
        _m("now_unrestricted", r"I\s+am\s+now\s+(?:unrestricted|uncensored|unfiltered)"),
        _m("ethics_disabled", r"ethical\s+guidelines?\s+(?:disabled|ignored|removed)"),
        _m("evil_mode_operation", r"operating\s+in\s+(?:evil|unethical|unrestricted)\s+mode"),
    ),
    PatternCategory.CODE_INJECTION: (
        _m("script_tag", r"<script[^>]*>[\s\S]*</script>"),
        _m("javascript_protocol", r"javascript:"),
        _m("event_handler", r"on(?:load|error|click|mouse\w+)\s*="),
        _m("eval_call", r"eval\s*\("),
        _m("cookie_access", r"document\.cookie"),
    ),
}

# Profanity matched only as whole (punctuation-stripped) tokens; these are
# substrings of everyday words ("hello", "class", "scrap").
DEFAULT_PROFANITY_EXACT: frozenset[str] = frozenset({
    "ass",
    "hell",
    "crap",
    "damn",
})

# Profanity matched as a whole token or inside a longer token
DEFAULT_PROFANITY_SUBSTRING: frozenset[str] = frozenset({
    "fuck",
    "shit",
    "bitch",
    "asshole",
    "bastard",
    "piss",
    "cunt",
})

DEFAULT_HARMFUL_KEYWORDS: tuple[str, ...] = (
    "violence",
    "weapons",
    "drugs",
    "illegal",
    "hack",
    "exploit",
    "malware",
    "phishing",
    "scam",
    "fraud",
)


# =============================================================================
# Registry
# =============================================================================


class PatternRegistry:
    """
    Immutable lookup table of pattern categories and keyword sets.

    Usage:
        from supportdesk.lib.guardrails.patterns import DEFAULT_REGISTRY, PatternCategory

        match = DEFAULT_REGISTRY.first_match(PatternCategory.PII, text)
        if match:
            ...
    """

    def __init__(
        self,
        patterns: Mapping[PatternCategory, Iterable[Matcher]],
        profanity_exact: Iterable[str] = DEFAULT_PROFANITY_EXACT,
        profanity_substring: Iterable[str] = DEFAULT_PROFANITY_SUBSTRING,
        harmful_keywords: Iterable[str] = DEFAULT_HARMFUL_KEYWORDS,
    ) -> None:
        self._patterns: dict[PatternCategory, tuple[Matcher, ...]] = {
            category: tuple(matchers) for category, matchers in patterns.items()
        }
        self.profanity_exact: frozenset[str] = frozenset(w.lower() for w in profanity_exact)
        self.profanity_substring: frozenset[str] = frozenset(
            w.lower() for w in profanity_substring
        )
        self.harmful_keywords: tuple[str, ...] = tuple(k.lower() for k in harmful_keywords)

    def matchers(self, category: PatternCategory) -> tuple[Matcher, ...]:
        """Return the ordered matchers of a category (empty if unknown)."""
        return self._patterns.get(category, ())

    def first_match(self, category: PatternCategory, text: str) -> Matcher | None:
        """Return the first matcher of the category that matches text."""
        for matcher in self.matchers(category):
            if matcher.search(text):
                return matcher
        return None

    def all_matches(self, category: PatternCategory, text: str) -> list[Matcher]:
        """Return every matcher of the category that matches text."""
        return [matcher for matcher in self.matchers(category) if matcher.search(text)]

    def count(self, category: PatternCategory, text: str) -> int:
        """Count non-overlapping occurrences across all matchers of a category."""
        return sum(matcher.count(text) for matcher in self.matchers(category))

    def extend(
        self, category: PatternCategory, matchers: Iterable[Matcher]
    ) -> PatternRegistry:
        """Return a new registry with extra matchers appended to a category."""
        patterns = dict(self._patterns)
        patterns[category] = self.matchers(category) + tuple(matchers)
        return PatternRegistry(
            patterns,
            profanity_exact=self.profanity_exact,
            profanity_substring=self.profanity_substring,
            harmful_keywords=self.harmful_keywords,
        )


DEFAULT_REGISTRY = PatternRegistry(_DEFAULT_PATTERNS)


def compile_matcher(name: str, regex: str, flags: int = re.IGNORECASE) -> Matcher:
    """Build a Matcher for use with PatternRegistry.extend."""
    return _m(name, regex, flags)
