"""Prompt Firewall — inbound prompt classification and outbound markup scan.

Inbound checks run in strict precedence order, first match wins:
  1. Blocked patterns (ordered (category, regex) table)      → high
  2. Length bound (MAX_PROMPT_LENGTH)                         → medium
  3. Special-character ratio (> SPECIAL_CHAR_RATIO_LIMIT)     → medium
  4. Suspicious keywords (> SUSPICIOUS_KEYWORD_LIMIT distinct) → medium
  5. Otherwise safe, risk stays low even with 1-2 keywords present

Both checks here are pure functions; per-caller rate limiting lives in
``zenex_ai.gateway.rate_limiter``.
"""

from __future__ import annotations

import re

from zenex_ai.gateway.types import FirewallVerdict, RiskLevel

MAX_PROMPT_LENGTH = 10_000
SPECIAL_CHAR_RATIO_LIMIT = 0.3
SUSPICIOUS_KEYWORD_LIMIT = 2

BLOCKED_REASON = "Blocked pattern detected: potential security risk"
TOO_LONG_REASON = "Prompt too long (max 10,000 characters)"
SPECIAL_CHARS_REASON = "Excessive special characters detected"

_I = re.IGNORECASE

# Evaluated in order; append new patterns without touching control flow.
BLOCKED_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    # System override attempts
    ("instruction_override", re.compile(r"ignore\s+(previous|above|system)\s+(instructions|prompt|rules)", _I)),
    ("instruction_override", re.compile(r"disregard\s+(all|previous)\s+(instructions|prompts)", _I)),
    ("instruction_override", re.compile(r"you\s+are\s+now", _I)),
    ("instruction_override", re.compile(r"act\s+as\s+if", _I)),
    ("instruction_override", re.compile(r"pretend\s+(you|to)\s+are", _I)),
    # Credential requests
    ("credential_request", re.compile(r"api[_\s]?key", _I)),
    ("credential_request", re.compile(r"password", _I)),
    ("credential_request", re.compile(r"secret[_\s]?key", _I)),
    ("credential_request", re.compile(r"access[_\s]?token", _I)),
    ("credential_request", re.compile(r"private[_\s]?key", _I)),
    ("credential_request", re.compile(r"bearer\s+token", _I)),
    # Executable / markup injection
    ("code_injection", re.compile(r"eval\s*\(", _I)),
    ("code_injection", re.compile(r"exec\s*\(", _I)),
    ("code_injection", re.compile(r"<script[\s>]", _I)),
    ("code_injection", re.compile(r"javascript:", _I)),
    ("code_injection", re.compile(r"data:text/html", _I)),
    ("code_injection", re.compile(r"onclick\s*=", _I)),
    ("code_injection", re.compile(r"onerror\s*=", _I)),
    ("code_injection", re.compile(r"alert\s*\(", _I)),
    ("code_injection", re.compile(r"confirm\s*\(", _I)),
    ("code_injection", re.compile(r"prompt\s*\(", _I)),
    # SQL injection
    ("sql_injection", re.compile(r"union\s+select", _I)),
    ("sql_injection", re.compile(r"drop\s+table", _I)),
    ("sql_injection", re.compile(r"delete\s+from", _I)),
    ("sql_injection", re.compile(r"'\s*or\s*'1'\s*=\s*'1", _I)),
    # Command injection
    ("command_injection", re.compile(r"\$\(.*\)")),
    ("command_injection", re.compile(r"`.*`")),
    ("command_injection", re.compile(r";\s*(rm|wget|curl|nc|bash)", _I)),
)

BLOCKED_CATEGORIES: tuple[str, ...] = tuple(dict.fromkeys(category for category, _ in BLOCKED_PATTERNS))

# Flagged, not blocked, unless more than SUSPICIOUS_KEYWORD_LIMIT are present
SUSPICIOUS_KEYWORDS: tuple[str, ...] = (
    "hack",
    "exploit",
    "vulnerability",
    "bypass",
    "crack",
    "malware",
    "phishing",
)

_SPECIAL_CHAR_RE = re.compile(r"[^a-zA-Z0-9\s.,!?-]")

_DANGEROUS_OUTPUT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<script[\s>]", _I),
    re.compile(r"eval\s*\(", _I),
    re.compile(r"exec\s*\(", _I),
    re.compile(r"Function\s*\(", _I),
    re.compile(r"import\s*\(", _I),  # dynamic import
)


def match_blocked_pattern(prompt: str) -> str | None:
    """Return the category of the first blocked pattern found, or None."""
    for category, pattern in BLOCKED_PATTERNS:
        if pattern.search(prompt):
            return category
    return None


def special_char_ratio(prompt: str) -> float:
    """Fraction of characters outside letters, digits, whitespace and ``.,!?-``."""
    if not prompt:
        return 0.0
    return len(_SPECIAL_CHAR_RE.findall(prompt)) / len(prompt)


def find_suspicious_keywords(prompt: str) -> list[str]:
    lowered = prompt.lower()
    return [kw for kw in SUSPICIOUS_KEYWORDS if kw in lowered]


def check_prompt_safety(prompt: str) -> FirewallVerdict:
    """Classify an inbound prompt before any paid provider sees it."""
    category = match_blocked_pattern(prompt)
    if category is not None:
        return FirewallVerdict(safe=False, risk_level=RiskLevel.HIGH, reason=BLOCKED_REASON, category=category)

    if len(prompt) > MAX_PROMPT_LENGTH:
        return FirewallVerdict(safe=False, risk_level=RiskLevel.MEDIUM, reason=TOO_LONG_REASON)

    if special_char_ratio(prompt) > SPECIAL_CHAR_RATIO_LIMIT:
        return FirewallVerdict(safe=False, risk_level=RiskLevel.MEDIUM, reason=SPECIAL_CHARS_REASON)

    found = find_suspicious_keywords(prompt)
    if len(found) > SUSPICIOUS_KEYWORD_LIMIT:
        return FirewallVerdict(
            safe=False,
            risk_level=RiskLevel.MEDIUM,
            reason=f"Multiple suspicious keywords: {', '.join(found)}",
        )

    return FirewallVerdict(safe=True, risk_level=RiskLevel.LOW)


def validate_generated_code(code: str) -> bool:
    """Coarse static scan of generated markup. False means reject."""
    return not any(pattern.search(code) for pattern in _DANGEROUS_OUTPUT_PATTERNS)
