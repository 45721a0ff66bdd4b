"""Heuristic classifiers — secret likelihood, identifier shapes, context windows.

Everything here is a pure function over strings and the tables in
:mod:`rnscan.scanner.patterns`. Rules combine these to keep their own bodies
focused on the structural pattern they look for.
"""

from __future__ import annotations

import math
import re
from collections import Counter

from rnscan.scanner.patterns import (
    ALL_SENSITIVE_KEYWORDS,
    API_SECRET_PATTERNS,
    BASE64_SECRET_ENTROPY,
    BASE64_SECRET_MIN_LENGTH,
    COMMON_VALUE_NAMES,
    COMMON_VALUE_PATTERNS,
    DIGIT_RUN,
    GENERIC_KEY_ENTROPY,
    GENERIC_KEY_MIN_LENGTH,
    HEX_SECRET_MIN_LENGTH,
    IDENTIFIER_PATTERNS,
    SECRET_PATTERNS,
    VENDOR_SECRET_SHAPES,
)

_KEYWORD_PATTERNS: tuple[tuple[str, re.Pattern[str] | None], ...] = tuple(
    (
        keyword,
        None
        if keyword.startswith(".")
        else re.compile(rf"(^|[^a-z]){re.escape(keyword)}($|[^a-z])", re.IGNORECASE),
    )
    for keyword in ALL_SENSITIVE_KEYWORDS
)

_NON_SENSITIVE_NAMES = (
    "characters",
    "charset",
    "alphabet",
    "letters",
    "digits",
    "config",
    "options",
    "settings",
    "constants",
    "defaults",
    "format",
    "pattern",
    "template",
    "schema",
    "allowed",
)

_FORM_FIELD_FRAGMENTS = (
    "input",
    "field",
    "form",
    "state",
    "value",
    "ref",
    "current",
    "new",
    "old",
    "confirm",
    "repeat",
)
_FORM_FIELD_NAMES = ("password", "username", "email", "token")

_UI_TEXT_NAME_FRAGMENTS = (
    "error",
    "message",
    "label",
    "text",
    "title",
    "description",
    "placeholder",
    "hint",
    "help",
    "tooltip",
)
_UI_TEXT_VALUE_FRAGMENTS = (
    "must be",
    "required",
    "invalid",
    "please",
    "enter",
    "at least",
    "characters long",
    "does not match",
    "went wrong",
    "try again",
    "cannot",
    "should",
)

_DIRECT_SECRET_NAMES = (
    "apikey",
    "api_key",
    "secretkey",
    "secret_key",
    "privatekey",
    "private_key",
)

_FORM_CONTEXT_MARKERS = (
    "const [",
    "usestate",
    "setpassword",
    "setusername",
    "setemail",
    "settoken",
    "formik",
    "react-hook-form",
    "register(",
    "useform",
    "placeholder",
    "label",
    "input",
    "textinput",
    "field",
    "error",
    "validation",
    "validate",
    "formdata",
    "formstate",
    "formvalues",
    "handlechange",
    "onchange",
    "onsubmit",
    "handlesubmit",
    "props.",
    "state.",
)


def extract_snippet(content: str, line: int, context_lines: int = 2) -> str:
    """Return ``context_lines`` lines either side of the 1-based ``line``."""
    lines = content.split("\n")
    start = max(0, line - context_lines - 1)
    end = min(len(lines), line + context_lines)
    return "\n".join(lines[start:end])


def line_number(content: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return content.count("\n", 0, max(0, offset)) + 1


def text_window(content: str, start: int, end: int, before: int, after: int) -> str:
    """Slice of ``content`` from ``before`` chars ahead of ``start`` to ``after`` past ``end``.

    Keyword gates built on this are approximate by nature: widening or
    narrowing the window changes which neighbouring words are seen.
    """
    return content[max(0, start - before) : min(len(content), end + after)]


def contains_sensitive_keyword(text: str) -> bool:
    lower = text.lower()
    for keyword, pattern in _KEYWORD_PATTERNS:
        if pattern is None:
            if keyword in lower:
                return True
        elif pattern.search(text):
            return True
    return False


def _is_vendor_shape(value: str) -> bool:
    return any(shape.match(value) for shape in VENDOR_SECRET_SHAPES)


def _is_structural_identifier(value: str) -> bool:
    """Shapes that are never secrets: slugs, dotted paths, word lists, constants.

    A vendor key shape is never an identifier, even when it is all letters.
    """
    if not value or len(value) < 4:
        return True
    if _is_vendor_shape(value):
        return False
    if IDENTIFIER_PATTERNS["kebab_case"].match(value) and not DIGIT_RUN.search(value):
        return True
    if IDENTIFIER_PATTERNS["dot_notation"].match(value):
        return True
    if IDENTIFIER_PATTERNS["colon_separated"].match(value):
        return True
    if IDENTIFIER_PATTERNS["simple_words"].match(value):
        return True
    if IDENTIFIER_PATTERNS["constant_case"].match(value) and not DIGIT_RUN.search(value):
        return True
    return False


def _is_word_identifier(value: str) -> bool:
    return bool(
        IDENTIFIER_PATTERNS["camel_snake_case"].match(value)
        and not DIGIT_RUN.search(value)
        and not _is_vendor_shape(value)
    )


def is_likely_identifier(value: str) -> bool:
    """True for values shaped like code identifiers rather than credentials.

    Kebab-case and ALL_CAPS names only count when they carry no run of three
    or more digits, so ``aes-key-256-bit`` is not treated as a slug.
    """
    return _is_structural_identifier(value) or _is_word_identifier(value)


def shannon_entropy(value: str) -> float:
    """Shannon entropy in bits per character."""
    if not value:
        return 0.0
    length = len(value)
    entropy = 0.0
    for count in Counter(value).values():
        probability = count / length
        entropy -= probability * math.log2(probability)
    return entropy


def matches_vendor_secret(value: str) -> bool:
    if _is_vendor_shape(value):
        return True
    return any(pattern.regex.search(value) for pattern in API_SECRET_PATTERNS)


def looks_like_secret(value: str) -> bool:
    """Decide whether a string literal is probably a credential."""
    if _is_structural_identifier(value):
        return False

    if matches_vendor_secret(value):
        return True

    if _is_word_identifier(value):
        return False

    if len(value) >= HEX_SECRET_MIN_LENGTH and SECRET_PATTERNS["hex_secret"].match(value):
        return True

    if any(pattern.search(value) for pattern in COMMON_VALUE_PATTERNS):
        return False

    lower = value.lower()
    if len(value) < 20 and any(name in lower for name in COMMON_VALUE_NAMES):
        return False

    if SECRET_PATTERNS["aws_secret_key"].match(value):
        return True
    if SECRET_PATTERNS["generic_token"].match(value):
        return True

    if (
        len(value) >= GENERIC_KEY_MIN_LENGTH
        and SECRET_PATTERNS["generic_api_key"].match(value)
        and shannon_entropy(value) > GENERIC_KEY_ENTROPY
    ):
        return True

    if (
        len(value) >= BASE64_SECRET_MIN_LENGTH
        and SECRET_PATTERNS["base64_secret"].match(value)
        and shannon_entropy(value) > BASE64_SECRET_ENTROPY
    ):
        return True

    return False


def is_likely_sensitive_variable(name: str, value: str) -> bool:
    """True when both the variable name and its value point at a real secret."""
    if is_likely_identifier(value):
        return False

    lower_name = name.lower()
    lower_value = value.lower()

    if any(fragment in lower_name for fragment in _NON_SENSITIVE_NAMES):
        return False

    is_form_field = lower_name in _FORM_FIELD_NAMES or any(
        fragment in lower_name for fragment in _FORM_FIELD_FRAGMENTS
    )
    if is_form_field and len(value) < 50:
        return False

    if (
        any(fragment in lower_name for fragment in _UI_TEXT_NAME_FRAGMENTS)
        or any(fragment in lower_value for fragment in _UI_TEXT_VALUE_FRAGMENTS)
        or value.endswith((".", "!", "?"))
    ):
        return False

    if any(keyword in lower_name for keyword in _DIRECT_SECRET_NAMES) and looks_like_secret(
        value
    ):
        return True

    if "token" in lower_name and len(value) > 32 and looks_like_secret(value):
        return True

    if "password" in lower_name and len(value) > 16 and looks_like_secret(value):
        return True

    if (
        ("auth" in lower_name or "credential" in lower_name)
        and len(value) > 20
        and looks_like_secret(value)
    ):
        return True

    return False


def is_in_form_validation_context(line: str) -> bool:
    """True when a line reads like form state, UI text or a comment."""
    lower = line.lower()
    stripped = lower.strip()
    if stripped.startswith(("//", "/*", "*")):
        return True
    return any(marker in lower for marker in _FORM_CONTEXT_MARKERS)
