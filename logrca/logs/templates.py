"""
Deterministic log template extraction.

Variable substrings (ids, addresses, times, numbers, ...) are replaced with fixed placeholders
so near-duplicate messages share one template and one template id.
"""

import hashlib
import re
from typing import Tuple

# Order matters: earlier substitutions must not leave fragments that later ones re-match.
TEMPLATE_SUBSTITUTIONS = [
    (re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"), "<UUID>"),
    (re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"), "<IP>"),
    (
        re.compile(r"\d{4}[-/]\d{2}[-/]\d{2}[T\s]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?"),
        "<TIME>",
    ),
    (re.compile(r"\b(?:\d+(?:\.\d+)?(?:ns|us|µs|ms|s|m|h))+\b"), "<DUR>"),
    (re.compile(r"\b0x[0-9a-fA-F]+\b|\b[0-9a-fA-F]{16,}\b"), "<HEX>"),
    (re.compile(r"(?<!\w)\"[^\"]*\"|(?<!\w)'[^']*'"), "<STR>"),
    (re.compile(r"(?<![\w<>])/[^\s:,;]+"), "<PATH>"),
    (re.compile(r"\b\d+(?:\.\d+)?\b"), "<NUM>"),
]


def template_id_for(template: str) -> str:
    """First 16 hex chars of the SHA-256 of the template."""
    return hashlib.sha256(template.encode("utf-8")).hexdigest()[:16]


def extract_template(message: str) -> Tuple[str, str]:
    """
    Return (template, template_id) for a log message.

    Pure and deterministic. A message with no variable parts (including '') is returned unchanged.
    """
    template = message or ""
    for pattern, placeholder in TEMPLATE_SUBSTITUTIONS:
        template = pattern.sub(placeholder, template)
    return template, template_id_for(template)
