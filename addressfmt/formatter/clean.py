"""
Output canonicalization.

    " abc,,def , ghi " -> "abc, def, ghi\\n"

clean() is idempotent: clean(clean(s)) == clean(s).
"""

import re
from typing import List

# horizontal whitespace, no line breaks
_H = r"[^\S\r\n]"

_PASSES = (
    (re.compile(r"[,\s]+$"), ""),
    (re.compile(r"^[,\s]+"), ""),
    (re.compile(r",\s*,"), ", "),
    (re.compile(_H + r"+," + _H + r"+"), ", "),
    (re.compile(_H + r"{2,}"), " "),
    (re.compile(_H + r"\n"), "\n"),
    (re.compile(r"\n,"), "\n"),
    (re.compile(r",,+"), ","),
    (re.compile(r",\n"), "\n"),
    (re.compile(r"\n" + _H + r"+"), "\n"),
    (re.compile(r"\n\n+"), "\n"),
)


def _dedupe_line(line: str) -> str:
    seen = set()
    words: List[str] = []
    for word in line.split(","):
        word = word.strip()
        if not word or word in seen:
            continue
        seen.add(word)
        words.append(word)
    return ", ".join(words)


def clean(text: str) -> str:
    """
    Normalize commas and whitespace, drop repeated lines and repeated
    comma separated pieces within a line, end with exactly one newline.
    """
    if text is None:
        return "\n"

    for regex, replacement in _PASSES:
        text = regex.sub(replacement, text)

    seen_lines = set()
    lines: List[str] = []
    for line in text.split("\n"):
        line = _dedupe_line(line)
        if not line or line in seen_lines:
            continue
        seen_lines.add(line)
        lines.append(line)

    return "\n".join(lines).strip() + "\n"
