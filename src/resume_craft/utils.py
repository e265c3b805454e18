"""Small text helpers shared by the parsers, the optimizer and the tools."""

from __future__ import annotations

import re

_FENCE = "```"


def clean_markdown_fences(content: str) -> str:
    """
    Strip a surrounding markdown code fence from an LLM reply or tool input.

    Both ```` ```json ```` style openers and bare ```` ``` ```` are handled;
    content without a leading fence is only trimmed.

    Args:
        content: Text that may be wrapped in a code fence

    Returns:
        The text inside the fence, trimmed
    """
    content = content.strip()
    if not content.startswith(_FENCE):
        return content

    lines = content.splitlines()[1:]
    if lines and lines[-1].strip() == _FENCE:
        lines.pop()
    return "\n".join(lines).strip()


def extract_braces(text: str, start_pos: int) -> tuple[str | None, int]:
    """
    Read a balanced ``{...}`` group that opens at ``start_pos``.

    Backslash escapes (``\\{``, ``\\}``) never open or close a group.

    Returns:
        ``(inner_text, position_after_group)``, or ``(None, start_pos)`` when
        there is no ``{`` at ``start_pos`` or the group never closes
    """
    if start_pos >= len(text) or text[start_pos] != "{":
        return None, start_pos

    depth = 0
    i = start_pos
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start_pos + 1:i], i + 1
        i += 1
    return None, start_pos


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return re.sub(r"\s+", " ", text).strip()


def count_words(text: str) -> int:
    """Count words, ignoring LaTeX command names and braces."""
    cleaned = re.sub(r"\\[a-zA-Z]+\{?", "", text)
    cleaned = cleaned.replace("{", "").replace("}", "")
    return len(cleaned.split())
