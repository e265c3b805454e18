"""
Core LaTeX helper functions for comments, escaping and document markers.

These are pure utility functions with no dependencies on the rest of the system.
"""

import re
from typing import Optional

BEGIN_DOCUMENT = "\\begin{document}"
END_DOCUMENT = "\\end{document}"

_BEGIN_DOCUMENT_RE = re.compile(r"\\begin\s*\{document\}")
_UNESCAPED_PERCENT_RE = re.compile(r"(?<!\\)%")


def strip_latex_comments(s: str) -> str:
    """Remove LaTeX comments but preserve newlines and escaped percent signs."""
    return "\n".join(_UNESCAPED_PERCENT_RE.split(line, 1)[0] for line in s.splitlines())


def is_commented(source: str, offset: int) -> bool:
    """True when ``offset`` lies after an unescaped ``%`` on its line."""
    line_start = source.rfind("\n", 0, offset) + 1
    return bool(_UNESCAPED_PERCENT_RE.search(source[line_start:offset]))


def find_document_start(source: str) -> Optional[int]:
    r"""Offset of the first uncommented ``\begin{document}``, or None."""
    for m in _BEGIN_DOCUMENT_RE.finditer(source or ""):
        if not is_commented(source, m.start()):
            return m.start()
    return None


_SPECIALS = {
    '&': r'\&',
    '%': r'\%',
    '$': r'\$',
    '#': r'\#',
    '_': r'\_',
    '~': r'\textasciitilde{}',
    '^': r'\textasciicircum{}',
}
_STRICT = dict(_SPECIALS, **{'\\': r'\textbackslash{}', '{': r'\{', '}': r'\}'})


def escape_latex(text: str, *, keep_commands: bool = False) -> str:
    """Escape LaTeX special characters in plain text.

    By default every special is escaped, backslash and braces included, in a
    single pass so nothing just emitted is escaped again. With
    ``keep_commands=True`` backslashes and braces are left alone so embedded
    LaTeX stays intact, and already escaped specials are not touched.
    """
    if not text:
        return ""

    if keep_commands:
        return re.sub(r'(?<!\\)[&%$#_~^]', lambda m: _SPECIALS[m.group(0)], text)
    return re.sub(r'[\\{}&%$#_~^]', lambda m: _STRICT[m.group(0)], text)
