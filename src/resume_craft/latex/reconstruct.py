"""
Regenerate LaTeX source from a parsed (and possibly edited) ``Resume``.

The preamble is replayed verbatim; the body is regenerated from the section
tree. Content the model has no slot for (paragraphs, tables, custom
environments inside sections) is not reproduced.
"""
from __future__ import annotations

from typing import List

from resume_craft.latex.core import BEGIN_DOCUMENT, END_DOCUMENT, escape_latex
from resume_craft.latex.metadata import metadata_commands
from resume_craft.latex.sections import item_line, item_source_text
from resume_craft.logger import get_logger
from resume_craft.schema import Resume, ResumeBullet, ResumeSectionItem
from resume_craft.utils import collapse_whitespace

logger = get_logger("latex.reconstruct")

INDENT = "  "


class ReconstructionError(ValueError):
    """Raised when a résumé lacks the formatting metadata needed to rebuild LaTeX."""


def bullet_body(bullet: ResumeBullet) -> str:
    """LaTeX for a bullet's body.

    The stored source is reused while it still flattens to the bullet text, so
    inline formatting survives; edited text is escaped instead.
    """
    fmt = bullet.formatting
    text = collapse_whitespace(bullet.text)
    if fmt.latex_source is not None and item_source_text(fmt.latex_item_command, fmt.latex_source) == text:
        return fmt.latex_source
    body = escape_latex(text)
    # A leading "[" would be read as an \item label
    return "{[}" + body[1:] if body.startswith("[") else body


def render_item(item: ResumeSectionItem) -> List[str]:
    """One ``itemize`` block; deeper bullet levels open nested environments.

    A nested list always hangs off an ``\\item`` of its parent list; when the
    parent has none yet (its bullet was empty) a bare ``\\item`` is written.
    """
    lines = ["\\begin{itemize}"]
    has_item = [False]
    for bullet in item.bullets:
        level = max(0, bullet.formatting.level)
        while len(has_item) - 1 < level:
            depth = len(has_item) - 1
            if not has_item[depth]:
                lines.append(INDENT * (depth + 1) + "\\item")
                has_item[depth] = True
            lines.append(INDENT * (depth + 1) + "\\begin{itemize}")
            has_item.append(False)
        while len(has_item) - 1 > level:
            has_item.pop()
            lines.append(INDENT * len(has_item) + "\\end{itemize}")
        lines.append(INDENT * (level + 1) + item_line(bullet.formatting.latex_item_command, bullet_body(bullet)))
        has_item[level] = True
    while len(has_item) > 1:
        has_item.pop()
        lines.append(INDENT * len(has_item) + "\\end{itemize}")
    lines.append("\\end{itemize}")
    return lines


def reconstruct_latex(resume: Resume) -> str:
    """Rebuild a complete LaTeX document from ``resume``.

    Raises:
        ReconstructionError: if ``resume.latex_formatting`` is missing.
    """
    formatting = resume.latex_formatting
    if formatting is None:
        raise ReconstructionError("Cannot reconstruct LaTeX: missing formatting metadata")

    lines: List[str] = [BEGIN_DOCUMENT]
    lines.extend(metadata_commands(resume.metadata))

    for section in resume.sections:
        lines.append("")
        lines.append(f"{section.formatting.latex_command}{{{escape_latex(section.title)}}}")
        for item in section.items:
            if item.bullets:
                lines.extend(render_item(item))

    lines.append("")
    lines.append(END_DOCUMENT)

    logger.debug("Reconstructed %s with %d sections", resume.file_name, len(resume.sections))
    return formatting.preamble + "\n".join(lines) + "\n"
