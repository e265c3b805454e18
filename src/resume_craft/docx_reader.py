"""
Read DOCX résumés into the same ``Resume`` shape as LaTeX sources.

Headings (or short all-bold lines) open sections, list paragraphs become
bullets of the current item and any other paragraph closes that item. DOCX
résumés carry no LaTeX formatting, so they cannot be reconstructed.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import IO, List, Optional, Union

from docx import Document

from resume_craft.latex.classifier import classify_section_type
from resume_craft.latex.metadata import extract_contact_text
from resume_craft.logger import get_logger
from resume_craft.schema import (
    BULLET_INDENT_UNIT,
    BulletFormatting,
    Resume,
    ResumeBullet,
    ResumeMetadata,
    ResumeParseResult,
    ResumeSection,
    ResumeSectionItem,
    SectionFormatting,
)
from resume_craft.utils import collapse_whitespace

logger = get_logger("docx_reader")

MAX_BOLD_HEADING_WORDS = 6
_LIST_STYLE_LEVEL_RE = re.compile(r"(\d+)\s*$")


def _style_name(paragraph) -> str:
    style = paragraph.style
    return style.name if style is not None and style.name else ""


def _is_heading(paragraph, text: str) -> bool:
    if _style_name(paragraph).startswith("Heading"):
        return True
    runs = [r for r in paragraph.runs if r.text.strip()]
    return bool(runs) and all(r.bold for r in runs) and len(text.split()) <= MAX_BOLD_HEADING_WORDS


def _list_level(paragraph) -> Optional[int]:
    """Nesting level of a list paragraph, or None when it is not a list item."""
    p_pr = paragraph._p.pPr
    num_pr = p_pr.numPr if p_pr is not None else None
    if num_pr is not None:
        ilvl = num_pr.ilvl
        return int(ilvl.val) if ilvl is not None and ilvl.val is not None else 0

    style = _style_name(paragraph)
    if style.startswith("List"):
        m = _LIST_STYLE_LEVEL_RE.search(style)
        return int(m.group(1)) - 1 if m else 0
    return None


def parse_docx_to_resume(source: Union[str, Path, IO[bytes]], file_name: str) -> ResumeParseResult:
    """Parse a DOCX file (path or binary stream) into a ``Resume``."""
    try:
        document = Document(str(source) if isinstance(source, Path) else source)
    except Exception as e:
        logger.error(f"Could not open DOCX {file_name}: {e}", exc_info=True)
        return ResumeParseResult(success=False, error=f"Could not read DOCX file: {e}")

    warnings: List[str] = []
    sections: List[ResumeSection] = []
    current: Optional[ResumeSection] = None
    item: Optional[ResumeSectionItem] = None
    name = ""
    text_lines: List[str] = []

    for paragraph in document.paragraphs:
        text = collapse_whitespace(paragraph.text)
        if not text:
            continue
        text_lines.append(text)

        # The first line above any section (or a Title paragraph) is the name
        style = _style_name(paragraph)
        if not name and (style == "Title" or (current is None and not style.startswith("Heading"))):
            name = text
            continue

        level = _list_level(paragraph)
        if level is not None:
            if current is None:
                logger.debug("Skipping list paragraph before the first section")
                continue
            if item is None:
                item = ResumeSectionItem()
                current.items.append(item)
            item.bullets.append(ResumeBullet(
                text=text,
                formatting=BulletFormatting(level=level, indent=level * BULLET_INDENT_UNIT),
            ))
            continue

        item = None
        if _is_heading(paragraph, text):
            current = ResumeSection(
                type=classify_section_type(text),
                title=text,
                formatting=SectionFormatting(latex_command=""),
            )
            sections.append(current)

    if not sections:
        warnings.append("No sections found")

    metadata = extract_contact_text("\n".join(text_lines), ResumeMetadata(name=name))
    resume = Resume(
        source_format="docx",
        file_name=file_name,
        metadata=metadata,
        sections=sections,
        raw_source="\n".join(text_lines),
    )
    logger.info(f"Parsed DOCX {file_name}: {len(sections)} sections")
    return ResumeParseResult(success=True, resume=resume, warnings=warnings)
