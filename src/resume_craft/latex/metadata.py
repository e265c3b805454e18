"""
Contact metadata extraction.

``METADATA_FIELDS`` is the single table of logical fields and the LaTeX
commands / raw-text forms that carry them. The same table drives extraction
(``extract_metadata``) and re-emission (``metadata_commands``), so a field can
only be written back under a command it could have been read from.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from resume_craft.latex.core import find_document_start, is_commented
from resume_craft.logger import get_logger
from resume_craft.schema import ResumeMetadata
from resume_craft.utils import extract_braces

logger = get_logger("latex.metadata")


@dataclass(frozen=True)
class MetadataField:
    name: str
    commands: Tuple[str, ...]
    text_pattern: Optional[Pattern] = None

    @property
    def command_pattern(self) -> Pattern:
        return re.compile(r"\\(" + "|".join(self.commands) + r")(?![A-Za-z@])\s*(?=\{)")


METADATA_FIELDS: Tuple[MetadataField, ...] = (
    MetadataField("name", ("name", "author")),
    MetadataField("email", ("email",), re.compile(r"mailto:([^}\s]+)")),
    MetadataField("phone", ("phone", "mobile"), re.compile(r"tel:([^}\s]+)")),
    MetadataField("linkedin", ("linkedin",), re.compile(r"linkedin\.com/in/([^}\s/]+)")),
    MetadataField("github", ("github",), re.compile(r"github\.com/([^}\s/]+)")),
    MetadataField("website", ("homepage", "website"), re.compile(r"\\url\{([^}]+)\}")),
    MetadataField("address", ("address", "location")),
)

# Plain-text forms used for documents without LaTeX commands (DOCX)
EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
PHONE_RE = re.compile(r"\+?\(?\d[\d\s().-]{7,}\d")


@dataclass
class _Match:
    position: int
    value: str
    command: Optional[str] = None


def _first_command_match(source: str, field: MetadataField) -> Optional[_Match]:
    for m in field.command_pattern.finditer(source):
        if is_commented(source, m.start()):
            continue
        value, _ = extract_braces(source, m.end())
        if value and value.strip():
            return _Match(m.start(), value.strip(), m.group(1))
    return None


def _first_text_match(source: str, pattern: Optional[Pattern], latex: bool = True) -> Optional[_Match]:
    if pattern is None:
        return None
    for m in pattern.finditer(source):
        if latex and is_commented(source, m.start()):
            continue
        value = m.group(1).strip()
        if value:
            return _Match(m.start(), value)
    return None


def extract_metadata(source: str) -> ResumeMetadata:
    """Scan raw LaTeX for contact fields; the earliest match of each field wins."""
    source = source or ""
    body_start = find_document_start(source) or 0
    metadata = ResumeMetadata()

    for field in METADATA_FIELDS:
        candidates = [
            m for m in (_first_command_match(source, field), _first_text_match(source, field.text_pattern))
            if m is not None
        ]
        if not candidates:
            continue
        # Ties go to the command form, which is listed first
        best = min(candidates, key=lambda m: m.position)
        setattr(metadata, field.name, best.value)
        if best.command and best.position >= body_start:
            metadata.body_commands[field.name] = best.command

    logger.debug(
        "Extracted metadata fields: %s",
        [f.name for f in METADATA_FIELDS if getattr(metadata, f.name)],
    )
    return metadata


def extract_contact_text(text: str, metadata: Optional[ResumeMetadata] = None) -> ResumeMetadata:
    """Fill contact fields from plain document text using the raw-text forms."""
    metadata = metadata or ResumeMetadata()
    text = text or ""
    for field in METADATA_FIELDS:
        if getattr(metadata, field.name):
            continue
        found = _first_text_match(text, field.text_pattern, latex=False)
        if found:
            setattr(metadata, field.name, found.value)

    if not metadata.email:
        m = EMAIL_RE.search(text)
        if m:
            metadata.email = m.group(0)
    if not metadata.phone:
        m = PHONE_RE.search(text)
        if m:
            metadata.phone = m.group(0).strip()
    return metadata


def metadata_commands(metadata: ResumeMetadata) -> List[str]:
    """LaTeX lines re-emitting the fields that were written as body commands."""
    lines = []
    for field in METADATA_FIELDS:
        command = metadata.body_commands.get(field.name)
        value = getattr(metadata, field.name)
        if command and command in field.commands and value:
            lines.append(f"\\{command}{{{value}}}")
    return lines
