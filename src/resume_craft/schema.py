"""
Résumé document model and result payload schemas.

The ``Resume`` aggregate and its parts are pydantic models so a parsed résumé
can be snapshotted to JSON (``model_dump(mode="json")``) and restored with
``Resume.model_validate``. Result payloads returned by the compile client and
tools are plain ``TypedDict`` shapes.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field

BULLET_INDENT_UNIT = 20


def new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Section categories
# ============================================================================

class SectionType(str, Enum):
    """Closed set of semantic section categories."""
    SUMMARY = "summary"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    SKILLS = "skills"
    PROJECTS = "projects"
    CERTIFICATIONS = "certifications"
    AWARDS = "awards"
    PUBLICATIONS = "publications"
    CUSTOM = "custom"


# ============================================================================
# LaTeX formatting metadata
# ============================================================================

class LatexPackage(BaseModel):
    """One ``\\usepackage`` declaration."""
    name: str
    options: List[str] = Field(default_factory=list)


class LatexFormattingMetadata(BaseModel):
    """Preamble-level facts needed to rebuild a LaTeX résumé."""
    document_class: str = "article"
    document_class_options: List[str] = Field(default_factory=list)
    packages: List[LatexPackage] = Field(default_factory=list)
    custom_commands: Dict[str, str] = Field(default_factory=dict)
    custom_environments: Dict[str, str] = Field(default_factory=dict)
    preamble: str = ""
    font_commands: List[str] = Field(default_factory=list)
    spacing_commands: List[str] = Field(default_factory=list)
    color_commands: Dict[str, str] = Field(default_factory=dict)
    geometry: Optional[str] = None
    other_preamble_commands: List[str] = Field(default_factory=list)


# ============================================================================
# Résumé content
# ============================================================================

class ResumeMetadata(BaseModel):
    """Contact information. Only ``name`` is always present."""
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    # Field name -> command name, for fields written as a command inside the body
    body_commands: Dict[str, str] = Field(default_factory=dict)


class InlineFormatting(BaseModel):
    """Inline formatting observed inside a bullet."""
    latex_commands: List[str] = Field(default_factory=list)
    hyperlink: Optional[str] = None


class BulletFormatting(BaseModel):
    level: int = 0
    indent: int = 0
    latex_item_command: str = "\\item"
    latex_source: Optional[str] = None
    text_formatting: InlineFormatting = Field(default_factory=InlineFormatting)


class ResumeBullet(BaseModel):
    id: str = Field(default_factory=new_id)
    text: str
    optimized: bool = False
    original_text: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    formatting: BulletFormatting = Field(default_factory=BulletFormatting)


class ResumeSectionItem(BaseModel):
    """One list environment's bullets (e.g. one job entry)."""
    id: str = Field(default_factory=new_id)
    bullets: List[ResumeBullet] = Field(default_factory=list)
    editable: bool = True


class SectionFormatting(BaseModel):
    latex_command: str = "\\section"


class ResumeSection(BaseModel):
    id: str = Field(default_factory=new_id)
    type: SectionType = SectionType.CUSTOM
    title: str
    locked: bool = False
    formatting: SectionFormatting = Field(default_factory=SectionFormatting)
    items: List[ResumeSectionItem] = Field(default_factory=list)

    def iter_bullets(self):
        for item in self.items:
            yield from item.bullets


class Resume(BaseModel):
    """Root aggregate for one uploaded document."""
    id: str = Field(default_factory=new_id)
    source_format: Literal["latex", "docx"]
    file_name: str
    metadata: ResumeMetadata = Field(default_factory=ResumeMetadata)
    sections: List[ResumeSection] = Field(default_factory=list)
    raw_source: str = ""
    latex_formatting: Optional[LatexFormattingMetadata] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    model_config = ConfigDict(validate_assignment=True)

    def iter_bullets(self):
        for section in self.sections:
            yield from section.iter_bullets()

    def find_bullet(self, bullet_id: str) -> Optional[ResumeBullet]:
        for bullet in self.iter_bullets():
            if bullet.id == bullet_id:
                return bullet
        return None


class ResumeParseResult(BaseModel):
    success: bool
    resume: Optional[Resume] = None
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


# ============================================================================
# Payload shapes
# ============================================================================

class CompileResult(TypedDict, total=False):
    """Result of a remote LaTeX compilation."""
    success: bool
    pdf_bytes: Optional[bytes]
    error: Optional[str]
    log: Optional[str]
    errors: List[str]


class LatexLogSummary(TypedDict):
    """Errors and warnings pulled out of a compiler log."""
    errors: List[str]
    warnings: List[str]
    line_numbers: List[int]
