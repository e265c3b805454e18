"""Map section titles onto the closed set of section categories."""

from __future__ import annotations

from typing import Tuple

from resume_craft.schema import SectionType

# Ordered: the first rule with a matching keyword wins
SECTION_RULES: Tuple[Tuple[SectionType, Tuple[str, ...]], ...] = (
    (SectionType.EXPERIENCE, ("experience", "work", "employment")),
    (SectionType.EDUCATION, ("education",)),
    (SectionType.SKILLS, ("skill",)),
    (SectionType.PROJECTS, ("project",)),
    (SectionType.CERTIFICATIONS, ("certification",)),
    (SectionType.AWARDS, ("award", "honor")),
    (SectionType.PUBLICATIONS, ("publication",)),
    (SectionType.SUMMARY, ("summary", "objective", "profile")),
)


def classify_section_type(title: str) -> SectionType:
    """Classify a section title by case-insensitive keyword containment."""
    title_lower = (title or "").lower()
    for section_type, keywords in SECTION_RULES:
        if any(keyword in title_lower for keyword in keywords):
            return section_type
    return SectionType.CUSTOM
