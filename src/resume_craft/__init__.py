"""Format-preserving résumé parsing and LaTeX reconstruction."""

from resume_craft.latex import ReconstructionError, parse_latex_to_resume, reconstruct_latex
from resume_craft.parsers import parse_document, parse_file
from resume_craft.schema import Resume, ResumeParseResult, SectionType

__all__ = [
    "ReconstructionError",
    "Resume",
    "ResumeParseResult",
    "SectionType",
    "parse_document",
    "parse_file",
    "parse_latex_to_resume",
    "reconstruct_latex",
]
