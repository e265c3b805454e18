"""
LaTeX parse / reconstruct modules for resume craft.

This package contains:
- nodes: Tolerant LaTeX tokenizer and node tree
- core: Comment, escaping and document-marker helpers
- formatting / metadata / sections: Extractors over one source
- classifier: Section title categories
- reconstruct: LaTeX regeneration from a Resume
- parser: Parse entry point
"""

from .classifier import classify_section_type
from .core import escape_latex
from .formatting import extract_latex_formatting
from .metadata import METADATA_FIELDS, extract_metadata
from .parser import parse_latex_to_resume
from .reconstruct import ReconstructionError, reconstruct_latex
from .sections import extract_sections

__all__ = [
    'classify_section_type',
    'escape_latex',
    'extract_latex_formatting',
    'METADATA_FIELDS',
    'extract_metadata',
    'parse_latex_to_resume',
    'ReconstructionError',
    'reconstruct_latex',
    'extract_sections',
]
