"""
LaTeX résumé parse entry point.

Runs the formatting, metadata and section extractors over one source string
and assembles a ``Resume``. Extractors degrade silently on malformed input;
anything unexpected is caught here and returned as a failed result.
"""
from __future__ import annotations

from resume_craft.latex.formatting import extract_latex_formatting
from resume_craft.latex.metadata import extract_metadata
from resume_craft.latex.nodes import find_environment, parse_latex
from resume_craft.latex.sections import extract_sections
from resume_craft.logger import get_logger
from resume_craft.schema import Resume, ResumeParseResult

logger = get_logger("latex.parser")


def parse_latex_to_resume(raw_source: str, file_name: str) -> ResumeParseResult:
    """Parse LaTeX source into a ``Resume`` wrapped in a ``ResumeParseResult``."""
    warnings = []
    try:
        logger.info(f"Parsing LaTeX résumé: {file_name} ({len(raw_source)} chars)")
        nodes = parse_latex(raw_source)

        formatting = extract_latex_formatting(raw_source, nodes)
        metadata = extract_metadata(raw_source)

        document = find_environment(nodes, "document")
        if document is None:
            warnings.append("No \\begin{document} found; the whole source was treated as the body")
            body_nodes = nodes
        else:
            body_nodes = document.children
        sections = extract_sections(body_nodes)

        if not sections:
            warnings.append("No sections found")

        resume = Resume(
            source_format="latex",
            file_name=file_name,
            metadata=metadata,
            sections=sections,
            raw_source=raw_source,
            latex_formatting=formatting,
        )
        logger.info(
            f"Parsed {file_name}: {len(sections)} sections, "
            f"{len(formatting.packages)} packages"
        )
        return ResumeParseResult(success=True, resume=resume, warnings=warnings)
    except Exception as e:
        logger.error(f"Failed to parse {file_name}: {e}", exc_info=True)
        return ResumeParseResult(success=False, error=str(e) or type(e).__name__, warnings=warnings)
