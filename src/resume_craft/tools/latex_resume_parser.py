"""
Tool for parsing an uploaded résumé (LaTeX or DOCX) into the structured
document model. Returns the JSON snapshot agents hand to later tools.
"""
from __future__ import annotations

import json
from typing import Type

from crewai.tools import BaseTool
from pydantic import BaseModel, ConfigDict, Field

from resume_craft.logger import get_logger
from resume_craft.parsers import parse_file
from resume_craft.paths import resolve_under_root

logger = get_logger("tools.latex_resume_parser")


class LatexResumeParserInput(BaseModel):
    """Input schema for LatexResumeParserTool."""
    resume_path: str = Field(..., description="Path to the resume file (.tex or .docx) to parse.")
    model_config = ConfigDict(extra="ignore")


class LatexResumeParserTool(BaseTool):
    """
    Parse a LaTeX or DOCX résumé into sections, items and bullets while keeping
    the LaTeX formatting needed to rebuild it.
    """

    name: str = "latex_resume_parser"
    description: str = (
        "Parse a resume file (.tex or .docx) into a structured JSON snapshot with "
        "metadata, sections, items and bullets. LaTeX formatting is preserved so the "
        "snapshot can later be turned back into LaTeX with latex_reconstruct."
    )
    args_schema: Type[BaseModel] = LatexResumeParserInput

    def _run(self, resume_path: str) -> str:  # type: ignore[override]
        try:
            path = resolve_under_root(resume_path)
        except ValueError as e:
            return json.dumps({"status": "error", "message": str(e)})

        result = parse_file(path)
        if not result.success:
            logger.warning(f"Parse failed for {path}: {result.error}")
            return json.dumps({"status": "error", "message": result.error, "warnings": result.warnings})

        return json.dumps({
            "status": "success",
            "warnings": result.warnings,
            "resume": result.resume.model_dump(mode="json"),
        })
