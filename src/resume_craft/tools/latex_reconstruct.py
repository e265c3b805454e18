"""
Tool for turning a résumé JSON snapshot back into LaTeX source.
"""
from __future__ import annotations

import json
from typing import Type

from crewai.tools import BaseTool
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from resume_craft.latex.reconstruct import ReconstructionError, reconstruct_latex
from resume_craft.logger import get_logger
from resume_craft.schema import Resume
from resume_craft.utils import clean_markdown_fences

logger = get_logger("tools.latex_reconstruct")


class LatexReconstructInput(BaseModel):
    """Input schema for LatexReconstructTool."""
    resume_json: str = Field(..., description="Resume JSON snapshot as produced by latex_resume_parser.")
    model_config = ConfigDict(extra="ignore")


class LatexReconstructTool(BaseTool):
    """Rebuild LaTeX source from a parsed (and possibly edited) résumé snapshot."""

    name: str = "latex_reconstruct"
    description: str = (
        "Rebuild complete LaTeX source from a resume JSON snapshot. Only bullet text "
        "edits are reflected; the original preamble is replayed unchanged. Returns the "
        "LaTeX text, or a JSON error when the snapshot has no LaTeX formatting."
    )
    args_schema: Type[BaseModel] = LatexReconstructInput

    def _run(self, resume_json: str) -> str:  # type: ignore[override]
        try:
            data = json.loads(clean_markdown_fences(resume_json))
            # Accept the parser tool's envelope as well as a bare snapshot
            if isinstance(data, dict) and "resume" in data and "sections" not in data:
                data = data["resume"]
            resume = Resume.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            return json.dumps({"status": "error", "message": f"Invalid resume snapshot: {e}"})

        try:
            return reconstruct_latex(resume)
        except ReconstructionError as e:
            logger.warning(str(e))
            return json.dumps({"status": "error", "message": str(e)})
