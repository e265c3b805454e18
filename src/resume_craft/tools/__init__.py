# Agent tools over the parse / reconstruct core
from .latex_resume_parser import LatexResumeParserTool
from .latex_reconstruct import LatexReconstructTool

__all__ = [
    "LatexResumeParserTool",
    "LatexReconstructTool",
]
