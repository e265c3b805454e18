"""
Write a résumé back to disk as LaTeX.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from resume_craft.latex.reconstruct import ReconstructionError, reconstruct_latex
from resume_craft.logger import get_logger
from resume_craft.paths import EXPORT_DIR
from resume_craft.schema import Resume

logger = get_logger("export")


def export_latex(resume: Resume, out_dir: Optional[Union[str, Path]] = None) -> Path:
    """Write ``<stem>.tex`` for ``resume`` and return its path.

    When the résumé cannot be reconstructed the original source is written
    instead, so the user still gets a download.
    """
    out_dir = Path(out_dir) if out_dir else EXPORT_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{Path(resume.file_name).stem or 'resume'}.tex"

    try:
        content = reconstruct_latex(resume)
    except ReconstructionError as e:
        logger.warning(f"{e}; exporting original source of {resume.file_name} instead")
        content = resume.raw_source

    out_path.write_text(content, encoding="utf-8")
    logger.info(f"Exported LaTeX to {out_path}")
    return out_path
