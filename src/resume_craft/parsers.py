"""
Format detection and routing for uploaded résumé documents.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Union

from resume_craft.config import Settings
from resume_craft.docx_reader import parse_docx_to_resume
from resume_craft.latex.parser import parse_latex_to_resume
from resume_craft.logger import get_logger
from resume_craft.schema import ResumeParseResult

logger = get_logger("parsers")

SUPPORTED_EXTENSIONS = {".tex": "latex", ".docx": "docx"}


def detect_format(file_name: str, content: Union[str, bytes, None] = None) -> Optional[str]:
    """Return "latex", "docx" or None, by extension first and content second."""
    fmt = SUPPORTED_EXTENSIONS.get(Path(file_name).suffix.lower())
    if fmt or content is None:
        return fmt
    if isinstance(content, bytes):
        if content.startswith(b"PK"):
            return "docx"
        content = content.decode("utf-8", errors="replace")
    if "\\documentclass" in content or "\\begin{document}" in content:
        return "latex"
    return None


def parse_document(raw_source: Union[str, bytes], file_name: str) -> ResumeParseResult:
    """Parse one uploaded document; unsupported input yields a failed result."""
    fmt = detect_format(file_name, raw_source)
    if fmt == "latex":
        if isinstance(raw_source, bytes):
            raw_source = raw_source.decode("utf-8", errors="replace")
        return parse_latex_to_resume(raw_source, file_name)
    if fmt == "docx":
        if isinstance(raw_source, str):
            return ResumeParseResult(success=False, error="DOCX content must be provided as bytes")
        return parse_docx_to_resume(io.BytesIO(raw_source), file_name)

    logger.warning(f"Unsupported file format: {file_name}")
    return ResumeParseResult(
        success=False,
        error=f"Unsupported file format: {Path(file_name).suffix or file_name}. "
              f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
    )


def parse_file(path: Union[str, Path], max_bytes: Optional[int] = None) -> ResumeParseResult:
    """Read and parse a résumé file from disk, enforcing the upload size limit."""
    path = Path(path)
    if max_bytes is None:
        max_bytes = Settings.from_env().max_upload_bytes

    if not path.exists():
        return ResumeParseResult(success=False, error=f"File not found: {path}")
    if Path(path.name).suffix.lower() not in SUPPORTED_EXTENSIONS:
        return ResumeParseResult(
            success=False,
            error=f"Unsupported file format: {path.suffix or path.name}",
        )

    size = path.stat().st_size
    if size > max_bytes:
        logger.warning(f"Rejected {path.name}: {size} bytes exceeds limit of {max_bytes}")
        return ResumeParseResult(
            success=False,
            error=f"File too large: {size} bytes (limit {max_bytes // (1024 * 1024)}MB)",
        )

    try:
        data = path.read_bytes()
    except OSError as e:
        logger.error(f"Could not read {path}: {e}")
        return ResumeParseResult(success=False, error=f"Could not read file: {e}")
    return parse_document(data, path.name)
