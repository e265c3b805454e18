"""
Client for the LaTeX.Online remote compilation service.

``smart_compile`` validates the source locally, sends short documents as a
GET query and falls back to a multipart POST upload. Transport and HTTP
failures are returned as failed ``CompileResult`` dicts rather than raised.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

import requests

from resume_craft.config import Settings
from resume_craft.latex.core import strip_latex_comments
from resume_craft.logger import get_logger
from resume_craft.schema import CompileResult, LatexLogSummary

logger = get_logger("compile_client")

GET_SOURCE_LIMIT = 8000
UPLOAD_FILE_NAME = "resume.tex"

_LINE_NUMBER_RE = re.compile(r"l\.(\d+)")


def validate_latex_source(source: str) -> Tuple[bool, List[str]]:
    """Check for mistakes that would stop compilation before sending anything."""
    errors: List[str] = []
    source = source or ""

    if "\\documentclass" not in source:
        errors.append("Missing \\documentclass command")
    if "\\begin{document}" not in source:
        errors.append("Missing \\begin{document}")
    if "\\end{document}" not in source:
        errors.append("Missing \\end{document}")

    code = strip_latex_comments(source)
    open_braces = len(re.findall(r"(?<!\\)\{", code))
    close_braces = len(re.findall(r"(?<!\\)\}", code))
    if open_braces != close_braces:
        errors.append(f"Unbalanced braces: {open_braces} open, {close_braces} closed")

    begins = len(re.findall(r"\\begin\{", code))
    ends = len(re.findall(r"\\end\{", code))
    if begins != ends:
        errors.append(f"Unbalanced environments: {begins} \\begin, {ends} \\end")

    return not errors, errors


def parse_latex_log(log: str) -> LatexLogSummary:
    """Pull errors, warnings and referenced line numbers out of a TeX log."""
    errors: List[str] = []
    warnings: List[str] = []
    line_numbers: List[int] = []

    for line in (log or "").splitlines():
        if line.startswith("!"):
            errors.append(line[1:].strip())
        m = _LINE_NUMBER_RE.search(line)
        if m:
            line_numbers.append(int(m.group(1)))
        if "warning" in line.lower():
            warnings.append(line.strip())

    return {"errors": errors, "warnings": warnings, "line_numbers": line_numbers}


def _failed(error: str, log: Optional[str] = None) -> CompileResult:
    result: CompileResult = {"success": False, "pdf_bytes": None, "error": error, "log": log}
    if log:
        result["errors"] = parse_latex_log(log)["errors"]
    return result


class LatexOnlineClient:
    """Thin ``requests`` wrapper around the LaTeX.Online compile endpoint."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session=None):
        settings = Settings.from_env() if base_url is None or timeout is None else None
        self.base_url = base_url or settings.compile_url
        self.timeout = timeout if timeout is not None else settings.compile_timeout
        self.session = session or requests.Session()

    def _handle_response(self, response, method: str) -> CompileResult:
        if response.status_code != 200:
            log = response.text
            logger.error(f"Compilation failed ({method}, HTTP {response.status_code})")
            return _failed("LaTeX compilation failed. Check your LaTeX syntax.", log)

        pdf_bytes = response.content
        if not pdf_bytes.startswith(b"%PDF"):
            logger.error(f"Compilation service ({method}) returned a non-PDF response")
            return _failed("Compilation service did not return a PDF", response.text[:2000])

        logger.info(f"Compilation successful ({method}): {len(pdf_bytes)} bytes")
        return {"success": True, "pdf_bytes": pdf_bytes, "error": None, "log": None}

    def compile(self, source: str) -> CompileResult:
        """Compile by sending the source as the ``text`` query parameter."""
        logger.info("Starting LaTeX compilation (GET)")
        try:
            response = self.session.get(self.base_url, params={"text": source}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Compilation request failed: {e}")
            return _failed(str(e))
        return self._handle_response(response, "GET")

    def compile_post(self, source: str) -> CompileResult:
        """Compile by uploading the source as ``resume.tex``."""
        logger.info("Starting LaTeX compilation (POST)")
        files = {"file": (UPLOAD_FILE_NAME, source.encode("utf-8"), "text/x-tex")}
        try:
            response = self.session.post(self.base_url, files=files, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Compilation request failed: {e}")
            return _failed(str(e))
        return self._handle_response(response, "POST")

    def smart_compile(self, source: str, validate: bool = True) -> CompileResult:
        """Validate, try GET for short sources, and fall back to POST."""
        if validate:
            valid, errors = validate_latex_source(source)
            if not valid:
                logger.warning(f"Validation failed: {errors}")
                result = _failed("LaTeX validation failed: " + ", ".join(errors))
                result["errors"] = errors
                return result

        if len(source) < GET_SOURCE_LIMIT:
            result = self.compile(source)
            if result["success"]:
                return result
            logger.warning("GET compilation failed, trying POST")

        return self.compile_post(source)
