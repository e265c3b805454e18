"""Tests for the parse entry points and format routing."""
import json

from resume_craft.latex import parser as latex_parser
from resume_craft.latex.parser import parse_latex_to_resume
from resume_craft.parsers import detect_format, parse_document, parse_file
from resume_craft.schema import Resume


class TestParseLatex:
    def test_successful_parse(self, sample_tex):
        result = parse_latex_to_resume(sample_tex, "jane.tex")
        assert result.success
        assert result.error is None
        resume = result.resume
        assert resume.source_format == "latex"
        assert resume.file_name == "jane.tex"
        assert resume.raw_source == sample_tex
        assert resume.latex_formatting is not None
        assert len(resume.sections) == 4

    def test_unique_ids(self, sample_resume):
        ids = [sample_resume.id] + [s.id for s in sample_resume.sections]
        ids += [b.id for b in sample_resume.iter_bullets()]
        assert len(ids) == len(set(ids))

    def test_missing_document_start_is_degraded_not_fatal(self):
        result = parse_latex_to_resume("\\section{Skills}\n\\begin{itemize}\\item Go\\end{itemize}", "frag.tex")
        assert result.success
        assert result.resume.latex_formatting.preamble == ""
        assert result.resume.sections[0].items[0].bullets[0].text == "Go"
        assert any("begin{document}" in w for w in result.warnings)

    def test_unexpected_exception_becomes_failed_result(self, monkeypatch):
        def boom(source):
            raise RuntimeError("tokenizer exploded")

        monkeypatch.setattr(latex_parser, "extract_metadata", boom)
        result = parse_latex_to_resume("\\begin{document}\\end{document}", "x.tex")
        assert result.success is False
        assert result.resume is None
        assert "tokenizer exploded" in result.error

    def test_snapshot_round_trip(self, sample_resume):
        snapshot = json.loads(json.dumps(sample_resume.model_dump(mode="json")))
        restored = Resume.model_validate(snapshot)
        assert restored == sample_resume


class TestRouting:
    def test_detect_format_by_extension(self):
        assert detect_format("cv.TEX") == "latex"
        assert detect_format("cv.docx") == "docx"
        assert detect_format("cv.pdf") is None

    def test_detect_format_by_content(self):
        assert detect_format("upload", "\\documentclass{article}") == "latex"
        assert detect_format("upload", b"PK\x03\x04rest") == "docx"
        assert detect_format("upload", "plain words") is None

    def test_parse_document_routes_latex_bytes(self, sample_tex):
        result = parse_document(sample_tex.encode("utf-8"), "jane.tex")
        assert result.success
        assert result.resume.metadata.name == "Jane Doe"

    def test_unsupported_format_is_failed_result(self):
        result = parse_document("hello", "notes.txt")
        assert result.success is False
        assert "Unsupported file format" in result.error


class TestParseFile:
    def test_parse_file(self, make_tex, sample_tex):
        path = make_tex("resume.tex", sample_tex)
        result = parse_file(path, max_bytes=1024 * 1024)
        assert result.success
        assert result.resume.file_name == "resume.tex"

    def test_size_limit(self, make_tex, sample_tex):
        path = make_tex("resume.tex", sample_tex)
        result = parse_file(path, max_bytes=100)
        assert result.success is False
        assert "too large" in result.error

    def test_missing_file(self, tmp_path):
        result = parse_file(tmp_path / "missing.tex", max_bytes=1024)
        assert result.success is False
        assert "not found" in result.error

    def test_unsupported_extension(self, make_tex):
        path = make_tex("resume.md", "# Jane")
        result = parse_file(path, max_bytes=1024)
        assert result.success is False
        assert "Unsupported" in result.error
