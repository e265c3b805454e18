"""Tests for preamble formatting extraction."""
from resume_craft.latex.formatting import extract_latex_formatting
from resume_craft.schema import LatexFormattingMetadata


def _doc(preamble: str, body: str = "Hello") -> str:
    return preamble + "\\begin{document}\n" + body + "\n\\end{document}\n"


class TestPreamble:
    def test_preamble_is_exact_prefix(self, sample_tex):
        meta = extract_latex_formatting(sample_tex)
        assert meta.preamble == sample_tex[: sample_tex.index("\\begin{document}")]

    def test_document_class_and_options(self, sample_tex):
        meta = extract_latex_formatting(sample_tex)
        assert meta.document_class == "article"
        assert meta.document_class_options == ["11pt", "letterpaper"]

    def test_missing_document_start_keeps_defaults(self):
        meta = extract_latex_formatting(r"\documentclass{moderncv}\usepackage{xcolor} no body")
        assert meta == LatexFormattingMetadata()
        assert meta.preamble == ""

    def test_commented_begin_document_is_ignored(self):
        source = "% \\begin{document}\n\\documentclass{article}\n" + "\\begin{document}x\\end{document}"
        meta = extract_latex_formatting(source)
        assert meta.preamble == "% \\begin{document}\n\\documentclass{article}\n"

    def test_empty_source(self):
        assert extract_latex_formatting("") == LatexFormattingMetadata()


class TestPackages:
    def test_order_and_duplicates_preserved(self):
        source = _doc("\\usepackage{A}\n\\usepackage[option]{B}\n\\usepackage{A}\n")
        packages = extract_latex_formatting(source).packages
        assert [(p.name, p.options) for p in packages] == [("A", []), ("B", ["option"]), ("A", [])]

    def test_comma_separated_names_split(self):
        source = _doc("\\usepackage[utf8]{inputenc,fontenc}\n")
        packages = extract_latex_formatting(source).packages
        assert [(p.name, p.options) for p in packages] == [("inputenc", ["utf8"]), ("fontenc", ["utf8"])]

    def test_malformed_declarations_skipped(self):
        source = _doc("\\usepackage{}\n\\usepackage\n\\usepackage{ok}\n")
        assert [p.name for p in extract_latex_formatting(source).packages] == ["ok"]

    def test_commented_package_not_collected(self, sample_tex):
        names = [p.name for p in extract_latex_formatting(sample_tex).packages]
        assert names == ["geometry", "hyperref", "xcolor"]
        assert "ignoredpackage" not in names


class TestDefinitions:
    def test_custom_commands(self, sample_tex):
        meta = extract_latex_formatting(sample_tex)
        assert meta.custom_commands["\\resumeHeading"] == "\\textbf{\\large #1}"
        assert meta.custom_commands["\\labelitemi"] == "--"

    def test_redefinition_last_wins(self):
        source = _doc("\\newcommand{\\foo}{one}\n\\renewcommand{\\foo}{two}\n")
        assert extract_latex_formatting(source).custom_commands == {"\\foo": "two"}

    def test_unbraced_command_name(self):
        source = _doc("\\newcommand\\sep{\\vspace{2pt}}\n")
        assert extract_latex_formatting(source).custom_commands == {"\\sep": "\\vspace{2pt}"}

    def test_custom_environment(self):
        source = _doc("\\newenvironment{tight}{\\begin{itemize}}{\\end{itemize}}\n")
        assert extract_latex_formatting(source).custom_environments == {"tight": "\\begin{itemize}"}

    def test_geometry_and_colors(self, sample_tex):
        meta = extract_latex_formatting(sample_tex)
        assert meta.geometry == "margin=0.7in"
        assert meta.color_commands == {"accent": "0,90,160"}

    def test_other_preamble_commands(self, sample_tex):
        assert extract_latex_formatting(sample_tex).other_preamble_commands == ["pagestyle"]


class TestUsageFlags:
    def test_font_and_spacing_commands_across_document(self):
        source = _doc("\\usepackage{xcolor}\n", "\\textit{a} \\vspace{4pt} \\textbf{b} \\textit{c} \\medskip")
        meta = extract_latex_formatting(source)
        assert meta.font_commands == ["textit", "textbf"]
        assert meta.spacing_commands == ["vspace", "medskip"]
