"""Tests for section / item / bullet extraction."""
from resume_craft.latex.nodes import find_environment, parse_latex
from resume_craft.latex.sections import extract_sections
from resume_craft.schema import SectionType


def _sections(body: str):
    document = find_environment(parse_latex("\\begin{document}\n" + body + "\n\\end{document}"), "document")
    return extract_sections(document.children)


class TestSampleResume:
    def test_section_titles_commands_and_types(self, sample_resume):
        summary = [(s.title, s.formatting.latex_command, s.type) for s in sample_resume.sections]
        assert summary == [
            ("Summary", "\\section", SectionType.SUMMARY),
            ("Work Experience", "\\section*", SectionType.EXPERIENCE),
            ("Education", "\\section", SectionType.EDUCATION),
            ("Skills", "\\section", SectionType.SKILLS),
        ]

    def test_section_without_list_has_no_items(self, sample_resume):
        assert sample_resume.sections[0].items == []

    def test_bullet_text_is_flattened(self, sample_resume):
        bullets = sample_resume.sections[1].items[0].bullets
        assert [b.text for b in bullets] == [
            "Led migration of billing services to Kubernetes",
            "Reduced latency by 35% for 2M daily requests",
            "Introduced request caching",
        ]

    def test_nesting_levels(self, sample_resume):
        bullets = sample_resume.sections[1].items[0].bullets
        assert [b.formatting.level for b in bullets] == [0, 0, 1]
        assert [b.formatting.indent for b in bullets] == [0, 0, 20]

    def test_bullet_formatting_retains_source(self, sample_resume):
        bullet = sample_resume.sections[1].items[0].bullets[0]
        assert bullet.formatting.latex_item_command == "\\item"
        assert bullet.formatting.latex_source == "Led migration of \\textbf{billing} services to Kubernetes"
        assert bullet.formatting.text_formatting.latex_commands == ["textbf"]
        assert bullet.optimized is False

    def test_empty_bullets_dropped(self, sample_resume):
        skills = sample_resume.sections[3]
        assert [b.text for b in skills.iter_bullets()] == ["Python, Go, SQL"]


class TestOwnership:
    def test_section_command_with_space_before_title(self):
        sections = _sections("\\section {Skills}\n\\begin{itemize}\\item Go\\end{itemize}")
        assert [(s.title, s.type) for s in sections] == [("Skills", SectionType.SKILLS)]
        assert [b.text for b in sections[0].iter_bullets()] == ["Go"]

    def test_lists_attach_to_most_recent_section(self):
        sections = _sections(
            "\\section{Experience}\n\\begin{itemize}\\item A\\end{itemize}\n"
            "\\begin{itemize}\\item B\\end{itemize}\n"
            "\\section{Projects}\n\\begin{enumerate}\\item C\\end{enumerate}"
        )
        assert [len(s.items) for s in sections] == [2, 1]
        assert sections[1].items[0].bullets[0].text == "C"

    def test_list_before_first_section_skipped(self):
        sections = _sections("\\begin{itemize}\\item orphan\\end{itemize}\n\\section{Skills}")
        assert len(sections) == 1
        assert sections[0].items == []

    def test_list_nested_in_other_environment_found(self):
        sections = _sections(
            "\\section{Experience}\n\\begin{minipage}{\\textwidth}"
            "\\begin{itemize}\\item Inside\\end{itemize}\\end{minipage}"
        )
        assert sections[0].items[0].bullets[0].text == "Inside"

    def test_subsections_open_sections(self):
        sections = _sections("\\section{Projects}\n\\subsection{Compiler}\n\\begin{itemize}\\item Wrote it\\end{itemize}")
        assert [s.formatting.latex_command for s in sections] == ["\\section", "\\subsection"]
        assert sections[0].items == []
        assert sections[1].type == SectionType.CUSTOM

    def test_list_with_only_empty_items_not_emitted(self):
        sections = _sections("\\section{Awards}\n\\begin{itemize}\\item \\item % nothing\n\\end{itemize}")
        assert sections[0].items == []


class TestBullets:
    def test_two_level_nesting(self):
        sections = _sections(
            "\\section{Experience}\n\\begin{itemize}\n\\item Outer\n"
            "\\begin{itemize}\n\\item Inner\n\\end{itemize}\n\\end{itemize}"
        )
        bullets = sections[0].items[0].bullets
        assert [(b.text, b.formatting.level) for b in bullets] == [("Outer", 0), ("Inner", 1)]

    def test_item_label_included_in_text(self):
        sections = _sections("\\section{Skills}\n\\begin{itemize}\\item[Languages:] Python\\end{itemize}")
        bullet = sections[0].items[0].bullets[0]
        assert bullet.text == "Languages: Python"
        assert bullet.formatting.latex_item_command == "\\item"
        assert bullet.formatting.latex_source == "[Languages:] Python"

    def test_group_after_item_runs_into_text(self):
        sections = _sections("\\section{Skills}\n\\begin{itemize}\\item {\\bf Go}lang tools\\end{itemize}")
        bullet = sections[0].items[0].bullets[0]
        assert bullet.text == "Golang tools"
        assert bullet.formatting.latex_source == "{\\bf Go}lang tools"

    def test_hyperlink_recorded(self):
        sections = _sections(
            "\\section{Projects}\n\\begin{itemize}\\item Built \\href{https://x.dev}{\\textit{X}}\\end{itemize}"
        )
        fmt = sections[0].items[0].bullets[0].formatting.text_formatting
        assert fmt.hyperlink == "https://x.dev"
        assert fmt.latex_commands == ["href", "textit"]

    def test_whitespace_collapsed(self):
        sections = _sections("\\section{Skills}\n\\begin{itemize}\\item   Go,\n    Rust\\end{itemize}")
        assert sections[0].items[0].bullets[0].text == "Go, Rust"
