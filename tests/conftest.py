import sys
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture(scope="session", autouse=True)
def add_src_to_path() -> None:
    project_root = Path(__file__).resolve().parents[1]
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def make_tex(tmp_path: Path) -> Callable[[str, str], Path]:
    def _make_tex(filename: str, content: str) -> Path:
        path = tmp_path / filename
        path.write_text(content, encoding="utf-8")
        return path

    return _make_tex


SAMPLE_PREAMBLE = r"""\documentclass[11pt,letterpaper]{article}
\usepackage{geometry}
\usepackage{hyperref}
\usepackage[usenames,dvipsnames]{xcolor}
% \usepackage{ignoredpackage}
\geometry{margin=0.7in}
\definecolor{accent}{RGB}{0,90,160}
\newcommand{\resumeHeading}[1]{\textbf{\large #1}}
\renewcommand{\labelitemi}{--}
\pagestyle{empty}

"""

SAMPLE_BODY = r"""\begin{document}
\name{Jane Doe}
\email{jane@example.com}
\phone{555-123-4567}
\href{https://linkedin.com/in/janedoe}{LinkedIn}

\section{Summary}
Backend engineer with eight years of experience.

\section*{Work Experience}
\textbf{Acme Corp} \hfill 2019--Present
\begin{itemize}
  \item Led migration of \textbf{billing} services to Kubernetes % 40 services
  \item Reduced latency by 35\% for 2M daily requests
  \begin{itemize}
    \item Introduced request caching
  \end{itemize}
\end{itemize}

\section{Education}
\begin{itemize}
  \item B.S. Computer Science, State University
\end{itemize}

\section{Skills}
\begin{itemize}
  \item Python, Go, SQL
  \item
\end{itemize}
\end{document}
"""

SAMPLE_TEX = SAMPLE_PREAMBLE + SAMPLE_BODY


@pytest.fixture
def sample_tex() -> str:
    return SAMPLE_TEX


@pytest.fixture
def sample_resume(sample_tex):
    from resume_craft.latex.parser import parse_latex_to_resume

    result = parse_latex_to_resume(sample_tex, "jane_doe.tex")
    assert result.success, result.error
    return result.resume
