"""
Extract preamble-level formatting facts from a LaTeX résumé.

The preamble itself is kept verbatim (it is what reconstruction replays); the
structured fields collected here describe it for the UI and for tools, and
are filled on a best-effort basis. Unrecognized or malformed declarations are
skipped without error.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from resume_craft.latex.core import find_document_start
from resume_craft.latex.nodes import (
    Argument,
    CommandNode,
    EnvNode,
    Node,
    parse_latex,
    to_latex,
    to_text,
    walk,
)
from resume_craft.logger import get_logger
from resume_craft.schema import LatexFormattingMetadata, LatexPackage

logger = get_logger("latex.formatting")

FONT_COMMANDS = (
    "textbf", "textit", "underline", "emph", "textsc", "texttt", "textsf", "textrm",
)
SPACING_COMMANDS = ("vspace", "hspace", "smallskip", "medskip", "bigskip")


def _split_options(arg: Optional[Argument]) -> List[str]:
    if arg is None:
        return []
    return [opt.strip() for opt in to_text(arg).split(",") if opt.strip()]


def _add_unique(values: List[str], value: str) -> None:
    if value not in values:
        values.append(value)


class FormattingExtractor:
    """Walks parsed preamble nodes and fills a ``LatexFormattingMetadata``."""

    def __init__(self, source: str):
        self.source = source
        self.meta = LatexFormattingMetadata()
        # Nodes already read as part of a preceding declaration
        self._consumed: set = set()
        self._handlers: Dict[str, Callable[[CommandNode, Sequence[Node], int], None]] = {
            "documentclass": self._on_documentclass,
            "usepackage": self._on_usepackage,
            "RequirePackage": self._on_usepackage,
            "newcommand": self._on_newcommand,
            "renewcommand": self._on_newcommand,
            "providecommand": self._on_newcommand,
            "newenvironment": self._on_newenvironment,
            "renewenvironment": self._on_newenvironment,
            "geometry": self._on_geometry,
            "definecolor": self._on_definecolor,
        }

    def _raw(self, arg: Argument) -> str:
        """Exact source text inside an argument's delimiters."""
        return self.source[arg.start + 1:arg.end - 1].strip()

    def extract(self, nodes: Sequence[Node]) -> LatexFormattingMetadata:
        body_start = find_document_start(self.source)
        if body_start is None:
            logger.debug("No \\begin{document} found; formatting left at defaults")
            return self.meta

        self.meta.preamble = self.source[:body_start]
        preamble_nodes = [n for n in nodes if n.start < body_start]

        self._visit(preamble_nodes, top_level=True)

        # Font and spacing usage is collected across the whole document
        for node in walk(nodes):
            if isinstance(node, CommandNode) and not node.symbol:
                if node.name in FONT_COMMANDS:
                    _add_unique(self.meta.font_commands, node.name)
                elif node.name in SPACING_COMMANDS:
                    _add_unique(self.meta.spacing_commands, node.name)
        return self.meta

    def _visit(self, nodes: Sequence[Node], top_level: bool = False) -> None:
        for index, node in enumerate(nodes):
            if id(node) in self._consumed:
                continue
            if isinstance(node, CommandNode) and not node.symbol:
                handler = self._handlers.get(node.name)
                if handler is not None:
                    handler(node, nodes, index)
                    # Definition bodies are not preamble declarations
                    if node.name in ("newcommand", "renewcommand", "providecommand",
                                     "newenvironment", "renewenvironment"):
                        continue
                elif top_level and node.name not in FONT_COMMANDS + SPACING_COMMANDS:
                    _add_unique(self.meta.other_preamble_commands, node.name)
                for arg in node.args:
                    self._visit(arg.children)
            elif isinstance(node, EnvNode):
                for arg in node.args:
                    self._visit(arg.children)
                self._visit(node.children)
            elif hasattr(node, "children"):
                self._visit(node.children)

    def _on_documentclass(self, node: CommandNode, siblings: Sequence[Node], index: int) -> None:
        optional = node.optional_args()
        if optional:
            self.meta.document_class_options = _split_options(optional[0])
        groups = node.group_args()
        if groups:
            name = to_text(groups[0]).strip()
            if name:
                self.meta.document_class = name

    def _on_usepackage(self, node: CommandNode, siblings: Sequence[Node], index: int) -> None:
        optional = node.optional_args()
        options = _split_options(optional[0]) if optional else []
        groups = node.group_args()
        if not groups:
            return
        for name in to_text(groups[0]).split(","):
            name = name.strip()
            if name:
                self.meta.packages.append(LatexPackage(name=name, options=list(options)))

    def _on_newcommand(self, node: CommandNode, siblings: Sequence[Node], index: int) -> None:
        groups = node.group_args()
        if len(groups) >= 2:
            name = to_latex(groups[0].children).strip()
            definition = self._raw(groups[-1])
        elif index + 1 < len(siblings) and isinstance(siblings[index + 1], CommandNode):
            # \newcommand\foo[1]{...}: the tokenizer reads \foo with the arguments
            target = siblings[index + 1]
            target_groups = target.group_args()
            if not target_groups:
                return
            name = "\\" + target.name
            self._consumed.add(id(target))
            definition = self._raw(target_groups[-1])
        else:
            return
        if name:
            self.meta.custom_commands[name] = definition

    def _on_newenvironment(self, node: CommandNode, siblings: Sequence[Node], index: int) -> None:
        groups = node.group_args()
        if len(groups) < 3:
            return
        name = to_text(groups[0]).strip()
        if name:
            self.meta.custom_environments[name] = self._raw(groups[1])

    def _on_geometry(self, node: CommandNode, siblings: Sequence[Node], index: int) -> None:
        groups = node.group_args()
        if groups:
            self.meta.geometry = self._raw(groups[0])

    def _on_definecolor(self, node: CommandNode, siblings: Sequence[Node], index: int) -> None:
        groups = node.group_args()
        if len(groups) < 3:
            return
        name = to_text(groups[0]).strip()
        if name:
            self.meta.color_commands[name] = self._raw(groups[2])


def extract_latex_formatting(source: str, nodes: Optional[Sequence[Node]] = None) -> LatexFormattingMetadata:
    """Collect preamble formatting facts. Never raises on malformed LaTeX."""
    source = source or ""
    if nodes is None:
        nodes = parse_latex(source)
    return FormattingExtractor(source).extract(nodes)
