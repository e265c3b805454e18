"""
Section / item / bullet extraction over the parsed document body.

A single document-order traversal keeps a "current section": sectioning
commands open a new one, and each top-level ``itemize``/``enumerate`` met
afterwards becomes one item of it. Nested lists contribute their bullets to
the same item one level deeper.
"""
from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

from resume_craft.latex.classifier import classify_section_type
from resume_craft.latex.formatting import FONT_COMMANDS
from resume_craft.latex.nodes import (
    CommandNode,
    EnvNode,
    Node,
    children_of,
    parse_latex,
    to_latex,
    to_text,
    walk,
)
from resume_craft.logger import get_logger
from resume_craft.schema import (
    BULLET_INDENT_UNIT,
    BulletFormatting,
    InlineFormatting,
    ResumeBullet,
    ResumeSection,
    ResumeSectionItem,
    SectionFormatting,
)
from resume_craft.utils import collapse_whitespace

logger = get_logger("latex.sections")

SECTION_COMMANDS = ("section", "subsection", "subsubsection")
LIST_ENVIRONMENTS = ("itemize", "enumerate")
LINK_COMMANDS = ("href", "url")


def _is_item(node: Node) -> bool:
    return isinstance(node, CommandNode) and not node.symbol and node.name == "item"


def _is_list(node: Node) -> bool:
    return isinstance(node, EnvNode) and node.name in LIST_ENVIRONMENTS


def split_items(children: Sequence[Node]) -> Iterator[Tuple[CommandNode, List[Node]]]:
    r"""Yield ``(\item node, following siblings up to the next \item)``.

    Content before the first ``\item`` belongs to no bullet and is skipped.
    """
    current: Optional[CommandNode] = None
    content: List[Node] = []
    for node in children:
        if _is_item(node):
            if current is not None:
                yield current, content
            current, content = node, []
        elif current is not None:
            content.append(node)
    if current is not None:
        yield current, content


def bullet_text(item: CommandNode, content: Sequence[Node]) -> str:
    """Plain text of one bullet: its ``\\item`` arguments then its content.

    A ``[label]`` is set apart from the body; a ``{group}`` runs into it.
    """
    label = "".join(to_text(arg) + (" " if arg.kind == "optional" else "") for arg in item.args)
    return collapse_whitespace(label + to_text(content))


def item_line(item_command: str, body: str) -> str:
    r"""Join an ``\item`` command and its body.

    A body starting with the item's own ``[label]`` or ``{group}`` is attached
    directly so it parses back as an argument.
    """
    if body.startswith(("[", "{")):
        return item_command + body
    return f"{item_command} {body}" if body else item_command


def item_source_text(item_command: str, latex_source: str) -> str:
    """Plain text a stored ``item command + body`` pair flattens to."""
    nodes = parse_latex(item_line(item_command, latex_source))
    for item, content in split_items(nodes):
        return bullet_text(item, content)
    return collapse_whitespace(to_text(nodes))


def inline_formatting(nodes: Sequence[Node]) -> InlineFormatting:
    formatting = InlineFormatting()
    for node in walk(nodes):
        if not isinstance(node, CommandNode) or node.symbol:
            continue
        if node.name in FONT_COMMANDS or node.name in LINK_COMMANDS:
            if node.name not in formatting.latex_commands:
                formatting.latex_commands.append(node.name)
        if node.name in LINK_COMMANDS and formatting.hyperlink is None:
            groups = node.group_args()
            if groups:
                formatting.hyperlink = to_text(groups[0]).strip() or None
    return formatting


def extract_bullets(env: EnvNode, level: int = 0) -> List[ResumeBullet]:
    """Bullets of one list environment, nested lists flattened in document order."""
    bullets: List[ResumeBullet] = []
    for item, siblings in split_items(env.children):
        content = [n for n in siblings if not _is_list(n)]
        nested = [n for n in siblings if _is_list(n)]

        text = bullet_text(item, content)
        if text:
            bullets.append(ResumeBullet(
                text=text,
                formatting=BulletFormatting(
                    level=level,
                    indent=level * BULLET_INDENT_UNIT,
                    latex_item_command="\\item" + ("*" if item.starred else ""),
                    # A [label] is part of the body, so edited text replaces it
                    latex_source=collapse_whitespace(to_latex(list(item.args) + content)),
                    text_formatting=inline_formatting(list(item.args) + content),
                ),
            ))

        for child in nested:
            bullets.extend(extract_bullets(child, level + 1))
    return bullets


class SectionExtractor:
    """Single-pass walker that attaches each list to the section open at that point."""

    def __init__(self):
        self.sections: List[ResumeSection] = []
        self.current: Optional[ResumeSection] = None

    def extract(self, nodes: Sequence[Node]) -> List[ResumeSection]:
        self._visit(nodes)
        return self.sections

    def _visit(self, nodes: Sequence[Node]) -> None:
        for node in nodes:
            if isinstance(node, CommandNode) and not node.symbol and node.name in SECTION_COMMANDS:
                groups = node.group_args()
                if groups:
                    self._open_section(node, to_text(groups[0]))
                    continue
            if _is_list(node):
                self._add_list(node)
                continue
            for child_list in children_of(node):
                self._visit(child_list)

    def _open_section(self, node: CommandNode, raw_title: str) -> None:
        title = collapse_whitespace(raw_title)
        command = "\\" + node.name + ("*" if node.starred else "")
        self.current = ResumeSection(
            type=classify_section_type(title),
            title=title,
            formatting=SectionFormatting(latex_command=command),
        )
        self.sections.append(self.current)

    def _add_list(self, env: EnvNode) -> None:
        if self.current is None:
            logger.debug("Skipping %s list before the first section", env.name)
            return
        bullets = extract_bullets(env)
        if bullets:
            self.current.items.append(ResumeSectionItem(bullets=bullets))


def extract_sections(body_nodes: Sequence[Node]) -> List[ResumeSection]:
    """Build the ordered section -> item -> bullet tree from body nodes."""
    sections = SectionExtractor().extract(body_nodes)
    logger.debug(
        "Extracted %d sections with %d bullets",
        len(sections),
        sum(1 for s in sections for _ in s.iter_bullets()),
    )
    return sections
