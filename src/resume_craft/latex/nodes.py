"""
Tolerant LaTeX tokenizer producing a small node tree.

The tree has text, comment, math, brace-group, command and environment nodes.
Commands collect the ``[optional]`` and ``{group}`` arguments written directly
after them. Every node keeps the ``start``/``end`` offsets of the source it
was read from, so callers can slice the exact original text.

Parsing never raises: an unclosed group or environment ends at the end of the
input, and a stray ``\\end{...}`` is kept as an ordinary command node.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Union

from resume_craft.utils import collapse_whitespace

_BEGIN_RE = re.compile(r"\\begin\s*\{([^{}]*)\}")
_END_RE = re.compile(r"\\end\s*\{([^{}]*)\}")
_CONTROL_WORD_RE = re.compile(r"\\([A-Za-z@]+)(\*?)")
_ARG_GAP_RE = re.compile(r"[ \t]*(?:\n[ \t]*)?")

VERBATIM_ENVIRONMENTS = ("verbatim", "lstlisting", "minted", "comment")

# Control symbols that flatten to a literal character
_LITERAL_SYMBOLS = {"&": "&", "%": "%", "$": "$", "#": "#", "_": "_", "{": "{", "}": "}"}
# Control symbols that flatten to a space
_SPACE_SYMBOLS = {"\\", " ", ",", ";", ":", "!", "\n", "\t"}
# Text-mode commands that stand for a single character
_CHARACTER_COMMANDS = {"textbackslash": "\\", "textasciitilde": "~", "textasciicircum": "^"}


@dataclass
class TextNode:
    text: str
    start: int = 0
    end: int = 0


@dataclass
class CommentNode:
    text: str
    start: int = 0
    end: int = 0


@dataclass
class MathNode:
    content: str
    display: bool = False
    start: int = 0
    end: int = 0


@dataclass
class GroupNode:
    """A bare ``{...}`` group in running content."""
    children: List["Node"] = field(default_factory=list)
    start: int = 0
    end: int = 0


@dataclass
class Argument:
    """A command or environment argument; ``kind`` is "optional" or "group"."""
    kind: str
    children: List["Node"] = field(default_factory=list)
    start: int = 0
    end: int = 0


@dataclass
class CommandNode:
    name: str
    args: List[Argument] = field(default_factory=list)
    starred: bool = False
    symbol: bool = False
    start: int = 0
    end: int = 0

    def group_args(self) -> List[Argument]:
        return [a for a in self.args if a.kind == "group"]

    def optional_args(self) -> List[Argument]:
        return [a for a in self.args if a.kind == "optional"]


@dataclass
class EnvNode:
    name: str
    args: List[Argument] = field(default_factory=list)
    children: List["Node"] = field(default_factory=list)
    start: int = 0
    end: int = 0


Node = Union[TextNode, CommentNode, MathNode, GroupNode, CommandNode, EnvNode]


class LatexParser:
    """Recursive-descent reader over one LaTeX string."""

    def __init__(self, source: str):
        self.src = source
        self.pos = 0
        self.n = len(source)
        self._open_envs: List[str] = []
        self._group_depth = 0

    def parse(self) -> List[Node]:
        nodes, _ = self._parse_nodes()
        return nodes

    def _parse_nodes(self, stop_char: Optional[str] = None, stop_env: Optional[str] = None):
        """Read nodes until ``stop_char`` / ``\\end{stop_env}`` or end of input.

        Returns ``(nodes, closed)``.
        """
        nodes: List[Node] = []
        text_stops = "\\{}%$" + (stop_char if stop_char == "]" else "")
        while self.pos < self.n:
            ch = self.src[self.pos]

            if stop_char is not None and ch == stop_char:
                self.pos += 1
                return nodes, True

            if ch == "%":
                start = self.pos
                eol = self.src.find("\n", start)
                text_end = self.n if eol == -1 else eol
                # Like TeX, a comment also eats the line break and the next line's indentation
                self.pos = text_end
                if eol != -1:
                    self.pos += 1
                    while self.pos < self.n and self.src[self.pos] in " \t":
                        self.pos += 1
                nodes.append(CommentNode(self.src[start + 1:text_end], start, self.pos))
                continue

            if ch == "\\":
                m = _END_RE.match(self.src, self.pos)
                if m:
                    name = m.group(1).strip()
                    if name == stop_env:
                        self.pos = m.end()
                        return nodes, True
                    if name in self._open_envs:
                        # An enclosing environment ends here; leave it for the outer level
                        return nodes, False
                nodes.append(self._parse_backslash())
                continue

            if ch == "{":
                start = self.pos
                children = self._parse_group()
                nodes.append(GroupNode(children, start, self.pos))
                continue

            if ch == "}" and self._group_depth > 0:
                # An enclosing group closes here; leave the brace for it
                return nodes, False

            if ch == "$":
                nodes.append(self._parse_math())
                continue

            # Plain text run (a stray "}" is kept as text)
            start = self.pos
            self.pos += 1
            while self.pos < self.n and self.src[self.pos] not in text_stops:
                self.pos += 1
            nodes.append(TextNode(self.src[start:self.pos], start, self.pos))
        return nodes, False

    def _parse_backslash(self) -> Node:
        start = self.pos

        m = _BEGIN_RE.match(self.src, self.pos)
        if m:
            name = m.group(1).strip()
            self.pos = m.end()
            if name in VERBATIM_ENVIRONMENTS:
                return self._parse_verbatim(name, start)
            args = self._parse_args()
            self._open_envs.append(name)
            try:
                children, _ = self._parse_nodes(stop_env=name)
            finally:
                self._open_envs.pop()
            return EnvNode(name, args, children, start, self.pos)

        m = _END_RE.match(self.src, self.pos)
        if m:
            # Stray \end{...} with no matching \begin
            self.pos = m.end()
            name_start = self.src.index("{", start)
            arg_text = m.group(1)
            arg = Argument("group", [TextNode(arg_text, name_start + 1, m.end() - 1)], name_start, m.end())
            return CommandNode("end", [arg], start=start, end=self.pos)

        m = _CONTROL_WORD_RE.match(self.src, self.pos)
        if m:
            self.pos = m.end()
            args = self._parse_args(skip_space=True)
            return CommandNode(m.group(1), args, starred=bool(m.group(2)), start=start, end=self.pos)

        if self.pos + 1 < self.n:
            symbol = self.src[self.pos + 1]
            self.pos += 2
            args = self._parse_args(groups=False) if symbol == "\\" else []
            return CommandNode(symbol, args, symbol=True, start=start, end=self.pos)

        self.pos += 1
        return TextNode("\\", start, self.pos)

    def _parse_group(self) -> List[Node]:
        """Read a brace group starting at ``{``; the closing brace is consumed."""
        self.pos += 1
        self._group_depth += 1
        children, _ = self._parse_nodes(stop_char="}")
        self._group_depth -= 1
        return children

    def _parse_args(self, groups: bool = True, skip_space: bool = False) -> List[Argument]:
        """Collect arguments written directly after a command.

        With ``skip_space`` (control words), spaces and a single line break
        before a first ``{group}`` are skipped as TeX does; a blank line is not.
        """
        args: List[Argument] = []
        while self.pos < self.n:
            if skip_space and not args and groups:
                gap = _ARG_GAP_RE.match(self.src, self.pos)
                if gap.end() > self.pos and self.src.startswith("{", gap.end()):
                    self.pos = gap.end()
            ch = self.src[self.pos]
            if ch == "[":
                start = self.pos
                self.pos += 1
                children, _ = self._parse_nodes(stop_char="]")
                args.append(Argument("optional", children, start, self.pos))
            elif ch == "{" and groups:
                start = self.pos
                children = self._parse_group()
                args.append(Argument("group", children, start, self.pos))
            else:
                break
        return args

    def _parse_math(self) -> Node:
        start = self.pos
        display = self.src.startswith("$$", start)
        delim = "$$" if display else "$"
        i = start + len(delim)
        while i < self.n:
            if self.src[i] == "\\":
                i += 2
                continue
            if self.src.startswith(delim, i):
                self.pos = i + len(delim)
                return MathNode(self.src[start + len(delim):i], display, start, self.pos)
            i += 1
        # Unterminated math is kept as text
        self.pos = start + len(delim)
        return TextNode(delim, start, self.pos)

    def _parse_verbatim(self, name: str, start: int) -> Node:
        body_start = self.pos
        end_marker = re.compile(r"\\end\s*\{" + re.escape(name) + r"\}")
        m = end_marker.search(self.src, body_start)
        body_end = m.start() if m else self.n
        self.pos = m.end() if m else self.n
        child = TextNode(self.src[body_start:body_end], body_start, body_end)
        return EnvNode(name, [], [child], start, self.pos)


def parse_latex(source: str) -> List[Node]:
    """Parse LaTeX source into a list of top-level nodes."""
    return LatexParser(source or "").parse()


def children_of(node: Node) -> List[List[Node]]:
    """Child node lists of ``node`` in document order (arguments first)."""
    if isinstance(node, CommandNode):
        return [arg.children for arg in node.args]
    if isinstance(node, EnvNode):
        return [arg.children for arg in node.args] + [node.children]
    if isinstance(node, (GroupNode, Argument)):
        return [node.children]
    return []


def walk(nodes: Sequence[Node]) -> Iterator[Node]:
    """Yield every node depth-first in document order."""
    for node in nodes:
        yield node
        for child_list in children_of(node):
            yield from walk(child_list)


def find_environment(nodes: Sequence[Node], name: str) -> Optional[EnvNode]:
    for node in walk(nodes):
        if isinstance(node, EnvNode) and node.name == name:
            return node
    return None


def to_text(node: Union[Node, Argument, Sequence[Node], None]) -> str:
    """Flatten nodes to plain text.

    Command names are dropped while the text of their ``{group}`` arguments is
    kept, so ``\\textbf{Led}`` becomes ``Led``. Comments vanish, escaped
    specials become the literal character and ``~`` becomes a space.
    """
    if node is None:
        return ""
    if isinstance(node, (list, tuple)):
        return "".join(to_text(n) for n in node)
    if isinstance(node, TextNode):
        return node.text.replace("~", " ")
    if isinstance(node, CommentNode):
        return ""
    if isinstance(node, MathNode):
        return to_text(parse_latex(node.content))
    if isinstance(node, (GroupNode, Argument)):
        return to_text(node.children)
    if isinstance(node, CommandNode):
        if node.symbol:
            if node.name in _LITERAL_SYMBOLS:
                return _LITERAL_SYMBOLS[node.name]
            return " " if node.name in _SPACE_SYMBOLS else ""
        if node.name in _CHARACTER_COMMANDS:
            return _CHARACTER_COMMANDS[node.name]
        return " ".join(to_text(arg) for arg in node.group_args())
    if isinstance(node, EnvNode):
        return to_text(node.children)
    return ""


def to_latex(node: Union[Node, Argument, Sequence[Node], None]) -> str:
    """Re-serialize nodes as LaTeX, dropping comments."""
    if node is None:
        return ""
    if isinstance(node, (list, tuple)):
        out = ""
        for child in node:
            piece = to_latex(child)
            # Keep a control word from fusing with following letters once a comment is gone
            if piece and piece[0].isalpha() and re.search(r"\\[A-Za-z@]+\*?$", out):
                out += " "
            out += piece
        return out
    if isinstance(node, TextNode):
        return node.text
    if isinstance(node, CommentNode):
        return ""
    if isinstance(node, MathNode):
        delim = "$$" if node.display else "$"
        return f"{delim}{node.content}{delim}"
    if isinstance(node, GroupNode):
        return "{" + to_latex(node.children) + "}"
    if isinstance(node, Argument):
        inner = to_latex(node.children)
        return f"[{inner}]" if node.kind == "optional" else "{" + inner + "}"
    if isinstance(node, CommandNode):
        head = "\\" + node.name + ("*" if node.starred else "")
        return head + "".join(to_latex(arg) for arg in node.args)
    if isinstance(node, EnvNode):
        args = "".join(to_latex(arg) for arg in node.args)
        return f"\\begin{{{node.name}}}{args}{to_latex(node.children)}\\end{{{node.name}}}"
    return ""


def flatten_latex(source: str) -> str:
    """Parse ``source`` and return its whitespace-collapsed plain text."""
    return collapse_whitespace(to_text(parse_latex(source)))
