from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from ecf.services.encoding import escape_xml_characters

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


@dataclass
class _Node:
    tag: str
    text: str | None = None
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[_Node] = field(default_factory=list)

    def has_content(self) -> bool:
        if self.text:
            return True
        return any(child.has_content() for child in self.children)


class XMLWriter:
    """Element-stack XML writer with DGII escaping and empty-element omission.

    Text is always escaped with numeric character references. ``None`` and
    empty values are never written, and containers that end up empty are
    dropped on render, so the output cannot contain <tag></tag> or <tag/>.
    """

    def __init__(self, root: str, attrs: dict[str, str] | None = None, indent: str = "  ") -> None:
        self._root = _Node(root, attrs=dict(attrs or {}))
        self._stack = [self._root]
        self._indent = indent

    @contextmanager
    def element(self, tag: str) -> Iterator[None]:
        node = _Node(tag)
        self._stack[-1].children.append(node)
        self._stack.append(node)
        try:
            yield
        finally:
            self._stack.pop()

    def field(self, tag: str, value: str | int | None) -> None:
        if value is None:
            return
        text = str(value)
        if text == "":
            return
        self._stack[-1].children.append(_Node(tag, text=escape_xml_characters(text)))

    def _render(self, node: _Node, depth: int, lines: list[str]) -> None:
        pad = self._indent * depth
        attrs = "".join(f' {k}="{escape_xml_characters(v)}"' for k, v in node.attrs.items())
        if node.text:
            lines.append(f"{pad}<{node.tag}{attrs}>{node.text}</{node.tag}>")
            return
        lines.append(f"{pad}<{node.tag}{attrs}>")
        for child in node.children:
            if child.has_content():
                self._render(child, depth + 1, lines)
        lines.append(f"{pad}</{node.tag}>")

    def tostring(self) -> str:
        """Serialize the document, declaration first, without a trailing newline."""
        if len(self._stack) != 1:
            raise RuntimeError(f"Unclosed element: <{self._stack[-1].tag}>")
        lines = [XML_DECLARATION]
        self._render(self._root, 0, lines)
        return "\n".join(lines)
