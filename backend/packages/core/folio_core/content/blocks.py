"""
Block document model.

Editor JSON is loosely shaped: arbitrary ``type`` strings, optional
``props`` and several spellings of inline styles. Parsing turns any JSON
value into a closed set of block variants, with ``BlockType.UNKNOWN`` for
everything unrecognized, and never raises.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BlockType(str, Enum):
    """Block type enumeration."""

    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "codeBlock"
    IMAGE = "image"
    # Flat list items, grouped into lists when rendered
    BULLET_LIST_ITEM = "bulletListItem"
    NUMBERED_LIST_ITEM = "numberedListItem"
    CHECK_LIST_ITEM = "checkListItem"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "BlockType":
        """Map a raw ``type`` value to a member, UNKNOWN if unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class MarkType(str, Enum):
    """Inline mark enumeration, in wrapping precedence order."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKE = "strike"
    CODE = "code"
    LINK = "link"


# Innermost first
MARK_PRECEDENCE: tuple[MarkType, ...] = tuple(MarkType)

_MARK_ALIASES: dict[str, MarkType] = {
    "strikethrough": MarkType.STRIKE,
}


@dataclass(frozen=True)
class InlineNode:
    """
    A run of text with its marks.

    Attributes:
        text: Raw (unescaped) text.
        marks: Marks applied to the text.
        href: Link target when ``MarkType.LINK`` is present.
    """

    text: str
    marks: frozenset[MarkType] = frozenset()
    href: str | None = None


@dataclass(frozen=True)
class Block:
    """
    One node of document content.

    Attributes:
        type: Block variant.
        content: Plain string or ordered inline nodes.
        children: Sub-blocks (list items), or None when absent.
        props: Type-specific attributes (heading level, code language,
            image src/alt).
    """

    type: BlockType
    content: str | tuple[InlineNode, ...] = ""
    children: tuple["Block", ...] | None = None
    props: Mapping[str, Any] = field(default_factory=dict)


def _parse_mark(raw: Any) -> tuple[MarkType | None, str | None]:
    if isinstance(raw, str):
        name, href = raw, None
    elif isinstance(raw, Mapping):
        name = raw.get("type")
        href = raw.get("href", raw.get("url"))
    else:
        return None, None

    if not isinstance(name, str):
        return None, None
    mark = _MARK_ALIASES.get(name)
    if mark is None:
        try:
            mark = MarkType(name)
        except ValueError:
            return None, None
    return mark, href if isinstance(href, str) else None


def _parse_marks(raw: Any) -> tuple[frozenset[MarkType], str | None]:
    marks: set[MarkType] = set()
    href: str | None = None

    if isinstance(raw, Mapping):
        # BlockNote style map: {"bold": true, "textColor": "red"}
        items: list[Any] = [name for name, enabled in raw.items() if enabled is True]
    elif isinstance(raw, list):
        items = raw
    else:
        items = []

    for item in items:
        mark, mark_href = _parse_mark(item)
        if mark is None:
            continue
        marks.add(mark)
        if mark is MarkType.LINK and mark_href is not None:
            href = mark_href
    return frozenset(marks), href


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, Mapping, list)):
        return json.dumps(value)
    return str(value)


def parse_inline(raw: Any) -> list[InlineNode]:
    """
    Parse one inline JSON value into inline nodes.

    A BlockNote link node (``{"type": "link", "href": ..., "content": [...]}``)
    expands to its inner runs, each carrying the link mark.
    """
    if isinstance(raw, str):
        return [InlineNode(text=raw)]
    if not isinstance(raw, Mapping):
        return [InlineNode(text="")]

    if raw.get("type") == "link" and "content" in raw:
        href = raw.get("href")
        inner = raw.get("content")
        runs = parse_content(inner)
        if isinstance(runs, str):
            runs = (InlineNode(text=runs),)
        return [
            InlineNode(
                text=run.text,
                marks=run.marks | {MarkType.LINK},
                href=href if isinstance(href, str) else run.href,
            )
            for run in runs
        ]

    styles = raw.get("styles")
    if styles is None:
        styles = raw.get("marks")
    marks, href = _parse_marks(styles)
    return [InlineNode(text=_coerce_text(raw.get("text")), marks=marks, href=href)]


def parse_content(raw: Any) -> str | tuple[InlineNode, ...]:
    """Parse a block ``content`` value into a string or inline nodes."""
    if isinstance(raw, list):
        nodes: list[InlineNode] = []
        for item in raw:
            nodes.extend(parse_inline(item))
        return tuple(nodes)
    return _coerce_text(raw)


def parse_block(raw: Any) -> Block:
    """Parse one block JSON value. Non-objects become empty UNKNOWN blocks."""
    if not isinstance(raw, Mapping):
        return Block(type=BlockType.UNKNOWN)

    raw_type = raw.get("type")
    block_type = BlockType.PARAGRAPH if raw_type is None else BlockType.parse(raw_type)

    children_raw = raw.get("children")
    children = (
        tuple(parse_block(child) for child in children_raw)
        if isinstance(children_raw, list)
        else None
    )
    props = raw.get("props")

    return Block(
        type=block_type,
        content=parse_content(raw.get("content")),
        children=children,
        props=dict(props) if isinstance(props, Mapping) else {},
    )


def parse_blocks(raw: Any) -> list[Block] | None:
    """
    Parse a decoded JSON value into blocks.

    Returns:
        Blocks in document order, or None when ``raw`` is not a list.
    """
    if not isinstance(raw, list):
        return None
    return [parse_block(item) for item in raw]


def parse_blocks_json(blocks_json: str) -> list[Block] | None:
    """
    Decode and parse serialized block JSON.

    Returns:
        Blocks in document order, or None when the text is not valid JSON
        or does not hold a list.
    """
    try:
        decoded = json.loads(blocks_json)
    except (TypeError, ValueError, RecursionError):
        return None
    return parse_blocks(decoded)
