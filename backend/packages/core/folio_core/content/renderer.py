"""
Lossy block-to-HTML renderer.

Converts parsed blocks into an HTML fragment. Rendering is total: unknown
blocks degrade to paragraphs and input that is not a block list degrades
to a single escaped paragraph. Every piece of text and every attribute
value is escaped before it is wrapped in markup.
"""

from collections.abc import Sequence

from .blocks import MARK_PRECEDENCE, Block, BlockType, InlineNode, MarkType, parse_blocks_json

_HTML_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)

_MARK_TAGS: dict[MarkType, str] = {
    MarkType.BOLD: "strong",
    MarkType.ITALIC: "em",
    MarkType.UNDERLINE: "u",
    MarkType.STRIKE: "s",
    MarkType.CODE: "code",
}

# Flat list item types and the list element they are grouped into
_LIST_ITEM_TAGS: dict[BlockType, str] = {
    BlockType.BULLET_LIST_ITEM: "ul",
    BlockType.NUMBERED_LIST_ITEM: "ol",
    BlockType.CHECK_LIST_ITEM: "ul",
}


def escape_html(value: str) -> str:
    """Escape ``& < > " '`` for use in text content."""
    return value.translate(_HTML_ESCAPES)


def escape_attr(value: str) -> str:
    """Escape a value for use inside a double-quoted attribute."""
    return escape_html(value).replace("`", "&#96;")


def _render_node(node: InlineNode) -> str:
    out = escape_html(node.text)
    for mark in MARK_PRECEDENCE:
        if mark not in node.marks:
            continue
        if mark is MarkType.LINK:
            out = f'<a href="{escape_attr(node.href or "#")}">{out}</a>'
        else:
            tag = _MARK_TAGS[mark]
            out = f"<{tag}>{out}</{tag}>"
    return out


def render_inline(content: str | Sequence[InlineNode]) -> str:
    """Render block content as escaped inline HTML."""
    if isinstance(content, str):
        return escape_html(content)
    return "".join(_render_node(node) for node in content)


def inline_text(content: str | Sequence[InlineNode]) -> str:
    """Return the unescaped plain text of block content, marks dropped."""
    if isinstance(content, str):
        return content
    return "".join(node.text for node in content)


def _heading_level(raw: object) -> int:
    try:
        level = int(float(raw))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        level = 1
    return min(max(level, 1), 6)


def _render_list(block: Block, tag: str) -> str:
    if block.children is not None:
        items = "".join(f"<li>{render_inline(child.content)}</li>" for child in block.children)
    else:
        items = f"<li>{render_inline(block.content)}</li>"
    return f"<{tag}>{items}</{tag}>"


def _render_list_item(block: Block) -> str:
    nested = render_blocks(block.children) if block.children else ""
    return f"<li>{render_inline(block.content)}{nested}</li>"


def render_block(block: Block) -> str:
    """Render a single block to HTML."""
    if block.type is BlockType.HEADING:
        level = _heading_level(block.props.get("level", 1))
        return f"<h{level}>{render_inline(block.content)}</h{level}>"

    if block.type is BlockType.BULLET_LIST:
        return _render_list(block, "ul")

    if block.type is BlockType.ORDERED_LIST:
        return _render_list(block, "ol")

    if block.type is BlockType.BLOCKQUOTE:
        return f"<blockquote>{render_inline(block.content)}</blockquote>"

    if block.type is BlockType.CODE_BLOCK:
        language = block.props.get("language")
        language = escape_attr(str(language)) if language else ""
        class_attr = f' class="language-{language}"' if language else ""
        code = escape_html(inline_text(block.content))
        return f"<pre><code{class_attr}>{code}</code></pre>"

    if block.type is BlockType.IMAGE:
        src = block.props.get("src") or block.props.get("url") or ""
        if not src:
            return ""
        alt = block.props.get("alt") or ""
        return f'<figure><img src="{escape_attr(str(src))}" alt="{escape_attr(str(alt))}" /></figure>'

    if block.type in _LIST_ITEM_TAGS:
        # Only reached for a lone item rendered outside render_blocks
        tag = _LIST_ITEM_TAGS[block.type]
        return f"<{tag}>{_render_list_item(block)}</{tag}>"

    # Paragraphs and unknown types
    return f"<p>{render_inline(block.content)}</p>"


def render_blocks(blocks: Sequence[Block]) -> str:
    """
    Render blocks to an HTML fragment.

    Consecutive flat list items of the same type are grouped into one
    ``<ul>``/``<ol>``. Top-level fragments are joined with newlines.

    Args:
        blocks: Blocks in document order.

    Returns:
        HTML string; empty for an empty sequence.
    """
    fragments: list[str] = []
    group_type: BlockType | None = None
    group_items: list[str] = []

    def close_group() -> None:
        nonlocal group_type
        if group_type is not None:
            tag = _LIST_ITEM_TAGS[group_type]
            fragments.append(f"<{tag}>{''.join(group_items)}</{tag}>")
            group_items.clear()
            group_type = None

    for block in blocks:
        if block.type in _LIST_ITEM_TAGS:
            if block.type is not group_type:
                close_group()
                group_type = block.type
            group_items.append(_render_list_item(block))
            continue
        close_group()
        fragment = render_block(block)
        if fragment:
            fragments.append(fragment)

    close_group()
    return "\n".join(fragments)


def render_blocks_json(blocks_json: str) -> str:
    """
    Render serialized block JSON to HTML.

    Falls back to one escaped paragraph holding the raw input when the
    text does not decode to a list of blocks, or nests too deeply to render.

    Args:
        blocks_json: Block JSON as stored on the document.

    Returns:
        HTML string.
    """
    fallback = f"<p>{escape_html(str(blocks_json))}</p>"
    try:
        blocks = parse_blocks_json(blocks_json)
        if blocks is None:
            return fallback
        return render_blocks(blocks)
    except RecursionError:
        return fallback
