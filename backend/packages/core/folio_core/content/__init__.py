"""
Document content handling.

Block model parsing, lossy block-to-HTML rendering and content
fingerprinting.
"""

from .blocks import Block, BlockType, InlineNode, MarkType, parse_blocks, parse_blocks_json
from .fingerprint import compute_content_hash
from .renderer import escape_attr, escape_html, render_blocks, render_blocks_json

__all__ = [
    "Block",
    "BlockType",
    "InlineNode",
    "MarkType",
    "parse_blocks",
    "parse_blocks_json",
    "compute_content_hash",
    "escape_attr",
    "escape_html",
    "render_blocks",
    "render_blocks_json",
]
