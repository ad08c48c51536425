"""Core export and analysis-rendering logic for Miaobi."""

from miaobi.core.assembler import DocumentAssembler, scale_to_width
from miaobi.core.exporter import WordExporter, export_to_word
from miaobi.core.images import ImageResolver, resolve_images
from miaobi.core.structure import layout, render_svg, render_tree, walk

__all__ = [
    "DocumentAssembler",
    "scale_to_width",
    "WordExporter",
    "export_to_word",
    "ImageResolver",
    "resolve_images",
    "layout",
    "render_svg",
    "render_tree",
    "walk",
]
