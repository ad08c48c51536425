"""Document format handlers for Miaobi."""

from miaobi.formats.base import ExportError, FormatHandler
from miaobi.formats.docx_handler import DOCXHandler

__all__ = [
    "ExportError",
    "FormatHandler",
    "DOCXHandler",
]
