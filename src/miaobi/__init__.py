"""Miaobi - AI writing assistant and Markdown-to-Word exporter."""

__version__ = "0.1.0"
