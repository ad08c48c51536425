"""LLM integration for Miaobi."""

from miaobi.llm.client import AnalysisClient, AnalysisError, analyze_article
from miaobi.llm.schema import AnalysisResult, StructureNode

__all__ = [
    "AnalysisClient",
    "AnalysisError",
    "analyze_article",
    "AnalysisResult",
    "StructureNode",
]
