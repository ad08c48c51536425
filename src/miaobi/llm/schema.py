"""Analysis result models and the JSON schema sent to the provider.

Field names follow the wire format returned by the model (camelCase for
most fields, ``location_snippet`` in snake case). Every field is
required unless marked optional; a reply that does not validate is
rejected as a whole.
"""

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


CorrectionType = Literal["grammar", "typo", "style", "punctuation"]
ViralPotential = Literal["High", "Medium", "Low"]
NodeType = Literal["root", "main_point", "sub_point", "evidence", "conclusion"]

# Numbers must arrive as JSON numbers; "82" is a malformed reply
Score = Annotated[float, Field(strict=True)]

# Pydantic validates nested models recursively, so the raw tree is cut
# to this many levels first. Display depth (MIAOBI_STRUCTURE_MAX_DEPTH)
# is applied later and is normally far below it.
STRUCTURE_PRUNE_DEPTH = 64


def prune_tree(value, max_depth: int):
    """Copy a raw ``{"children": [...]}`` tree, dropping levels past max_depth.

    Uses an explicit stack, so arbitrarily deep input is safe. Anything
    that is not a dict is returned unchanged for validation to reject.
    """
    if not isinstance(value, dict):
        return value

    root = dict(value)
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        children = node.get("children")
        if not isinstance(children, list):
            continue
        if depth + 1 >= max_depth:
            node["children"] = []
            continue
        copies = [dict(child) if isinstance(child, dict) else child for child in children]
        node["children"] = copies
        stack.extend((child, depth + 1) for child in copies if isinstance(child, dict))
    return root


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ArticleScores(_WireModel):
    """Five 0-100 scores."""

    total: Score
    readability: Score
    logic: Score
    emotion: Score
    creativity: Score


class Correction(_WireModel):
    """A single suggested fix."""

    original: str
    suggestion: str
    reason: str
    type: CorrectionType
    location_snippet: str


class TitleAnalysis(_WireModel):
    score: Score
    viral_potential: ViralPotential = Field(alias="viralPotential")
    critique: str
    suggestions: list[str]
    examples: list[str]


class StructureNode(_WireModel):
    """One node of the article's logic-structure tree."""

    name: str
    type: NodeType
    description: Optional[str] = None
    children: list["StructureNode"] = Field(default_factory=list)


class AnalysisResult(_WireModel):
    """Complete structured critique of an article."""

    scores: ArticleScores
    summary: str
    tone_analysis: str = Field(alias="toneAnalysis")
    keywords: list[str]
    corrections: list[Correction]
    title_analysis: TitleAnalysis = Field(alias="titleAnalysis")
    structure: StructureNode
    polished_content: str = Field(alias="polishedContent")

    @field_validator("structure", mode="before")
    @classmethod
    def _prune_structure(cls, value):
        return prune_tree(value, STRUCTURE_PRUNE_DEPTH)

    def to_dict(self) -> dict:
        """Serialize using the wire field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


# Provider-side schema (OpenAPI subset accepted by Gemini's JSON mode).
# Gemini only follows a few levels of nesting; deeper children are left
# to the prompt.
_LEAF_NODE_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "type": {
            "type": "string",
            "enum": ["main_point", "sub_point", "evidence", "conclusion"],
        },
        "description": {"type": "string"},
    },
    "required": ["name", "type"],
}

ANALYSIS_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "scores": {
            "type": "object",
            "properties": {
                "total": {"type": "number", "description": "Overall score out of 100"},
                "readability": {"type": "number", "description": "Readability score out of 100"},
                "logic": {"type": "number", "description": "Logic and structure score out of 100"},
                "emotion": {"type": "number", "description": "Emotional engagement score out of 100"},
                "creativity": {"type": "number", "description": "Creativity and uniqueness score out of 100"},
            },
            "required": ["total", "readability", "logic", "emotion", "creativity"],
        },
        "summary": {"type": "string", "description": "A concise summary of the article"},
        "toneAnalysis": {
            "type": "string",
            "description": "Description of the current tone (e.g., Professional, Emotional, Urgent)",
        },
        "keywords": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Top 5-7 SEO keywords or key topics extracted from the text",
        },
        "corrections": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "original": {"type": "string", "description": "The original text segment containing the issue"},
                    "suggestion": {"type": "string", "description": "The corrected or improved version"},
                    "reason": {"type": "string", "description": "Explanation of why this change is recommended"},
                    "type": {
                        "type": "string",
                        "enum": ["grammar", "typo", "style", "punctuation"],
                    },
                    "location_snippet": {
                        "type": "string",
                        "description": "A short context snippet (approx 10 chars before/after) to help find the location",
                    },
                },
                "required": ["original", "suggestion", "reason", "type", "location_snippet"],
            },
        },
        "titleAnalysis": {
            "type": "object",
            "properties": {
                "score": {"type": "number", "description": "Title score out of 100"},
                "viralPotential": {"type": "string", "enum": ["High", "Medium", "Low"]},
                "critique": {"type": "string", "description": "Brief analysis of the current title"},
                "suggestions": {"type": "array", "items": {"type": "string"}},
                "examples": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "3-5 better alternative titles based on the content",
                },
            },
            "required": ["score", "viralPotential", "critique", "suggestions", "examples"],
        },
        "structure": {
            "type": "object",
            "description": (
                "The logical structure tree of the article. Root is the main theme, "
                "children are main arguments, their children are supporting evidence."
            ),
            "properties": {
                "name": {"type": "string", "description": "Main Topic / Title"},
                "type": {"type": "string", "enum": ["root"]},
                "children": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string", "description": "Section header or Main Argument"},
                            "type": {
                                "type": "string",
                                "enum": ["main_point", "sub_point", "evidence", "conclusion"],
                            },
                            "description": {"type": "string"},
                            "children": {"type": "array", "items": _LEAF_NODE_SCHEMA},
                        },
                        "required": ["name", "type"],
                    },
                },
            },
            "required": ["name", "type", "children"],
        },
        "polishedContent": {
            "type": "string",
            "description": (
                "The fully rewritten article incorporating all improvements "
                "while maintaining the original voice."
            ),
        },
    },
    "required": [
        "scores",
        "summary",
        "keywords",
        "corrections",
        "titleAnalysis",
        "structure",
        "polishedContent",
        "toneAnalysis",
    ],
}
